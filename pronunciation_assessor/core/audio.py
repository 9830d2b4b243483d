"""WAV probing and the recognizer's hard audio requirements.

WHY: The recognizer rejects anything but 16 kHz, 16-bit PCM audio
between 0.5 and 55 seconds. A transcoder run that "succeeds" can still
produce nonconforming audio, so the normalized bytes are probed and
checked before they leave the normalizer.

HOW: probe_wav() reads the container header with soundfile (libsndfile)
from an in-memory buffer and returns format metadata without decoding
the samples. check_recognizer_requirements() compares that metadata
with the canonical format and lists every mismatch.

RULES:
- Sample rate must equal CANONICAL_SAMPLE_RATE exactly
- Bit depth must equal CANONICAL_BIT_DEPTH exactly
- Duration must be within [AUDIO_MIN_DURATION_S, AUDIO_MAX_DURATION_S]
- Unreadable audio is reported as a violation, never raised
"""

from __future__ import annotations

import io
from dataclasses import dataclass

import soundfile as sf

from pronunciation_assessor.config import (
    AUDIO_MAX_DURATION_S,
    AUDIO_MIN_DURATION_S,
    CANONICAL_BIT_DEPTH,
    CANONICAL_CHANNELS,
    CANONICAL_SAMPLE_RATE,
)
from pronunciation_assessor.core.intake import has_canonical_header

# libsndfile subtype → bits per sample
_SUBTYPE_BIT_DEPTH = {
    "PCM_S8": 8,
    "PCM_U8": 8,
    "PCM_16": 16,
    "PCM_24": 24,
    "PCM_32": 32,
    "FLOAT": 32,
    "DOUBLE": 64,
}


@dataclass(frozen=True)
class WavInfo:
    duration_s: float
    sample_rate: int
    bit_depth: int | None
    channels: int
    subtype: str


class AudioProbeError(ValueError):
    """Raised when libsndfile cannot read the audio header."""


def probe_wav(data: bytes) -> WavInfo:
    """Read duration, sample rate, bit depth, and channel count from WAV bytes.

    Raises:
        AudioProbeError: If the bytes are not a readable audio container.
    """
    try:
        info = sf.info(io.BytesIO(data))
    except RuntimeError as exc:
        # soundfile.LibsndfileError derives from RuntimeError
        raise AudioProbeError("cannot read audio metadata: {}".format(exc)) from exc

    return WavInfo(
        duration_s=float(info.duration),
        sample_rate=int(info.samplerate),
        bit_depth=_SUBTYPE_BIT_DEPTH.get(info.subtype),
        channels=int(info.channels),
        subtype=info.subtype,
    )


def is_canonical(info: WavInfo) -> bool:
    """True if the probed format is exactly what the recognizer wants."""
    return (
        info.sample_rate == CANONICAL_SAMPLE_RATE
        and info.bit_depth == CANONICAL_BIT_DEPTH
        and info.channels == CANONICAL_CHANNELS
    )


def check_recognizer_requirements(
    data: bytes,
    *,
    min_duration_s: float = AUDIO_MIN_DURATION_S,
    max_duration_s: float = AUDIO_MAX_DURATION_S,
) -> tuple[WavInfo | None, list[str]]:
    """Probe normalized audio and list every violated recognizer requirement.

    Returns:
        (info, violations). info is None when the header was unreadable.
    """
    violations: list[str] = []
    if not has_canonical_header(data):
        violations.append("converted audio is not a WAV container")

    try:
        info = probe_wav(data)
    except AudioProbeError as exc:
        violations.append(str(exc))
        return None, violations

    if info.duration_s < min_duration_s:
        violations.append(
            "audio too short (minimum {}s, got {:.2f}s)".format(min_duration_s, info.duration_s)
        )
    elif info.duration_s > max_duration_s:
        violations.append(
            "audio too long (maximum {}s, got {:.2f}s)".format(max_duration_s, info.duration_s)
        )

    if info.sample_rate != CANONICAL_SAMPLE_RATE:
        violations.append(
            "sample rate must be {} Hz (got {} Hz)".format(CANONICAL_SAMPLE_RATE, info.sample_rate)
        )

    if info.bit_depth != CANONICAL_BIT_DEPTH:
        violations.append(
            "bit depth must be {}-bit (got {})".format(
                CANONICAL_BIT_DEPTH,
                "{}-bit".format(info.bit_depth) if info.bit_depth else info.subtype,
            )
        )

    return info, violations
