"""Audio normalization into the recognizer's canonical WAV format.

WHY: Users submit whatever their client records (OGG/Opus voice notes,
M4A, MP3). The recognizer only accepts mono 16-bit PCM at 16 kHz in a
WAV container. This module converts arbitrary input into that format
and refuses to hand on anything that does not meet it.

HOW: AudioNormalizer first checks whether the input already is canonical
(RIFF/WAVE header and a probe showing 16 kHz / 16-bit / mono). If so the
bytes pass through untouched. Otherwise the injected Transcoder runs;
the default FfmpegTranscoder writes the input into a private temporary
directory, runs ffmpeg as a subprocess with a hard timeout, and reads
the output back. The result is then re-checked against the recognizer's
requirements.

RULES:
- Canonical input is returned byte-for-byte unchanged
- Timeout → the process is killed, ConversionFailedError, no output
- Non-zero exit or missing binary → ConversionFailedError
- The temporary directory is removed on every exit path (success,
  failure, timeout, cancellation)
- Nonconforming output of a "successful" run → ConversionFailedError
"""

from __future__ import annotations

import asyncio
import logging
import tempfile
from pathlib import Path
from typing import Protocol

from pronunciation_assessor.config import (
    CANONICAL_CHANNELS,
    CANONICAL_CODEC,
    CANONICAL_SAMPLE_RATE,
    FFMPEG_PATH,
    FFMPEG_TIMEOUT_S,
)
from pronunciation_assessor.core.audio import (
    AudioProbeError,
    check_recognizer_requirements,
    is_canonical,
    probe_wav,
)
from pronunciation_assessor.core.errors import ConversionFailedError
from pronunciation_assessor.core.intake import sniff_mime_type, validate_audio
from pronunciation_assessor.core.ir import AudioAsset

logger = logging.getLogger(__name__)

_STDERR_TAIL_CHARS = 500


class Transcoder(Protocol):
    """Anything that turns arbitrary audio bytes into canonical WAV bytes."""

    async def transcode(self, data: bytes) -> bytes:
        ...


class FfmpegTranscoder:
    """Transcode audio by running ffmpeg as a scoped subprocess.

    WHY: ffmpeg decodes every codec a chat client can produce. Running it
    as a subprocess keeps native crashes out of our process, and the
    timeout bounds how long a hostile or broken file can hold a worker.

    HOW: asyncio.create_subprocess_exec runs ffmpeg without blocking the
    event loop. Input and output files live in a TemporaryDirectory
    context manager, so cleanup happens however the block is left.

    RULES:
    - Output: -acodec pcm_s16le -ar 16000 -ac 1 -f wav
    - timeout_s is a wall-clock limit for the whole ffmpeg run
    - A still-running process is killed and reaped before returning
    - temp_root (optional) is where the private temp dir is created
    """

    def __init__(
        self,
        ffmpeg_path: str = FFMPEG_PATH,
        timeout_s: float = FFMPEG_TIMEOUT_S,
        temp_root: str | Path | None = None,
    ) -> None:
        self.ffmpeg_path = ffmpeg_path
        self.timeout_s = timeout_s
        self.temp_root = str(temp_root) if temp_root is not None else None

    def build_command(self, input_path: Path, output_path: Path) -> list[str]:
        return [
            self.ffmpeg_path,
            "-hide_banner",
            "-loglevel", "error",
            "-i", str(input_path),
            "-acodec", CANONICAL_CODEC,
            "-ar", str(CANONICAL_SAMPLE_RATE),
            "-ac", str(CANONICAL_CHANNELS),
            "-f", "wav",
            "-y",
            str(output_path),
        ]

    async def transcode(self, data: bytes) -> bytes:
        with tempfile.TemporaryDirectory(prefix="pron_ffmpeg_", dir=self.temp_root) as work_dir:
            input_path = Path(work_dir) / "input.bin"
            output_path = Path(work_dir) / "output.wav"
            input_path.write_bytes(data)

            await self._run(self.build_command(input_path, output_path))

            if not output_path.is_file():
                raise ConversionFailedError("transcoder produced no output file")
            output = output_path.read_bytes()

        logger.debug("ffmpeg produced %d bytes from %d bytes of input", len(output), len(data))
        return output

    async def _run(self, command: list[str]) -> None:
        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            raise ConversionFailedError(
                "cannot start transcoder {!r}: {}".format(self.ffmpeg_path, exc)
            ) from exc

        try:
            _, stderr = await asyncio.wait_for(process.communicate(), timeout=self.timeout_s)
        except asyncio.TimeoutError:
            raise ConversionFailedError(
                "audio conversion timed out after {:g}s".format(self.timeout_s)
            ) from None
        finally:
            if process.returncode is None:
                process.kill()
                await process.wait()

        if process.returncode != 0:
            tail = stderr.decode("utf-8", errors="replace").strip()[-_STDERR_TAIL_CHARS:]
            raise ConversionFailedError(
                "audio conversion failed (exit code {}): {}".format(
                    process.returncode, tail or "no error output"
                )
            )


class AudioNormalizer:
    """Bring submitted audio into canonical form and verify it.

    WHY: Downstream code must be able to assume canonical audio. This
    class is the only place that decides whether to convert and the only
    place that vouches for the result.

    RULES:
    - Already-canonical input is not passed to the transcoder
    - Only input sniffed as audio/wav is considered for passthrough
    - Every violation of the recognizer's requirements is reported at once
    """

    def __init__(self, transcoder: Transcoder | None = None) -> None:
        self.transcoder = transcoder if transcoder is not None else FfmpegTranscoder()

    @staticmethod
    def is_already_canonical(data: bytes) -> bool:
        if not validate_audio(data, require_canonical=True).is_valid:
            return False
        try:
            return is_canonical(probe_wav(data))
        except AudioProbeError:
            return False

    async def normalize(self, data: bytes, source_mime_type: str | None = None) -> AudioAsset:
        """Return canonical audio as an AudioAsset, or raise ConversionFailedError.

        Args:
            data: Submitted audio bytes.
            source_mime_type: Type sniffed at intake; sniffed here when omitted.
        """
        if source_mime_type is None:
            source_mime_type = sniff_mime_type(data)

        if source_mime_type == "audio/wav" and self.is_already_canonical(data):
            logger.debug("audio already canonical, skipping conversion")
            converted = data
        else:
            logger.info(
                "converting %d bytes of %s to canonical WAV", len(data), source_mime_type
            )
            converted = await self.transcoder.transcode(data)

        info, violations = check_recognizer_requirements(converted)
        if violations or info is None:
            raise ConversionFailedError(
                "audio does not meet recognizer requirements: {}".format(
                    "; ".join(violations)
                )
            )

        return AudioAsset(
            data=converted,
            mime_type="audio/wav",
            byte_length=len(converted),
            source_mime_type=source_mime_type,
            duration_s=info.duration_s,
            sample_rate=info.sample_rate,
            bit_depth=info.bit_depth,
            channels=info.channels,
        )
