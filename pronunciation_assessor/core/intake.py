"""Intake validation for audio submissions, reference text, and language.

WHY: Bad input should be rejected cheaply and synchronously, before the
transcoder subprocess or the recognizer is ever called. Users get a
complete diagnostic in one reply, so every violated constraint is
reported together instead of stopping at the first one.

HOW: validate_audio() is a pure function over bytes returning a
ValidationReport. It checks, in order: presence, byte length, the
container type sniffed from magic bytes against an allow-list, and (only
when asked) the 12-byte RIFF/WAVE container header, without parsing
the container. The sniffed MIME type travels on the report so the
normalizer can use it. validate_reference_text() and
validate_language() check the non-audio fields of an assessment request.

RULES:
- Empty buffer → exactly one violation, "empty audio"
- Byte length must be within [min_bytes, max_bytes]
- Sniffed MIME type must be in ALLOWED_AUDIO_MIME_TYPES
- Canonical header: bytes 0–3 == b"RIFF" and bytes 8–11 == b"WAVE"
- Reference text: 1–500 chars, no "<" / ">", no emoji, no control
  characters other than whitespace
- No short-circuit: all violations are collected
"""

from __future__ import annotations

import re
import unicodedata
from dataclasses import dataclass, field
from typing import Sequence

from pronunciation_assessor.config import (
    ALLOWED_AUDIO_MIME_TYPES,
    AUDIO_MAX_BYTES,
    AUDIO_MIN_BYTES,
    REFERENCE_TEXT_MAX_LENGTH,
    REFERENCE_TEXT_MIN_LENGTH,
    SUPPORTED_LANGUAGES,
)
from pronunciation_assessor.core.errors import InvalidInputError

RIFF_TAG = b"RIFF"
WAVE_TAG = b"WAVE"
_HEADER_LENGTH = 12

EMPTY_AUDIO = "empty audio"

# Emoji blocks, dingbats, regional indicators, variation selector and ZWJ.
_EMOJI_RE = re.compile(
    "[\U0001F000-\U0001FAFF\U00002600-\U000027BF\U0001F1E6-\U0001F1FF\uFE0F\u200D]"
)

# (offset, magic, mime) for coarse container sniffing.
_MAGIC_SIGNATURES: tuple[tuple[int, bytes, str], ...] = (
    (0, b"OggS", "audio/ogg"),
    (0, b"fLaC", "audio/flac"),
    (0, b"ID3", "audio/mpeg"),
    (0, b"\x1a\x45\xdf\xa3", "audio/webm"),
    (4, b"ftyp", "audio/mp4"),
)


@dataclass
class ValidationReport:
    """Outcome of an intake check: valid, or the list of violations."""

    errors: list[str] = field(default_factory=list)
    mime_type: str = "application/octet-stream"
    byte_length: int = 0

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def raise_for_errors(self) -> None:
        if self.errors:
            raise InvalidInputError(self.errors)


def has_canonical_header(data: bytes) -> bool:
    """True if the first 12 bytes carry the RIFF/WAVE container tags."""
    if len(data) < _HEADER_LENGTH:
        return False
    return data[0:4] == RIFF_TAG and data[8:12] == WAVE_TAG


def sniff_mime_type(data: bytes) -> str:
    """Guess a MIME type from the leading magic bytes."""
    if has_canonical_header(data):
        return "audio/wav"
    for offset, magic, mime in _MAGIC_SIGNATURES:
        if data[offset:offset + len(magic)] == magic:
            return mime
    # MPEG audio frame sync without an ID3 tag
    if len(data) >= 2 and data[0] == 0xFF and (data[1] & 0xE0) == 0xE0:
        return "audio/mpeg"
    return "application/octet-stream"


def format_bytes(num_bytes: int) -> str:
    """Human-readable byte count, e.g. "1 KB" or "50 MB"."""
    if num_bytes < 1024:
        return "{} Bytes".format(num_bytes)
    size = float(num_bytes)
    for unit in ("KB", "MB", "GB"):
        size /= 1024.0
        if size < 1024.0:
            break
    return "{:g} {}".format(round(size, 2), unit)


def validate_audio(
    data: bytes | None,
    *,
    min_bytes: int = AUDIO_MIN_BYTES,
    max_bytes: int = AUDIO_MAX_BYTES,
    allowed_mime_types: Sequence[str] = ALLOWED_AUDIO_MIME_TYPES,
    require_canonical: bool = False,
) -> ValidationReport:
    """Check an audio buffer's presence, size, container type, and (optionally) header.

    Args:
        data: The raw audio bytes from the transport layer.
        min_bytes: Smallest accepted buffer, inclusive.
        max_bytes: Largest accepted buffer, inclusive.
        allowed_mime_types: Sniffed container types that may proceed.
        require_canonical: Also verify the RIFF/WAVE header.

    Returns:
        A ValidationReport; ``is_valid`` is False when any check failed.
    """
    if not data:
        return ValidationReport(errors=[EMPTY_AUDIO])

    report = ValidationReport(mime_type=sniff_mime_type(data), byte_length=len(data))

    if len(data) < min_bytes:
        report.errors.append(
            "audio too small (minimum {}, got {})".format(
                format_bytes(min_bytes), format_bytes(len(data))
            )
        )
    if len(data) > max_bytes:
        report.errors.append(
            "audio too large (maximum {}, got {})".format(
                format_bytes(max_bytes), format_bytes(len(data))
            )
        )
    if report.mime_type not in allowed_mime_types:
        report.errors.append("unsupported audio format ({})".format(report.mime_type))

    if require_canonical and not has_canonical_header(data):
        report.errors.append("audio is not a WAV container (missing RIFF/WAVE header)")

    return report


def validate_reference_text(text: str | None) -> list[str]:
    """Return every violated constraint of a reference text (empty if valid)."""
    if text is None or not text.strip():
        return ["reference text is empty"]

    errors: list[str] = []
    if len(text) < REFERENCE_TEXT_MIN_LENGTH:
        errors.append(
            "reference text shorter than {} characters".format(REFERENCE_TEXT_MIN_LENGTH)
        )
    if len(text) > REFERENCE_TEXT_MAX_LENGTH:
        errors.append(
            "reference text longer than {} characters (got {})".format(
                REFERENCE_TEXT_MAX_LENGTH, len(text)
            )
        )
    if "<" in text or ">" in text:
        errors.append("reference text must not contain HTML tags")
    if _EMOJI_RE.search(text):
        errors.append("reference text must not contain emoji")
    if any(unicodedata.category(ch) == "Cc" and not ch.isspace() for ch in text):
        errors.append("reference text must not contain control characters")
    return errors


def validate_language(language: str | None) -> list[str]:
    if language in SUPPORTED_LANGUAGES:
        return []
    return [
        "unsupported language {!r} (supported: {})".format(
            language, ", ".join(SUPPORTED_LANGUAGES)
        )
    ]
