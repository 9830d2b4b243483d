"""Test doubles and data builders shared by the test modules.

conftest.py exposes the common ones as fixtures; tests that need custom
variants import from here directly.
"""

from __future__ import annotations

import io
from typing import Any, Dict, List, Optional

import numpy as np
import soundfile as sf

from pronunciation_assessor.core.ir import (
    FluencyUnit,
    RecognitionStatus,
    RecognizedWord,
    RecognizerResponse,
)


def make_wav(
    duration_s: float = 1.0,
    sample_rate: int = 16000,
    subtype: str = "PCM_16",
    channels: int = 1,
) -> bytes:
    """Synthesize a quiet 440 Hz tone as WAV bytes."""
    frames = int(duration_s * sample_rate)
    t = np.arange(frames) / sample_rate
    tone = 0.1 * np.sin(2 * np.pi * 440.0 * t)
    if channels > 1:
        tone = np.column_stack([tone] * channels)
    buf = io.BytesIO()
    sf.write(buf, tone, sample_rate, subtype=subtype, format="WAV")
    return buf.getvalue()


class FakeRecognizer:
    """Recognizer that returns a canned response (or raises)."""

    def __init__(
        self,
        response: Optional[RecognizerResponse] = None,
        error: Optional[Exception] = None,
    ) -> None:
        self.response = response
        self.error = error
        self.calls: List[Dict[str, Any]] = []

    async def recognize(self, audio: bytes, reference_text: str, language: str) -> RecognizerResponse:
        self.calls.append({"audio": audio, "reference_text": reference_text, "language": language})
        if self.error is not None:
            raise self.error
        return self.response


class FakeTranscoder:
    """Transcoder that returns fixed bytes instead of running ffmpeg."""

    def __init__(self, output: bytes = b"", error: Optional[Exception] = None) -> None:
        self.output = output
        self.error = error
        self.calls: List[bytes] = []

    async def transcode(self, data: bytes) -> bytes:
        self.calls.append(data)
        if self.error is not None:
            raise self.error
        return self.output


def make_response(
    words: List[tuple],
    fluency: float = 80.0,
    prosody: Optional[float] = 70.0,
    status: RecognitionStatus = RecognitionStatus.SUCCESS,
) -> RecognizerResponse:
    """Build a RecognizerResponse from (word, accuracy) pairs.

    Each word lasts 300 ms; the single fluency unit spans all of them.
    """
    recognized = [
        RecognizedWord(word=w, offset_ms=i * 300, duration_ms=300, accuracy_score=acc)
        for i, (w, acc) in enumerate(words)
    ]
    text = " ".join(w for w, _ in words)
    return RecognizerResponse(
        recognition_status=status,
        recognized_text=text,
        lexical_text=text,
        words=recognized,
        fluency_units=[FluencyUnit(score=fluency, duration_ms=300 * max(1, len(words)))],
        prosody_scores=[prosody] if prosody is not None else [],
    )


# ---------------------------------------------------------------------------
# Azure response documents
# ---------------------------------------------------------------------------


def azure_payload_the_sat() -> Dict[str, Any]:
    """Azure detailed response for reference "The cat sat." read as "the sat"."""
    return {
        "RecognitionStatus": "Success",
        "Offset": 500000,
        "Duration": 15000000,
        "DisplayText": "The sat.",
        "NBest": [
            {
                "Confidence": 0.91,
                "Lexical": "the sat",
                "ITN": "the sat",
                "MaskedITN": "the sat",
                "Display": "The sat.",
                "AccuracyScore": 90.0,
                "FluencyScore": 80.0,
                "CompletenessScore": 67.0,
                "PronScore": 81.0,
                "ProsodyScore": 70.0,
                "Words": [
                    {
                        "Word": "the",
                        "Offset": 500000,
                        "Duration": 3000000,
                        "AccuracyScore": 94.0,
                        "ErrorType": "None",
                        "Phonemes": [
                            {"Phoneme": "ð", "AccuracyScore": 92.0, "Offset": 500000, "Duration": 1000000},
                            {"Phoneme": "ə", "AccuracyScore": 96.0, "Offset": 1500000, "Duration": 2000000},
                        ],
                    },
                    {
                        "Word": "cat",
                        "Offset": 0,
                        "Duration": 0,
                        "AccuracyScore": 0.0,
                        "ErrorType": "Omission",
                    },
                    {
                        "Word": "sat",
                        "Offset": 4000000,
                        "Duration": 5000000,
                        "AccuracyScore": 86.0,
                        "ErrorType": "None",
                    },
                ],
            }
        ],
    }


