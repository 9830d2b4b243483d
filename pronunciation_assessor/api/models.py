"""Parsing of Azure Speech pronunciation-assessment responses.

WHY: Azure returns a nested JSON document (RecognitionStatus, DisplayText,
NBest[], Words[], Phonemes[]). The core only understands
RecognizerResponse. This module is the single place that knows Azure's
field names and units, so the rest of the code never touches raw JSON.

HOW: parse_recognition_result() walks the document and builds a
RecognizerResponse. Scores may sit directly on an object (REST detailed
format) or under a "PronunciationAssessment" sub-object (Speech SDK JSON);
_assessment_value() looks in both places.

RULES:
- Offsets and durations are 100-ns ticks; they are converted to ms
- Only NBest[0] is used; a Success result without NBest is malformed
  and raises InternalScoringError
- Words tagged "Omission" by Azure's own miscue detection were not
  spoken; they are dropped so words line up with the lexical transcript
- The utterance FluencyScore becomes one FluencyUnit spanning the
  utterance duration
- Scores outside [0, 100] are clamped, with a warning
"""

from __future__ import annotations

import logging
from typing import Any

from pronunciation_assessor.core.errors import InternalScoringError
from pronunciation_assessor.core.ir import (
    FluencyUnit,
    Phoneme,
    RecognitionStatus,
    RecognizedWord,
    RecognizerResponse,
)

logger = logging.getLogger(__name__)

_TICKS_PER_MS = 10_000


def ticks_to_ms(ticks: Any) -> int:
    return int(round(float(ticks or 0) / _TICKS_PER_MS))


def clamp_score(value: Any, field_name: str) -> float:
    """Coerce a recognizer score into [0, 100], logging out-of-range input."""
    try:
        score = float(value)
    except (TypeError, ValueError) as exc:
        raise InternalScoringError(
            "recognizer score {} is not a number: {!r}".format(field_name, value)
        ) from exc
    if score < 0.0 or score > 100.0:
        logger.warning("recognizer score %s=%s out of range, clamping", field_name, score)
        score = min(100.0, max(0.0, score))
    return score


def _assessment_value(obj: dict[str, Any], key: str) -> Any:
    nested = obj.get("PronunciationAssessment")
    if isinstance(nested, dict) and key in nested:
        return nested[key]
    return obj.get(key)


def parse_phoneme(data: dict[str, Any]) -> Phoneme:
    return Phoneme(
        phoneme=str(data.get("Phoneme", "")),
        accuracy_score=clamp_score(_assessment_value(data, "AccuracyScore") or 0, "Phoneme.AccuracyScore"),
        offset_ms=ticks_to_ms(data.get("Offset")),
        duration_ms=ticks_to_ms(data.get("Duration")),
    )


def parse_word(data: dict[str, Any]) -> RecognizedWord:
    """Parse one Azure word entry into a RecognizedWord."""
    if "Word" not in data:
        raise InternalScoringError("recognizer word entry has no 'Word' field")
    accuracy = _assessment_value(data, "AccuracyScore")
    return RecognizedWord(
        word=str(data["Word"]),
        offset_ms=ticks_to_ms(data.get("Offset")),
        duration_ms=ticks_to_ms(data.get("Duration")),
        accuracy_score=clamp_score(accuracy if accuracy is not None else 0, "Word.AccuracyScore"),
        phonemes=tuple(parse_phoneme(p) for p in data.get("Phonemes") or []),
    )


def parse_recognition_result(payload: dict[str, Any]) -> RecognizerResponse:
    """Convert an Azure recognition JSON document into a RecognizerResponse.

    Args:
        payload: The decoded JSON body of a recognition response.

    Returns:
        RecognizerResponse. For non-Success statuses only the status and
        display text are filled in.

    Raises:
        InternalScoringError: If a Success payload lacks NBest or scores.
    """
    status = RecognitionStatus.parse(payload.get("RecognitionStatus"))
    display_text = str(payload.get("DisplayText") or "")

    if status is not RecognitionStatus.SUCCESS:
        return RecognizerResponse(recognition_status=status, recognized_text=display_text)

    nbest = payload.get("NBest")
    if not nbest:
        raise InternalScoringError("recognizer payload has no NBest hypotheses")
    best = nbest[0]

    words = [
        parse_word(w)
        for w in best.get("Words") or []
        if _assessment_value(w, "ErrorType") != "Omission"
    ]

    fluency = _assessment_value(best, "FluencyScore")
    if fluency is None:
        raise InternalScoringError("recognizer payload has no FluencyScore")
    utterance_ms = ticks_to_ms(payload.get("Duration"))
    if utterance_ms <= 0:
        utterance_ms = sum(w.duration_ms for w in words)
    fluency_units = [FluencyUnit(score=clamp_score(fluency, "FluencyScore"), duration_ms=utterance_ms)]

    prosody = _assessment_value(best, "ProsodyScore")
    prosody_scores = [clamp_score(prosody, "ProsodyScore")] if prosody is not None else []

    return RecognizerResponse(
        recognition_status=status,
        recognized_text=display_text or str(best.get("Display") or ""),
        lexical_text=best.get("Lexical"),
        words=words,
        fluency_units=fluency_units,
        prosody_scores=prosody_scores,
    )
