"""Assembly of the final AssessmentResult."""

from __future__ import annotations

from typing import Sequence

from pronunciation_assessor.core.ir import (
    AlignedToken,
    AssessmentResult,
    ErrorType,
    RecognitionStatus,
    ScoreSet,
    WordResult,
)


def count_errors(tokens: Sequence[AlignedToken]) -> int:
    return sum(1 for t in tokens if t.error_type is not ErrorType.NONE)


def assemble_result(
    tokens: Sequence[AlignedToken],
    scores: ScoreSet,
    status: RecognitionStatus,
    recognized_text: str,
) -> AssessmentResult:
    """Merge alignment and scores into the caller-facing result."""
    return AssessmentResult(
        recognition_status=status,
        recognized_text=recognized_text,
        scores=scores,
        error_count=count_errors(tokens),
        words=[
            WordResult(word=t.text, accuracy_score=t.accuracy_score, error_type=t.error_type)
            for t in tokens
        ],
    )
