"""Error taxonomy of the assessment pipeline.

WHY: Callers must render a structured failure for every way an
assessment can go wrong, without special-casing arbitrary exceptions.
Each failure class carries a stable ``kind`` string and a human-readable
``reason`` that can be shown to the user as-is.

HOW: Stages raise these exceptions; AssessmentPipeline catches them at
its boundary and returns them inside an AssessmentOutcome.

RULES:
- InvalidInputError      — rejected before any external call
- ConversionFailedError  — transcoder timeout, non-zero exit, or
                           nonconforming output; audio is discarded
- RecognitionFailedError — recognizer reported failure or was unreachable
- NoMatchError           — recognizer heard no speech matching the language
- InternalScoringError   — malformed recognizer payload; never defaulted
"""

from __future__ import annotations

from typing import Iterable


class AssessmentError(Exception):
    """Base class for every failure the pipeline reports."""

    kind = "assessment_error"

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(reason)


class InvalidInputError(AssessmentError):
    """Raised for empty/oversized/malformed audio or bad reference text.

    All violated constraints are kept so the caller can show a complete
    diagnostic in one go.
    """

    kind = "invalid_input"

    def __init__(self, violations: Iterable[str]) -> None:
        self.violations = list(violations)
        super().__init__("; ".join(self.violations))


class ConversionFailedError(AssessmentError):
    kind = "conversion_failed"


class RecognitionFailedError(AssessmentError):
    kind = "recognition_failed"


class NoMatchError(RecognitionFailedError):
    kind = "no_match"


class InternalScoringError(AssessmentError):
    kind = "internal_scoring_error"
