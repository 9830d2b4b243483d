"""Core assessment stages and their intermediate representation.

WHY: The core package holds everything that decides a score: intake
checks, audio normalization, text normalization, alignment, scoring and
result assembly. It has no knowledge of HTTP, chat transports or storage.

HOW: ir.py defines the data structures, errors.py the failure taxonomy,
one module per stage, and pipeline.py wires the stages together.

RULES:
- Stages are pure functions except the normalizer (subprocess) and the
  injected recognizer
- IR dataclasses are the contract between stages; change with care
"""

from pronunciation_assessor.core.pipeline import (
    AssessmentOutcome,
    AssessmentPipeline,
    AssessmentRequest,
    Recognizer,
)

__all__ = ["AssessmentOutcome", "AssessmentPipeline", "AssessmentRequest", "Recognizer"]
