"""Pydantic response models for the HTTP API.

WHY: The FastAPI endpoints need typed schemas for response serialization
and automatic OpenAPI documentation.

HOW: AssessmentResponse mirrors the camelCase result contract produced by
AssessmentResult.to_dict(), plus the job id. Field names are snake_case
in Python and camelCase on the wire (aliases). ErrorResponse carries the
failure kind so clients can branch without parsing messages.

RULES:
- All models use Field(description=...) for OpenAPI documentation
- Wire names match AssessmentResult.to_dict() exactly
- Python 3.9+ compatible (no PEP 604 unions, use Optional from typing)
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Assessment models
# ---------------------------------------------------------------------------


class WordResponse(BaseModel):
    """Per-word result in alignment order."""

    word: str = Field(description="Reference or recognized word.")
    accuracy_score: float = Field(
        alias="accuracyScore",
        description="Word accuracy score 0–100 (0 for omitted words).",
    )
    error_type: str = Field(
        alias="errorType",
        description="'None', 'Omission' (in reference, not spoken) or 'Insertion' (spoken, not in reference).",
    )

    model_config = {"populate_by_name": True}


class AssessmentResponse(BaseModel):
    """Result of a completed pronunciation assessment.

    RULES:
    - All scores are integers in [0, 100]
    - pronScore is the weighted overall score
    - errorCount counts words whose errorType is not 'None'
    """

    job_id: str = Field(alias="jobId", description="Identifier used in server logs for this request.")
    recognition_status: str = Field(alias="recognitionStatus", description="Recognizer status, e.g. 'Success'.")
    recognized_text: str = Field(alias="recognizedText", description="What the recognizer heard.")
    accuracy_score: int = Field(alias="accuracyScore", description="Mean accuracy of aligned words.")
    fluency_score: int = Field(alias="fluencyScore", description="Duration-weighted fluency.")
    completeness_score: int = Field(
        alias="completenessScore",
        description="Share of reference words that were spoken.",
    )
    pron_score: int = Field(alias="pronScore", description="Weighted overall pronunciation score.")
    prosody_score: int = Field(alias="prosodyScore", description="Mean prosody score.")
    error_count: int = Field(alias="errorCount", description="Number of omitted or inserted words.")
    words: List[WordResponse] = Field(description="Per-word results in alignment order.")

    model_config = {
        "populate_by_name": True,
        "json_schema_extra": {
            "examples": [
                {
                    "jobId": "3f2a9c1b7d4e",
                    "recognitionStatus": "Success",
                    "recognizedText": "The sat.",
                    "accuracyScore": 92,
                    "fluencyScore": 88,
                    "completenessScore": 67,
                    "pronScore": 80,
                    "prosodyScore": 85,
                    "errorCount": 1,
                    "words": [
                        {"word": "the", "accuracyScore": 95, "errorType": "None"},
                        {"word": "cat", "accuracyScore": 0, "errorType": "Omission"},
                        {"word": "sat", "accuracyScore": 90, "errorType": "None"},
                    ],
                }
            ]
        },
    }


# ---------------------------------------------------------------------------
# Misc models
# ---------------------------------------------------------------------------


class FormatInfo(BaseModel):
    """Description of an available result format."""

    key: str = Field(description="Format identifier.")
    name: str = Field(description="Human-readable format name.")
    suffix: str = Field(description="File suffix produced (e.g. '-assessment.json').")
    media_type: str = Field(description="MIME type of the rendered content.")


class ErrorResponse(BaseModel):
    """Standard error response body.

    RULES:
    - detail is always a human-readable error message
    - kind is the assessment failure kind when the pipeline produced one
    """

    detail: str = Field(description="Human-readable error description.")
    kind: Optional[str] = Field(
        default=None,
        description="Failure kind: invalid_input, conversion_failed, recognition_failed, "
                    "no_match or internal_scoring_error.",
    )
    violations: Optional[List[str]] = Field(
        default=None,
        description="Every failed input check, only present for invalid_input.",
    )
    job_id: Optional[str] = Field(
        default=None,
        description="Identifier used in server logs for this request.",
    )


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(description="Service health status.", json_schema_extra={"example": "ok"})
    version: str = Field(description="API version string.", json_schema_extra={"example": "0.1.0"})
