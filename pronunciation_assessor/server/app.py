"""FastAPI application exposing pronunciation assessment over HTTP.

WHY: Front ends and chat bots need an HTTP endpoint that takes a voice
recording and a reference sentence and returns scores. FastAPI provides
multipart parsing, OpenAPI documentation and dependency injection.

HOW: POST /assessments reads the uploaded audio and form fields, runs the
AssessmentPipeline and returns the result synchronously (recordings are
at most 55 s, so there is no job queue). The pipeline comes from the
get_pipeline dependency, which opens an AzureSpeechClient per request;
tests override it with a fake recognizer.

RULES:
- Pipeline failures map to ErrorResponse with a status per kind:
  invalid_input 400, conversion_failed / recognition_failed / no_match
  422, internal_scoring_error 500
- Missing recognizer credentials are a 503, not a pipeline failure
- Python 3.9+ compatible (no match/case, no PEP 604 unions)
"""

from __future__ import annotations

import logging
from typing import Annotated, AsyncIterator, Dict, List

from fastapi import Depends, FastAPI, File, Form, HTTPException, UploadFile
from fastapi.responses import JSONResponse

from pronunciation_assessor import __version__
from pronunciation_assessor.api.client import AzureSpeechClient
from pronunciation_assessor.config import DEFAULT_LANGUAGE, LOG_LEVEL, SUPPORTED_LANGUAGES
from pronunciation_assessor.core.errors import (
    AssessmentError,
    ConversionFailedError,
    InternalScoringError,
    InvalidInputError,
    NoMatchError,
    RecognitionFailedError,
)
from pronunciation_assessor.core.pipeline import AssessmentPipeline, AssessmentRequest
from pronunciation_assessor.formatters import FORMATTERS
from pronunciation_assessor.server.models import (
    AssessmentResponse,
    ErrorResponse,
    FormatInfo,
    HealthResponse,
)

logger = logging.getLogger(__name__)

ERROR_STATUS_CODES: Dict[str, int] = {
    InvalidInputError.kind: 400,
    ConversionFailedError.kind: 422,
    RecognitionFailedError.kind: 422,
    NoMatchError.kind: 422,
    InternalScoringError.kind: 500,
}

app = FastAPI(
    title="Pronunciation Assessor API",
    description=(
        "Score a read-aloud recording against its reference text. Upload the "
        "audio with the sentence and language; the response carries accuracy, "
        "fluency, completeness, prosody and overall scores plus per-word "
        "omission and insertion marks."
    ),
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)


# ---------------------------------------------------------------------------
# Dependencies and helpers
# ---------------------------------------------------------------------------


async def get_pipeline() -> AsyncIterator[AssessmentPipeline]:
    """Yield a pipeline backed by a request-scoped Azure client."""
    try:
        client = AzureSpeechClient()
    except ValueError as exc:
        logger.error("recognizer not configured: %s", exc)
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    async with client:
        yield AssessmentPipeline(recognizer=client)


def _error_response(error: AssessmentError, job_id: str) -> JSONResponse:
    body = ErrorResponse(
        detail=error.reason,
        kind=error.kind,
        violations=error.violations if isinstance(error, InvalidInputError) else None,
        job_id=job_id,
    )
    return JSONResponse(
        status_code=ERROR_STATUS_CODES.get(error.kind, 500),
        content=body.model_dump(exclude_none=True),
    )


# ---------------------------------------------------------------------------
# Endpoints: Assessments
# ---------------------------------------------------------------------------


@app.post(
    "/assessments",
    response_model=AssessmentResponse,
    tags=["assessments"],
    summary="Assess pronunciation of a recording",
    description=(
        "Upload a recording (any format ffmpeg can decode, up to 50 MB and "
        "55 s) with the reference text. Returns the assessment result."
    ),
    responses={
        400: {"model": ErrorResponse, "description": "Invalid audio, text or language"},
        422: {"model": ErrorResponse, "description": "Conversion or recognition failed, or no speech"},
        500: {"model": ErrorResponse, "description": "Scoring failed"},
        503: {"model": ErrorResponse, "description": "Recognizer not configured"},
    },
)
async def create_assessment(
    file: Annotated[
        UploadFile,
        File(description="Voice recording to assess."),
    ],
    pipeline: Annotated[AssessmentPipeline, Depends(get_pipeline)],
    reference_text: Annotated[
        str,
        Form(description="The sentence the speaker was asked to read (1–500 characters)."),
    ] = "",
    language: Annotated[
        str,
        Form(description="Assessment language: {}.".format(", ".join(SUPPORTED_LANGUAGES))),
    ] = DEFAULT_LANGUAGE,
):
    audio = await file.read()
    request = AssessmentRequest(reference_text=reference_text, audio=audio, language=language)
    outcome = await pipeline.assess(request)

    if not outcome.ok:
        return _error_response(outcome.error, outcome.job_id)

    document = outcome.result.to_dict()
    document["jobId"] = outcome.job_id
    return AssessmentResponse.model_validate(document)


# ---------------------------------------------------------------------------
# Endpoints: Formats
# ---------------------------------------------------------------------------


@app.get(
    "/formats",
    response_model=List[FormatInfo],
    tags=["formats"],
    summary="List available result formats",
    description="Returns the result formats the CLI can write.",
)
async def list_formats() -> List[FormatInfo]:
    result = []
    for key, formatter_cls in sorted(FORMATTERS.items()):
        formatter = formatter_cls()
        result.append(FormatInfo(
            key=key,
            name=formatter.name,
            suffix=formatter.suffix,
            media_type=formatter.media_type,
        ))
    return result


# ---------------------------------------------------------------------------
# Endpoints: Health
# ---------------------------------------------------------------------------


@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["health"],
    summary="Health check",
    description="Liveness check for load balancers and orchestrators.",
)
async def health_check() -> HealthResponse:
    return HealthResponse(status="ok", version=__version__)


def run_api() -> None:
    """Entry point for the pronunciation-api console script."""
    import uvicorn

    logging.basicConfig(
        level=LOG_LEVEL.upper(),
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )
    uvicorn.run(app, host="0.0.0.0", port=8000)


if __name__ == "__main__":
    run_api()
