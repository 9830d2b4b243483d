"""The assessment pipeline: audio + reference text → AssessmentOutcome.

WHY: Callers (CLI, HTTP API, a chat bot) need one call that runs every
stage in the right order and always comes back with something they can
render, whether the assessment worked or not.

HOW: AssessmentPipeline wires the stages together with two injected
collaborators, a Transcoder (used by the AudioNormalizer) and a
Recognizer. assess() runs:

  1. input validation (reference text, language, audio intake)
  2. audio normalization (conversion + post-conversion checks)
  3. recognition (external)
  4. text normalization of reference and transcript
  5. alignment
  6. scoring
  7. result assembly

Stage failures raise AssessmentError subclasses; assess() catches them
at the boundary and returns an AssessmentOutcome carrying the error.

RULES:
- Invalid input never reaches the transcoder or the recognizer
- No retries; each failure is reported once
- No score is reported when the recognition status is not Success
- Unexpected exceptions are logged with a traceback and reported as
  InternalScoringError
- Each call is independent; the pipeline holds no per-request state
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import Protocol

from pronunciation_assessor.config import DEFAULT_LANGUAGE
from pronunciation_assessor.core.alignment import align
from pronunciation_assessor.core.assembler import assemble_result
from pronunciation_assessor.core.errors import (
    AssessmentError,
    InternalScoringError,
    NoMatchError,
    RecognitionFailedError,
)
from pronunciation_assessor.core.intake import (
    ValidationReport,
    validate_audio,
    validate_language,
    validate_reference_text,
)
from pronunciation_assessor.core.ir import (
    AssessmentResult,
    RecognitionStatus,
    RecognizerResponse,
)
from pronunciation_assessor.core.normalizer import AudioNormalizer, Transcoder
from pronunciation_assessor.core.scoring import score_all
from pronunciation_assessor.core.text import normalize_text

logger = logging.getLogger(__name__)


class Recognizer(Protocol):
    """The external speech recognizer with pronunciation assessment."""

    async def recognize(
        self,
        audio: bytes,
        reference_text: str,
        language: str,
    ) -> RecognizerResponse:
        ...


@dataclass
class AssessmentRequest:
    reference_text: str
    audio: bytes
    language: str = DEFAULT_LANGUAGE


@dataclass
class AssessmentOutcome:
    """What assess() returns: a result, or a typed error with a reason."""

    job_id: str
    result: AssessmentResult | None = None
    error: AssessmentError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.result is not None


class AssessmentPipeline:
    """Run a pronunciation assessment end to end.

    Args:
        recognizer: External recognizer client (e.g. AzureSpeechClient).
        transcoder: Audio transcoder; defaults to FfmpegTranscoder.
        normalizer: Pre-built normalizer; overrides ``transcoder``.
    """

    def __init__(
        self,
        recognizer: Recognizer,
        transcoder: Transcoder | None = None,
        normalizer: AudioNormalizer | None = None,
    ) -> None:
        self.recognizer = recognizer
        self.normalizer = normalizer if normalizer is not None else AudioNormalizer(transcoder)

    async def assess(self, request: AssessmentRequest) -> AssessmentOutcome:
        job_id = uuid.uuid4().hex[:12]
        try:
            logger.info(
                "[%s] assessment started: language=%s text=%r",
                job_id, request.language, (request.reference_text or "")[:30],
            )
            result = await self._run(job_id, request)
        except InternalScoringError as exc:
            logger.error(
                "[%s] scoring failed: %s (reference=%r)",
                job_id, exc.reason, request.reference_text,
            )
            return AssessmentOutcome(job_id=job_id, error=exc)
        except AssessmentError as exc:
            logger.warning("[%s] assessment failed (%s): %s", job_id, exc.kind, exc.reason)
            return AssessmentOutcome(job_id=job_id, error=exc)
        except Exception as exc:
            logger.exception("[%s] unexpected assessment failure", job_id)
            return AssessmentOutcome(
                job_id=job_id,
                error=InternalScoringError("unexpected error: {}".format(exc)),
            )

        logger.info(
            "[%s] assessment completed: overall=%d errors=%d",
            job_id, result.scores.overall_score, result.error_count,
        )
        return AssessmentOutcome(job_id=job_id, result=result)

    async def _run(self, job_id: str, request: AssessmentRequest) -> AssessmentResult:
        reference_tokens, intake = self._validate(request)

        asset = await self.normalizer.normalize(request.audio, intake.mime_type)
        logger.debug(
            "[%s] audio ready from %s: %sHz %s-bit %.2fs %d bytes",
            job_id, asset.source_mime_type, asset.sample_rate, asset.bit_depth,
            asset.duration_s or 0.0, asset.byte_length,
        )

        response = await self.recognizer.recognize(
            asset.data, request.reference_text, request.language
        )
        self._check_status(response)
        logger.debug(
            "[%s] recognized %r (%d words)", job_id, response.recognized_text, len(response.words)
        )

        recognized_tokens = normalize_text(response.alignment_text)
        tokens = align(reference_tokens, recognized_tokens, response.words)
        scores = score_all(
            tokens,
            response.fluency_units,
            response.prosody_scores,
            len(reference_tokens),
            response.recognition_status,
        )
        return assemble_result(
            tokens, scores, response.recognition_status, response.recognized_text
        )

    @staticmethod
    def _validate(request: AssessmentRequest) -> tuple[list[str], ValidationReport]:
        """Check every input field.

        Returns the reference tokens and the audio intake report if all pass.
        """
        report = validate_audio(request.audio)
        field_errors = validate_reference_text(request.reference_text)
        field_errors.extend(validate_language(request.language))
        report.errors[:0] = field_errors

        reference_tokens: list[str] = []
        if report.is_valid:
            reference_tokens = normalize_text(request.reference_text)
            if not reference_tokens:
                report.errors.append("reference text contains no words")

        report.raise_for_errors()
        return reference_tokens, report

    @staticmethod
    def _check_status(response: RecognizerResponse) -> None:
        status = response.recognition_status
        if status is RecognitionStatus.SUCCESS:
            return
        if status in (RecognitionStatus.NO_MATCH, RecognitionStatus.INITIAL_SILENCE_TIMEOUT):
            raise NoMatchError("no speech could be recognized; make sure the audio is clear")
        raise RecognitionFailedError("speech recognition failed: {}".format(status.value))
