"""Async HTTP client for Azure Speech pronunciation assessment.

WHY: The pipeline needs a recognizer that, given canonical WAV audio and
the reference text, returns timed words with accuracy, fluency and
prosody scores. Azure's short-audio REST endpoint does this in a single
request, so no SDK or streaming session is required.

HOW: Uses httpx.AsyncClient for non-blocking HTTP. AzureSpeechClient is
an async context manager: enter it to open the connection pool, exit to
close it. recognize() POSTs the WAV body with a base64-encoded
Pronunciation-Assessment header and parses the JSON answer with
api.models.parse_recognition_result.

RULES:
- Always use the async context manager (async with AzureSpeechClient() as c:)
- Grading: HundredMark, granularity: Phoneme, miscue and prosody enabled
- Response format is "detailed" so NBest carries words and scores
- Non-2xx responses and transport errors raise RecognitionFailedError
- Malformed JSON raises InternalScoringError
- No retries; the caller decides whether to try again
"""

from __future__ import annotations

import base64
import json
import logging

import httpx

from pronunciation_assessor.api.models import parse_recognition_result
from pronunciation_assessor.config import (
    AZURE_REQUEST_TIMEOUT_S,
    CANONICAL_SAMPLE_RATE,
    load_azure_credentials,
)
from pronunciation_assessor.core.errors import InternalScoringError, RecognitionFailedError
from pronunciation_assessor.core.ir import RecognizerResponse

logger = logging.getLogger(__name__)

RECOGNITION_PATH = "/speech/recognition/conversation/cognitiveservices/v1"

_ERROR_BODY_CHARS = 300


def build_assessment_header(reference_text: str) -> str:
    """Encode the Pronunciation-Assessment header value.

    RULES:
    - JSON parameters, UTF-8, base64 (standard alphabet)
    - EnableMiscue lets Azure spot omissions/insertions itself; the core
      still re-aligns against the reference
    """
    params = {
        "ReferenceText": reference_text,
        "GradingSystem": "HundredMark",
        "Granularity": "Phoneme",
        "Dimension": "Comprehensive",
        "EnableMiscue": True,
        "EnableProsodyAssessment": True,
    }
    raw = json.dumps(params, ensure_ascii=False).encode("utf-8")
    return base64.b64encode(raw).decode("ascii")


class AzureSpeechClient:
    """Recognizer backed by the Azure Speech short-audio REST API.

    WHY: Implements the pipeline's Recognizer protocol against a real
    service while keeping HTTP details out of the core.

    HOW: Wraps httpx.AsyncClient with the subscription key header. Tests
    inject an httpx.MockTransport through ``transport``.

    RULES:
    - api_key / endpoint default to load_azure_credentials()
    - timeout covers the whole request; recognition of 55 s of audio can
      take tens of seconds
    """

    def __init__(
        self,
        api_key: str | None = None,
        endpoint: str | None = None,
        timeout_s: float = AZURE_REQUEST_TIMEOUT_S,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if api_key is None or endpoint is None:
            default_key, default_endpoint = load_azure_credentials()
            api_key = api_key or default_key
            endpoint = endpoint or default_endpoint
        self._api_key = api_key
        self._endpoint = endpoint.rstrip("/")
        self._timeout_s = timeout_s
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> AzureSpeechClient:
        self._client = httpx.AsyncClient(
            base_url=self._endpoint,
            headers={"Ocp-Apim-Subscription-Key": self._api_key},
            timeout=httpx.Timeout(self._timeout_s, connect=10.0),
            transport=self._transport,
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        if self._client:
            await self._client.aclose()
            self._client = None

    def _ensure_client(self) -> httpx.AsyncClient:
        """Return the active httpx client, raising if not in context manager."""
        if self._client is None:
            raise RuntimeError(
                "AzureSpeechClient must be used as an async context manager: "
                "async with AzureSpeechClient() as client: ..."
            )
        return self._client

    async def recognize(
        self,
        audio: bytes,
        reference_text: str,
        language: str,
    ) -> RecognizerResponse:
        """Run recognition with pronunciation assessment on canonical WAV audio.

        Args:
            audio: Mono 16-bit PCM 16 kHz WAV bytes.
            reference_text: What the speaker was supposed to say.
            language: BCP-47 locale, e.g. "en-US".

        Returns:
            The parsed RecognizerResponse.
        """
        client = self._ensure_client()
        headers = {
            "Content-Type": "audio/wav; codecs=audio/pcm; samplerate={}".format(CANONICAL_SAMPLE_RATE),
            "Accept": "application/json",
            "Pronunciation-Assessment": build_assessment_header(reference_text),
        }
        params = {"language": language, "format": "detailed"}

        try:
            resp = await client.post(RECOGNITION_PATH, params=params, headers=headers, content=audio)
        except httpx.HTTPError as exc:
            raise RecognitionFailedError("speech service unreachable: {}".format(exc)) from exc

        if resp.status_code != 200:
            raise RecognitionFailedError(
                "speech service error {}: {}".format(resp.status_code, resp.text[:_ERROR_BODY_CHARS])
            )

        try:
            payload = resp.json()
        except ValueError as exc:
            raise InternalScoringError("speech service returned invalid JSON") from exc
        if not isinstance(payload, dict):
            raise InternalScoringError("speech service returned a non-object JSON body")

        logger.debug(
            "speech service status=%s nbest=%d",
            payload.get("RecognitionStatus"), len(payload.get("NBest") or []),
        )
        return parse_recognition_result(payload)
