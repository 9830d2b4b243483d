"""Tests for the Azure Speech client and response parsing.

WHY: The recognizer is the only external service. Its JSON must be
turned into the core's RecognizerResponse exactly (tick conversion,
omission filtering, score placement), and HTTP failures must surface as
RecognitionFailedError rather than raw httpx exceptions.

HOW: Parsing tests feed documents straight into parse_recognition_result.
Client tests route AzureSpeechClient through httpx.MockTransport so the
request can be inspected and the response controlled.
"""

from __future__ import annotations

import asyncio
import base64
import json

import httpx
import pytest

from pronunciation_assessor.api.client import (
    RECOGNITION_PATH,
    AzureSpeechClient,
    build_assessment_header,
)
from pronunciation_assessor.api.models import (
    clamp_score,
    parse_recognition_result,
    parse_word,
    ticks_to_ms,
)
from pronunciation_assessor.config import load_azure_credentials
from pronunciation_assessor.core.errors import InternalScoringError, RecognitionFailedError
from pronunciation_assessor.core.ir import RecognitionStatus

from helpers import azure_payload_the_sat


# ---------------------------------------------------------------------------
# Response parsing
# ---------------------------------------------------------------------------


class TestParseRecognitionResult:

    def test_success_payload(self, sample_azure_payload):
        response = parse_recognition_result(sample_azure_payload)

        assert response.recognition_status is RecognitionStatus.SUCCESS
        assert response.recognized_text == "The sat."
        assert response.lexical_text == "the sat"
        assert response.alignment_text == "the sat"
        assert response.prosody_scores == [70.0]

    def test_azure_omissions_are_dropped(self, sample_azure_payload):
        response = parse_recognition_result(sample_azure_payload)
        assert [w.word for w in response.words] == ["the", "sat"]
        assert [w.accuracy_score for w in response.words] == [94.0, 86.0]

    def test_ticks_become_milliseconds(self, sample_azure_payload):
        response = parse_recognition_result(sample_azure_payload)
        the = response.words[0]
        assert the.offset_ms == 50
        assert the.duration_ms == 300
        assert the.phonemes[1].phoneme == "ə"
        assert the.phonemes[1].duration_ms == 200

    def test_fluency_spans_utterance(self, sample_azure_payload):
        response = parse_recognition_result(sample_azure_payload)
        assert len(response.fluency_units) == 1
        assert response.fluency_units[0].score == 80.0
        assert response.fluency_units[0].duration_ms == 1500

    def test_fluency_duration_falls_back_to_word_durations(self, sample_azure_payload):
        del sample_azure_payload["Duration"]
        response = parse_recognition_result(sample_azure_payload)
        assert response.fluency_units[0].duration_ms == 800

    def test_nested_assessment_scores(self):
        payload = {
            "RecognitionStatus": "Success",
            "DisplayText": "Hello.",
            "Duration": 5000000,
            "NBest": [{
                "Lexical": "hello",
                "PronunciationAssessment": {"FluencyScore": 75.0, "ProsodyScore": 64.0},
                "Words": [{
                    "Word": "hello",
                    "Offset": 0,
                    "Duration": 4000000,
                    "PronunciationAssessment": {"AccuracyScore": 91.0, "ErrorType": "None"},
                }],
            }],
        }
        response = parse_recognition_result(payload)
        assert response.words[0].accuracy_score == 91.0
        assert response.fluency_units[0].score == 75.0
        assert response.prosody_scores == [64.0]

    def test_missing_prosody_is_empty(self, sample_azure_payload):
        del sample_azure_payload["NBest"][0]["ProsodyScore"]
        assert parse_recognition_result(sample_azure_payload).prosody_scores == []

    @pytest.mark.parametrize("status", ["NoMatch", "InitialSilenceTimeout", "BabbleTimeout", "Error"])
    def test_non_success_status_has_no_words(self, status):
        response = parse_recognition_result({"RecognitionStatus": status})
        assert response.recognition_status.value == status
        assert response.words == []

    def test_unknown_status(self):
        response = parse_recognition_result({"RecognitionStatus": "SomethingNew"})
        assert response.recognition_status is RecognitionStatus.UNKNOWN

    def test_success_without_nbest_is_malformed(self):
        with pytest.raises(InternalScoringError, match="no NBest"):
            parse_recognition_result({"RecognitionStatus": "Success", "DisplayText": "hi"})

    def test_success_without_fluency_is_malformed(self, sample_azure_payload):
        del sample_azure_payload["NBest"][0]["FluencyScore"]
        with pytest.raises(InternalScoringError, match="FluencyScore"):
            parse_recognition_result(sample_azure_payload)

    def test_word_without_text_is_malformed(self):
        with pytest.raises(InternalScoringError):
            parse_word({"AccuracyScore": 50})


class TestScalars:

    def test_ticks_to_ms(self):
        assert ticks_to_ms(10_000) == 1
        assert ticks_to_ms(None) == 0
        assert ticks_to_ms(15_000_000) == 1500

    def test_clamp_out_of_range(self):
        assert clamp_score(104.2, "x") == 100.0
        assert clamp_score(-3, "x") == 0.0
        assert clamp_score("88.5", "x") == 88.5

    def test_non_numeric_score_raises(self):
        with pytest.raises(InternalScoringError, match="not a number"):
            clamp_score("high", "AccuracyScore")


# ---------------------------------------------------------------------------
# Credentials
# ---------------------------------------------------------------------------


class TestCredentials:

    def test_region_builds_endpoint(self, monkeypatch):
        monkeypatch.setenv("AZURE_SPEECH_KEY", "k")
        monkeypatch.setenv("AZURE_SPEECH_REGION", "eastasia")
        monkeypatch.delenv("AZURE_SPEECH_ENDPOINT", raising=False)
        assert load_azure_credentials() == ("k", "https://eastasia.stt.speech.microsoft.com")

    def test_explicit_endpoint_wins(self, monkeypatch):
        monkeypatch.setenv("AZURE_SPEECH_KEY", "k")
        monkeypatch.setenv("AZURE_SPEECH_REGION", "eastasia")
        monkeypatch.setenv("AZURE_SPEECH_ENDPOINT", "https://speech.example.com/")
        assert load_azure_credentials() == ("k", "https://speech.example.com")

    def test_missing_key(self, monkeypatch):
        monkeypatch.delenv("AZURE_SPEECH_KEY", raising=False)
        with pytest.raises(ValueError, match="AZURE_SPEECH_KEY"):
            load_azure_credentials()

    def test_missing_region(self, monkeypatch):
        monkeypatch.setenv("AZURE_SPEECH_KEY", "k")
        monkeypatch.setenv("AZURE_SPEECH_REGION", "")
        monkeypatch.setenv("AZURE_SPEECH_ENDPOINT", "")
        with pytest.raises(ValueError, match="AZURE_SPEECH_REGION"):
            load_azure_credentials()


# ---------------------------------------------------------------------------
# AzureSpeechClient over a mock transport
# ---------------------------------------------------------------------------


def _client(handler) -> AzureSpeechClient:
    return AzureSpeechClient(
        api_key="test-key",
        endpoint="https://eastasia.stt.speech.microsoft.com",
        transport=httpx.MockTransport(handler),
    )


async def _recognize(client: AzureSpeechClient, audio=b"RIFF-audio", text="The cat sat.", language="en-US"):
    async with client:
        return await client.recognize(audio, text, language)


class TestAzureSpeechClient:

    def test_sends_assessment_request(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["request"] = request
            return httpx.Response(200, json=azure_payload_the_sat())

        response = asyncio.run(_recognize(_client(handler)))

        request = seen["request"]
        assert request.method == "POST"
        assert request.url.path == RECOGNITION_PATH
        assert request.url.params["language"] == "en-US"
        assert request.url.params["format"] == "detailed"
        assert request.headers["Ocp-Apim-Subscription-Key"] == "test-key"
        assert request.headers["Content-Type"].startswith("audio/wav")
        assert "samplerate=16000" in request.headers["Content-Type"]
        assert request.content == b"RIFF-audio"

        params = json.loads(base64.b64decode(request.headers["Pronunciation-Assessment"]))
        assert params["ReferenceText"] == "The cat sat."
        assert params["GradingSystem"] == "HundredMark"
        assert params["Granularity"] == "Phoneme"
        assert params["EnableMiscue"] is True
        assert params["EnableProsodyAssessment"] is True

        assert response.recognized_text == "The sat."

    def test_header_keeps_non_ascii_reference(self):
        header = build_assessment_header("今天天氣很好")
        assert json.loads(base64.b64decode(header))["ReferenceText"] == "今天天氣很好"

    def test_http_error_status(self):
        def handler(request):
            return httpx.Response(401, text="Access denied due to invalid subscription key")

        with pytest.raises(RecognitionFailedError, match="401"):
            asyncio.run(_recognize(_client(handler)))

    def test_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(RecognitionFailedError, match="unreachable"):
            asyncio.run(_recognize(_client(handler)))

    def test_invalid_json_body(self):
        def handler(request):
            return httpx.Response(200, text="<html>gateway</html>")

        with pytest.raises(InternalScoringError, match="invalid JSON"):
            asyncio.run(_recognize(_client(handler)))

    def test_requires_context_manager(self):
        client = _client(lambda request: httpx.Response(200, json={}))
        with pytest.raises(RuntimeError, match="async context manager"):
            asyncio.run(client.recognize(b"x", "hi", "en-US"))

    def test_missing_credentials_fail_at_construction(self, monkeypatch):
        monkeypatch.delenv("AZURE_SPEECH_KEY", raising=False)
        with pytest.raises(ValueError):
            AzureSpeechClient()
