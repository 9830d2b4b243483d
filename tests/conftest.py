"""Shared test fixtures for the pronunciation_assessor test suite.

WHY: Most test modules need the same building blocks: real WAV bytes in
and out of the canonical format and a realistic Azure response document.

HOW: WAV bytes are synthesized with numpy and written by soundfile into
memory (see helpers.make_wav). The recognizer and transcoder doubles in
helpers.py record their calls so tests can assert that invalid input
never reaches them.

RULES:
- No test touches the network or needs a real ffmpeg binary
- The sample Azure payload is the "the cat sat" / "the sat" case:
  one omission, completeness 67, overall 67
"""

from __future__ import annotations

from typing import Any, Dict

import pytest

from pronunciation_assessor.api.models import parse_recognition_result
from pronunciation_assessor.core.ir import RecognizerResponse

from helpers import azure_payload_the_sat, make_wav


@pytest.fixture
def canonical_wav() -> bytes:
    """One second of mono 16-bit PCM at 16 kHz."""
    return make_wav()


@pytest.fixture
def cd_quality_wav() -> bytes:
    """One second of stereo 16-bit PCM at 44.1 kHz (needs conversion)."""
    return make_wav(sample_rate=44100, channels=2)


@pytest.fixture
def sample_azure_payload() -> Dict[str, Any]:
    return azure_payload_the_sat()


@pytest.fixture
def the_sat_response() -> RecognizerResponse:
    """The sample Azure payload parsed into a RecognizerResponse."""
    return parse_recognition_result(azure_payload_the_sat())
