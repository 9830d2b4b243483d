"""Configuration constants, input limits, and .env loading.

WHY: Centralizes every tunable value of the assessment pipeline (input
limits, recognizer audio requirements, transcoder settings, recognizer
credentials) so they are easy to find and override without touching
pipeline logic.

HOW: python-dotenv loads the .env file on import. Limits are module-level
constants; values that differ between deployments can be overridden via
environment variables. load_azure_credentials() gives a clear error when
the recognizer is not configured.

RULES:
- Audio limits match the recognizer's hard requirements (16 kHz, 16-bit,
  mono, 0.5–55 s) and the intake limits (1 KB–50 MB)
- Reference text is 1–500 characters
- Credentials are loaded from the environment, never hardcoded
"""

from __future__ import annotations

import os

from dotenv import load_dotenv

load_dotenv()

# ---------------------------------------------------------------------------
# Input limits
# ---------------------------------------------------------------------------

AUDIO_MIN_BYTES = int(os.getenv("AUDIO_MIN_BYTES", str(1024)))
AUDIO_MAX_BYTES = int(os.getenv("AUDIO_MAX_BYTES", str(50 * 1024 * 1024)))

AUDIO_MIN_DURATION_S = 0.5
AUDIO_MAX_DURATION_S = 55.0

REFERENCE_TEXT_MIN_LENGTH = 1
REFERENCE_TEXT_MAX_LENGTH = 500

# Containers ffmpeg is trusted to decode; anything else is rejected at intake.
ALLOWED_AUDIO_MIME_TYPES: tuple[str, ...] = (
    "audio/wav",
    "audio/ogg",
    "audio/mpeg",
    "audio/mp4",
    "audio/flac",
    "audio/webm",
)

# ---------------------------------------------------------------------------
# Canonical recognizer audio format
# ---------------------------------------------------------------------------

CANONICAL_SAMPLE_RATE = 16_000
CANONICAL_BIT_DEPTH = 16
CANONICAL_CHANNELS = 1
CANONICAL_CODEC = "pcm_s16le"

# ---------------------------------------------------------------------------
# Transcoder
# ---------------------------------------------------------------------------

FFMPEG_PATH = os.getenv("FFMPEG_PATH", "ffmpeg")
FFMPEG_TIMEOUT_S = float(os.getenv("FFMPEG_TIMEOUT_S", "30"))

# ---------------------------------------------------------------------------
# Languages
# ---------------------------------------------------------------------------

SUPPORTED_LANGUAGES: tuple[str, ...] = ("zh-TW", "en-US", "fr-FR")
DEFAULT_LANGUAGE = os.getenv("DEFAULT_LANGUAGE", "en-US")

# ---------------------------------------------------------------------------
# Recognizer (Azure Speech)
# ---------------------------------------------------------------------------

AZURE_SPEECH_REGION = os.getenv("AZURE_SPEECH_REGION", "")
AZURE_SPEECH_ENDPOINT = os.getenv("AZURE_SPEECH_ENDPOINT", "")
AZURE_REQUEST_TIMEOUT_S = float(os.getenv("AZURE_REQUEST_TIMEOUT_S", "60"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")


def load_azure_credentials() -> tuple[str, str]:
    """Load the Azure Speech key and endpoint URL from the environment.

    WHY: The recognizer client cannot work without credentials, and a
    missing key should fail loudly at construction time rather than as a
    401 on the first assessment.

    HOW: Reads AZURE_SPEECH_KEY plus either AZURE_SPEECH_ENDPOINT or
    AZURE_SPEECH_REGION (from which the short-audio endpoint is derived).

    RULES:
    - Raises ValueError if the key is missing or empty
    - Raises ValueError if neither endpoint nor region is configured
    - An explicit endpoint wins over the region-derived URL
    """
    key = os.getenv("AZURE_SPEECH_KEY", "").strip()
    if not key:
        raise ValueError(
            "Azure Speech key not configured. "
            "Add AZURE_SPEECH_KEY to the .env file."
        )

    endpoint = os.getenv("AZURE_SPEECH_ENDPOINT", AZURE_SPEECH_ENDPOINT).strip()
    if endpoint:
        return key, endpoint.rstrip("/")

    region = os.getenv("AZURE_SPEECH_REGION", AZURE_SPEECH_REGION).strip()
    if not region:
        raise ValueError(
            "Azure Speech region not configured. "
            "Add AZURE_SPEECH_REGION (or AZURE_SPEECH_ENDPOINT) to the .env file."
        )
    return key, "https://{}.stt.speech.microsoft.com".format(region)
