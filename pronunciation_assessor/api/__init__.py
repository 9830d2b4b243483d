"""Recognizer client package — async interface to Azure Speech.

WHY: The pipeline treats speech recognition as an external service. This
package holds the one concrete implementation of the Recognizer protocol
and the code that turns Azure JSON into the core's RecognizerResponse.

HOW: client.py sends the HTTP request with httpx; models.py parses the
response into core IR dataclasses.

RULES:
- All Azure HTTP calls go through AzureSpeechClient
- Only models.py knows Azure field names
"""

from pronunciation_assessor.api.client import AzureSpeechClient
from pronunciation_assessor.api.models import parse_recognition_result

__all__ = ["AzureSpeechClient", "parse_recognition_result"]
