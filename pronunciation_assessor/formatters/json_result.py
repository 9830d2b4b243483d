"""JSON assessment result formatter.

WHY: Integrations (a chat bot, a web front end, a results store) consume
the camelCase result contract: recognitionStatus, recognizedText, the
five scores, errorCount and per-word results.

HOW: AssessmentResult.to_dict() builds the document, which is validated
with jsonschema against assessment_result_schema.json (shipped beside
this module) before it is serialized.

RULES:
- Output is validated before returning; a schema violation is a bug and
  propagates as jsonschema.ValidationError
- Non-ASCII text (e.g. zh-TW words) is written as-is, not escaped
- Output suffix: "-assessment.json"
- Media type: "application/json"
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import jsonschema

from pronunciation_assessor.core.ir import AssessmentResult
from pronunciation_assessor.formatters.base import BaseFormatter, FormatterOutput

_SCHEMA_PATH = Path(__file__).resolve().parent / "assessment_result_schema.json"

_CACHED_SCHEMA: dict[str, Any] | None = None


def get_schema() -> dict[str, Any]:
    """Load the result schema from disk, cached after the first call."""
    global _CACHED_SCHEMA
    if _CACHED_SCHEMA is None:
        with open(_SCHEMA_PATH, encoding="utf-8") as f:
            _CACHED_SCHEMA = json.load(f)
    return _CACHED_SCHEMA


class JsonResultFormatter(BaseFormatter):
    """Formatter that emits the schema-validated JSON result document."""

    suffix = "-assessment.json"
    media_type = "application/json"

    @property
    def name(self) -> str:
        return "JSON result"

    def format(self, result: AssessmentResult) -> FormatterOutput:
        """Serialize the result as indented JSON.

        Raises:
            jsonschema.ValidationError: If the document does not conform
                to the result schema.
        """
        document = result.to_dict()
        jsonschema.validate(instance=document, schema=get_schema())
        return FormatterOutput(
            suffix=self.suffix,
            content=json.dumps(document, indent=2, ensure_ascii=False) + "\n",
            media_type=self.media_type,
        )
