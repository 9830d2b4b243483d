"""Result formatter registry.

WHY: The CLI and the HTTP API need a single lookup to find a formatter by
name.

HOW: FORMATTERS maps string keys to formatter *classes* (not instances).
Callers instantiate as needed: ``formatter = FORMATTERS["json"]()``.

RULES:
- Keys are snake_case identifiers (used in CLI flags and API responses)
- Values are BaseFormatter subclasses (not instances)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from pronunciation_assessor.formatters.json_result import JsonResultFormatter
from pronunciation_assessor.formatters.plain_text import PlainTextReportFormatter

if TYPE_CHECKING:
    from pronunciation_assessor.formatters.base import BaseFormatter

FORMATTERS: dict[str, type[BaseFormatter]] = {
    "json": JsonResultFormatter,
    "plain_text": PlainTextReportFormatter,
}
