"""Abstract base formatter and output container.

WHY: An AssessmentResult is rendered in several ways (machine-readable
JSON for integrations, a readable report for learners) but the CLI and
HTTP layers should treat every rendering the same way.

HOW: BaseFormatter is an ABC with a ``name`` property and a ``format()``
method. FormatterOutput bundles a file suffix with its content and MIME
type.

RULES:
- Subclasses MUST implement ``name`` and ``format()``
- Subclasses set the ``suffix`` and ``media_type`` class attributes
- ``suffix`` starts with a hyphen, e.g. ``"-assessment.json"``
- The caller is responsible for prepending the source filename stem
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from pronunciation_assessor.core.ir import AssessmentResult


@dataclass
class FormatterOutput:
    """One rendered output.

    Attributes:
        suffix: File suffix appended to the source stem,
                e.g. ``"-assessment.txt"`` → ``"reading-assessment.txt"``.
        content: The rendered text.
        media_type: MIME type for the content, e.g. ``"application/json"``.
    """

    suffix: str
    content: str
    media_type: str


class BaseFormatter(ABC):
    """Abstract base for all result formatters.

    To add a new output format:
    1. Create a new file in formatters/
    2. Subclass BaseFormatter
    3. Set suffix and media_type, implement format() and name
    4. Register in FORMATTERS dict in formatters/__init__.py
    """

    suffix: str = ""
    media_type: str = "text/plain"

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable format name, e.g. 'Text report'."""

    @abstractmethod
    def format(self, result: AssessmentResult) -> FormatterOutput:
        """Render one assessment result."""
