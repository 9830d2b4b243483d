"""Plain text assessment report.

WHY: Learners want a quick readable summary: what the recognizer heard,
the five scores, how many mistakes, and which words went wrong.

HOW: Renders four blocks separated by blank lines: the recognized text,
one line per score with a band label, the error count, and one line per
word in alignment order.

RULES:
- Score bands: >= 80 "good", >= 60 "fair", otherwise "poor"
- Word marks: ✓ correct, ✗ omitted, ↑ inserted
- Word line format: "word" (score) mark
- No trailing whitespace on any line
- Output suffix: "-assessment.txt"
- Media type: "text/plain"
"""

from __future__ import annotations

from typing import List

from pronunciation_assessor.core.ir import AssessmentResult, ErrorType, WordResult
from pronunciation_assessor.formatters.base import BaseFormatter, FormatterOutput

_ERROR_MARKS = {
    ErrorType.NONE: "✓",
    ErrorType.OMISSION: "✗",
    ErrorType.INSERTION: "↑",
}


def score_band(score: int) -> str:
    if score >= 80:
        return "good"
    if score >= 60:
        return "fair"
    return "poor"


def error_mark(error_type: ErrorType) -> str:
    return _ERROR_MARKS[error_type]


def _format_word(word: WordResult) -> str:
    return '"{word}" ({score:g}) {mark}'.format(
        word=word.word, score=word.accuracy_score, mark=error_mark(word.error_type),
    )


def _score_lines(result: AssessmentResult) -> List[str]:
    scores = result.scores
    rows = [
        ("Accuracy", scores.accuracy_score),
        ("Fluency", scores.fluency_score),
        ("Completeness", scores.completeness_score),
        ("Pronunciation", scores.overall_score),
        ("Prosody", scores.prosody_score),
    ]
    return [
        "{label:<15}{score:>3}  {band}".format(label=label + ":", score=score, band=score_band(score))
        for label, score in rows
    ]


class PlainTextReportFormatter(BaseFormatter):
    """Formatter that produces a human-readable assessment report."""

    suffix = "-assessment.txt"
    media_type = "text/plain"

    @property
    def name(self) -> str:
        return "Text report"

    def format(self, result: AssessmentResult) -> FormatterOutput:
        blocks = [
            "Recognized text:\n\"{}\"".format(result.recognized_text),
            "Scores:\n" + "\n".join(_score_lines(result)),
            "Errors: {}".format(result.error_count),
        ]
        if result.words:
            blocks.append("Words:\n" + "\n".join(_format_word(w) for w in result.words))

        return FormatterOutput(
            suffix=self.suffix,
            content="\n\n".join(blocks) + "\n",
            media_type=self.media_type,
        )
