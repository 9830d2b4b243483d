"""Sequence alignment of reference tokens against recognized tokens.

WHY: The recognizer reports what was said; the user wanted to know how
that compares to what should have been said. Aligning the two token
sequences tells us which reference words were skipped (Omission),
which recognized words were extra (Insertion), and which matched.

HOW: difflib.SequenceMatcher produces opcodes (equal / insert / delete /
replace) over the two token lists. Each opcode range is translated into
AlignedTokens:

  equal   → recognized word, ErrorType.NONE
  delete  → zero-filled word keyed by the reference text, OMISSION
  insert  → recognized word, INSERTION
  replace → INSERTION over the recognized range, then OMISSION over the
            reference range

RULES:
- A substitution is never a partial match: it always costs one omission
  and one insertion, which drives completeness and accuracy arithmetic
- recognized_words must line up 1:1 with recognized_tokens
- autojunk is off so long references are not silently de-weighted
- Duplicate or reordered words get difflib's standard treatment only
"""

from __future__ import annotations

from difflib import SequenceMatcher
from typing import Sequence

from pronunciation_assessor.core.errors import InternalScoringError
from pronunciation_assessor.core.ir import AlignedToken, ErrorType, RecognizedWord


def _tag(words: Sequence[RecognizedWord], error_type: ErrorType) -> list[AlignedToken]:
    return [AlignedToken(word=w, error_type=error_type) for w in words]


def _omissions(reference_tokens: Sequence[str]) -> list[AlignedToken]:
    return [
        AlignedToken(word=RecognizedWord.omitted(token), error_type=ErrorType.OMISSION)
        for token in reference_tokens
    ]


def get_opcodes(
    reference_tokens: Sequence[str],
    recognized_tokens: Sequence[str],
) -> list[tuple[str, int, int, int, int]]:
    matcher = SequenceMatcher(None, list(reference_tokens), list(recognized_tokens), autojunk=False)
    return matcher.get_opcodes()


def align(
    reference_tokens: Sequence[str],
    recognized_tokens: Sequence[str],
    recognized_words: Sequence[RecognizedWord],
) -> list[AlignedToken]:
    """Align reference tokens against recognized tokens.

    Args:
        reference_tokens: Normalized tokens of the reference text.
        recognized_tokens: Normalized tokens of the recognizer transcript.
        recognized_words: The recognizer's timed words, one per recognized token.

    Returns:
        AlignedTokens in opcode order.

    Raises:
        InternalScoringError: If the word list does not match the token list.
    """
    if len(recognized_words) != len(recognized_tokens):
        raise InternalScoringError(
            "recognizer returned {} timed words for {} transcript tokens".format(
                len(recognized_words), len(recognized_tokens)
            )
        )

    aligned: list[AlignedToken] = []
    for tag, i1, i2, j1, j2 in get_opcodes(reference_tokens, recognized_tokens):
        if tag == "equal":
            aligned.extend(_tag(recognized_words[j1:j2], ErrorType.NONE))
        elif tag == "delete":
            aligned.extend(_omissions(reference_tokens[i1:i2]))
        elif tag == "insert":
            aligned.extend(_tag(recognized_words[j1:j2], ErrorType.INSERTION))
        elif tag == "replace":
            aligned.extend(_tag(recognized_words[j1:j2], ErrorType.INSERTION))
            aligned.extend(_omissions(reference_tokens[i1:i2]))
    return aligned
