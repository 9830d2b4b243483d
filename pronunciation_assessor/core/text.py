"""Text normalization into comparable token sequences.

WHY: The reference sentence is typed by a user ("Hello, world!") while
the recognizer returns its own casing and punctuation. Alignment compares
tokens by equality, so both texts must go through the same canonical
form for token indices to be comparable.

HOW: Lower-case, delete the ASCII punctuation class, collapse runs of
whitespace, split on whitespace, drop empty tokens.

RULES:
- Apostrophes are kept ("don't" stays one token)
- Hyphens are deleted, not replaced by a space ("well-known" → "wellknown")
- Pure and deterministic: the same input always gives the same tokens
"""

from __future__ import annotations

import re

_PUNCTUATION_RE = re.compile(r"""[!"#$%&()*+,\-./:;<=>?@\[\\\]^_`{|}~]+""")
_WHITESPACE_RE = re.compile(r"\s+")


def normalize_text(text: str) -> list[str]:
    """Map a text to its normalized token sequence.

    Args:
        text: Reference sentence or recognizer transcript.

    Returns:
        Lower-case tokens without punctuation, in order.
    """
    cleaned = _PUNCTUATION_RE.sub("", text.lower())
    cleaned = _WHITESPACE_RE.sub(" ", cleaned)
    return [token for token in cleaned.split(" ") if token]
