"""Score computation from aligned tokens and recognizer scalars.

WHY: The recognizer's own scores are computed against its idea of the
utterance. Re-deriving completeness and accuracy from our alignment makes
omissions and insertions count the way users expect, and the overall
score is weighted toward the weakest dimension so one bad aspect cannot
hide behind three good ones.

HOW: Each score is a small pure function. score_all() runs them together
and compute_overall() combines the four component scores.

RULES:
- Completeness = round(min(100, 100 * matched / max(1, n_ref))), where
  matched counts tokens tagged NONE; n_ref == 0 gives 100 by convention
- Accuracy = round(mean accuracy of non-INSERTION tokens), 0 if none
- Fluency = round(sum(score * duration) / sum(duration)), 0 if no duration
- Prosody = round(mean of prosody scalars), 0 if none
- Overall: ascending-sorted components weighted 0.4 / 0.2 / 0.2 / 0.2;
  for a status other than Success or Failed, 0.5 * accuracy + 0.5 * fluency
- Rounding is half-up to the nearest integer
"""

from __future__ import annotations

import math
from typing import Sequence

from pronunciation_assessor.core.ir import (
    AlignedToken,
    ErrorType,
    FluencyUnit,
    RecognitionStatus,
    ScoreSet,
)

OVERALL_WEIGHTS = (0.4, 0.2, 0.2, 0.2)

_WEIGHTED_STATUSES = frozenset({RecognitionStatus.SUCCESS, RecognitionStatus.FAILED})


def round_score(value: float) -> int:
    """Round half-up, e.g. 66.5 → 67 (Python's round() would give 66)."""
    return int(math.floor(value + 0.5))


def completeness_score(tokens: Sequence[AlignedToken], reference_token_count: int) -> int:
    if reference_token_count == 0:
        return 100
    matched = sum(1 for t in tokens if t.error_type is ErrorType.NONE)
    return round_score(min(100.0, 100.0 * matched / max(1, reference_token_count)))


def accuracy_score(tokens: Sequence[AlignedToken]) -> int:
    eligible = [t.accuracy_score for t in tokens if t.error_type is not ErrorType.INSERTION]
    if not eligible:
        return 0
    return round_score(sum(eligible) / len(eligible))


def fluency_score(units: Sequence[FluencyUnit]) -> int:
    total_duration = sum(u.duration_ms for u in units)
    if total_duration <= 0:
        return 0
    weighted = sum(u.score * u.duration_ms for u in units)
    return round_score(weighted / total_duration)


def prosody_score(scores: Sequence[float]) -> int:
    if not scores:
        return 0
    return round_score(sum(scores) / len(scores))


def compute_overall(
    accuracy: int,
    fluency: int,
    completeness: int,
    prosody: int,
    status: RecognitionStatus,
) -> int:
    """Combine the component scores into the overall pronunciation score.

    The lowest component gets weight 0.4 and the others 0.2 each. When
    the recognition status is inconclusive, only accuracy and fluency
    are averaged.
    """
    if status not in _WEIGHTED_STATUSES:
        return round_score(accuracy * 0.5 + fluency * 0.5)
    ordered = sorted((accuracy, fluency, completeness, prosody))
    return round_score(sum(score * weight for score, weight in zip(ordered, OVERALL_WEIGHTS)))


def score_all(
    tokens: Sequence[AlignedToken],
    fluency_units: Sequence[FluencyUnit],
    prosody_scores: Sequence[float],
    reference_token_count: int,
    status: RecognitionStatus = RecognitionStatus.SUCCESS,
) -> ScoreSet:
    """Compute the full ScoreSet for one assessment."""
    accuracy = accuracy_score(tokens)
    fluency = fluency_score(fluency_units)
    completeness = completeness_score(tokens, reference_token_count)
    prosody = prosody_score(prosody_scores)
    return ScoreSet(
        accuracy_score=accuracy,
        fluency_score=fluency,
        completeness_score=completeness,
        prosody_score=prosody,
        overall_score=compute_overall(accuracy, fluency, completeness, prosody, status),
    )
