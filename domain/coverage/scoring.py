"""Coverage Bounded Context - Scoring.

Pure scoring logic: technology weights, the mean-weight segment score, and
the score-to-color mapping consumed by renderers. NO I/O.
"""

from __future__ import annotations

import logging
import math
from collections import Counter
from collections.abc import Iterable

from pydantic import BaseModel, ConfigDict, Field

from domain.coverage.errors import InvalidScoreError
from domain.coverage.value_objects import CoverageBreakdown, TechnologyClass

# Module-level logger (reused across all calls)
logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------
RED_HUE = 0.0
GREEN_HUE = 120.0


class ScoringWeights(BaseModel):
    """Weight per technology class (Value Object).

    Every weight lies in [0, 1], which bounds any mean-weight score to [0, 1].
    """

    five_g: float = Field(default=1.0, ge=0, le=1)
    four_g: float = Field(default=0.7, ge=0, le=1)
    three_g: float = Field(default=0.4, ge=0, le=1)
    other: float = Field(default=0.1, ge=0, le=1)

    model_config = ConfigDict(frozen=True)

    def for_class(self, tech: TechnologyClass) -> float:
        if tech is TechnologyClass.FIVE_G:
            return self.five_g
        if tech is TechnologyClass.FOUR_G:
            return self.four_g
        if tech is TechnologyClass.THREE_G:
            return self.three_g
        return self.other


class CoverageScorer:
    """Turns a multiset of statuses into a normalized coverage score.

    score = sum(weight(status)) / count, or 0 for an empty multiset.
    """

    def __init__(self, weights: ScoringWeights | None = None) -> None:
        self.weights = weights or ScoringWeights()

    def weight(self, status: str) -> float:
        """Weight of a raw status label; unknown labels use the "other" weight."""
        return self.weights.for_class(TechnologyClass.from_status(status))

    def score(self, statuses: Iterable[str]) -> float:
        score, _ = self.tally(statuses)
        return score

    def tally(self, statuses: Iterable[str]) -> tuple[float, CoverageBreakdown]:
        """Score and per-class counts for ``statuses`` in one pass."""
        counts: Counter[TechnologyClass] = Counter()
        weighted = 0.0
        for status in statuses:
            tech = TechnologyClass.from_status(status)
            counts[tech] += 1
            weighted += self.weights.for_class(tech)

        total = sum(counts.values())
        score = weighted / total if total > 0 else 0.0
        return score, CoverageBreakdown.from_counts(counts)


# ---------------------------------------------------------------------------
# Color mapping
# ---------------------------------------------------------------------------
def coverage_hue(score: float) -> float:
    """Linear hue from 0 (red) at score 0 to 120 (green) at score 1.

    Out-of-range scores, infinities included, are clamped to [0, 1] and
    logged; they never fail.

    Raises:
        InvalidScoreError: If score is NaN.
    """
    if math.isnan(score):
        raise InvalidScoreError(f"Coverage score must be a number, got {score}")
    if score < 0 or score > 1:
        logger.warning(
            "Invalid coverage value: %s. Must be between 0 and 1; clamping.", score
        )
        score = max(0.0, min(1.0, score))
    return RED_HUE + score * (GREEN_HUE - RED_HUE)


def coverage_color(score: float) -> str:
    """CSS color for a coverage score: ``hsl(<hue>, 100%, 50%)``.

    >>> coverage_color(1)
    'hsl(120, 100%, 50%)'
    >>> coverage_color(0.5)
    'hsl(60, 100%, 50%)'
    """
    return f"hsl({_format_number(coverage_hue(score))}, 100%, 50%)"


def _format_number(value: float) -> str:
    # Whole numbers render without a trailing ".0": hsl(120, 100%, 50%)
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))
