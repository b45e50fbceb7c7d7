"""Tests for CoverageScorer and the score-to-color mapping."""

from __future__ import annotations

import logging
import math

import pytest
from pydantic import ValidationError

from domain.coverage.errors import InvalidScoreError
from domain.coverage.scoring import (
    CoverageScorer,
    ScoringWeights,
    coverage_color,
    coverage_hue,
)
from domain.coverage.value_objects import TechnologyClass


# ===========================================================================
# Weights
# ===========================================================================
@pytest.mark.parametrize(
    "status,weight",
    [("5G", 1.0), ("4G", 0.7), ("3G", 0.4), ("other", 0.1), ("LTE", 0.1), ("", 0.1)],
)
def test_default_weights(status, weight):
    assert CoverageScorer().weight(status) == weight


def test_weights_must_lie_in_unit_interval():
    with pytest.raises(ValidationError):
        ScoringWeights(five_g=1.5)
    with pytest.raises(ValidationError):
        ScoringWeights(other=-0.1)


def test_weights_for_class():
    weights = ScoringWeights()
    assert weights.for_class(TechnologyClass.FIVE_G) == 1.0
    assert weights.for_class(TechnologyClass.OTHER) == 0.1


# ===========================================================================
# Score
# ===========================================================================
def test_score_is_mean_weight():
    assert CoverageScorer().score(["5G", "4G"]) == pytest.approx(0.85)
    assert CoverageScorer().score(["5G", "5G", "3G", "unknown"]) == pytest.approx(
        (1.0 + 1.0 + 0.4 + 0.1) / 4
    )


def test_score_of_nothing_is_zero():
    assert CoverageScorer().score([]) == 0.0


def test_tally_counts_unknown_statuses_as_other():
    score, breakdown = CoverageScorer().tally(["5G", "LTE", "2G", "4G"])

    assert breakdown.as_dict() == {"5G": 1, "4G": 1, "3G": 0, "other": 2}
    assert score == pytest.approx((1.0 + 0.1 + 0.1 + 0.7) / 4)


def test_score_stays_in_unit_interval():
    scorer = CoverageScorer()
    for statuses in (["5G"] * 1000, ["other"] * 7, ["5G", "4G", "3G", "x"] * 31):
        assert 0.0 <= scorer.score(statuses) <= 1.0


def test_alternate_weights():
    scorer = CoverageScorer(ScoringWeights(five_g=0.5, other=0.0))
    assert scorer.score(["5G", "satellite"]) == pytest.approx(0.25)


# ===========================================================================
# Color mapping
# ===========================================================================
@pytest.mark.parametrize(
    "score,expected",
    [
        (1, "hsl(120, 100%, 50%)"),
        (0.5, "hsl(60, 100%, 50%)"),
        (0, "hsl(0, 100%, 50%)"),
        (0.25, "hsl(30, 100%, 50%)"),
    ],
)
def test_coverage_color(score, expected):
    assert coverage_color(score) == expected


def test_hue_is_linear_in_score():
    for s in (0.0, 0.1, 0.33, 0.85, 1.0):
        assert coverage_hue(s) == pytest.approx(s * 120)


def test_non_integer_hue_keeps_fraction():
    assert coverage_color(0.33) == f"hsl({0.33 * 120!r}, 100%, 50%)"


@pytest.mark.parametrize(
    "score,expected", [(1.5, 120.0), (-0.2, 0.0), (math.inf, 120.0), (-math.inf, 0.0)]
)
def test_out_of_range_scores_are_clamped_and_logged(score, expected, caplog):
    with caplog.at_level(logging.WARNING, logger="domain.coverage.scoring"):
        assert coverage_hue(score) == expected

    assert "Invalid coverage value" in caplog.text


def test_in_range_scores_do_not_log(caplog):
    with caplog.at_level(logging.WARNING, logger="domain.coverage.scoring"):
        coverage_color(0.7)
    assert caplog.records == []


def test_infinite_scores_render_as_clamped_colors():
    assert coverage_color(math.inf) == "hsl(120, 100%, 50%)"
    assert coverage_color(-math.inf) == "hsl(0, 100%, 50%)"


def test_nan_score_raises():
    with pytest.raises(InvalidScoreError):
        coverage_color(math.nan)
