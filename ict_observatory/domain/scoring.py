"""
Stage/score primitives shared by the aggregators, the recommendation engine and
the trend calculator.

All aggregates are integer means rounded half-up (toward +infinity), so a mean
of exactly 62.5 becomes 63 and classifies as Established.
"""

from __future__ import annotations

import math
from collections.abc import Iterable

from .framework import STAGE_SCORES, Stage
from .models import PolicyAssessment, Theme

ADVANCED_THRESHOLD = 87.5
ESTABLISHED_THRESHOLD = 62.5
EMERGING_THRESHOLD = 37.5

MIN_SCORE = 0.0
MAX_SCORE = 100.0


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def clamp_score(score: float | int | None) -> float:
    """Validate a raw 0..100 score; returns it as float."""
    if score is None or isinstance(score, bool) or not isinstance(score, (int, float)):
        raise ValueError("Score must be a number between 0 and 100 inclusive.")
    if math.isnan(score) or not (MIN_SCORE <= score <= MAX_SCORE):
        raise ValueError("Score must be a number between 0 and 100 inclusive.")
    return float(score)


def score_to_stage(score: float) -> Stage:
    if score >= ADVANCED_THRESHOLD:
        return Stage.ADVANCED
    if score >= ESTABLISHED_THRESHOLD:
        return Stage.ESTABLISHED
    if score >= EMERGING_THRESHOLD:
        return Stage.EMERGING
    return Stage.LATENT


def stage_to_score(stage: Stage | str) -> int:
    return STAGE_SCORES[Stage(stage)]


def mean_score(scores: Iterable[float]) -> int:
    """Rounded mean; 0 for an empty collection."""
    values = list(scores)
    if not values:
        return 0
    return round_half_up(sum(values) / len(values))


def calculate_theme_score(theme: Theme) -> int:
    return mean_score(sub_theme.score for sub_theme in theme.sub_themes)


def calculate_overall_score(assessment: PolicyAssessment) -> int:
    """Mean of theme scores. Cross-cutting themes never move the headline number."""
    return mean_score(calculate_theme_score(theme) for theme in assessment.themes)
