from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from datetime import date, datetime

from .framework import (
    CROSS_CUTTING_THEMES,
    POLICY_THEMES,
    CrossCuttingDefinition,
    Stage,
    ThemeDefinition,
)
from .models import (
    AssessmentLevel,
    AssessmentStatus,
    Assessor,
    Benchmark,
    BenchmarkComparison,
    BenchmarkSet,
    CrossCuttingTheme,
    PolicyAssessment,
    SubTheme,
    Theme,
    TrendPoint,
)
from .recommendations import generate_policy_recommendations
from .scoring import (
    calculate_overall_score,
    calculate_theme_score,
    clamp_score,
    score_to_stage,
    stage_to_score,
)


def refresh_theme(theme: Theme) -> Theme:
    """Re-derive sub-theme stages, then the theme score and stage."""
    for sub in theme.sub_themes:
        sub.stage = score_to_stage(sub.score)
    theme.overall_score = calculate_theme_score(theme)
    theme.stage = score_to_stage(theme.overall_score)
    return theme


def new_policy_assessment(
    level: AssessmentLevel,
    assessor: Assessor,
    assessment_date: date | None = None,
    school_id: str | None = None,
    district_id: str | None = None,
    themes: Sequence[ThemeDefinition] = POLICY_THEMES,
    cross_cutting: Sequence[CrossCuttingDefinition] = CROSS_CUTTING_THEMES,
) -> PolicyAssessment:
    """
    Build a fully-populated draft assessment from the framework catalog.

    Every sub-theme and cross-cutting theme starts at the Latent anchor and the
    derived fields are computed before returning.
    """
    now = datetime.utcnow()
    initial = stage_to_score(Stage.LATENT)
    assessment = PolicyAssessment(
        level=AssessmentLevel(level),
        assessor=assessor,
        assessment_date=assessment_date or now.date(),
        school_id=school_id,
        district_id=district_id,
        themes=[
            Theme(
                code=definition.code,
                name=definition.name,
                description=definition.description,
                sub_themes=[
                    SubTheme(
                        code=sub.code,
                        name=sub.name,
                        description=sub.description,
                        score=float(initial),
                        stage=Stage.LATENT,
                        last_assessed=now,
                    )
                    for sub in definition.sub_themes
                ],
            )
            for definition in themes
        ],
        cross_cutting_themes=[
            CrossCuttingTheme(
                code=definition.code,
                name=definition.name,
                description=definition.description,
                score=float(initial),
                stage=Stage.LATENT,
            )
            for definition in cross_cutting
        ],
        created_at=now,
        updated_at=now,
    )
    return ScoringService().recalculate(assessment)


class ScoringService:
    """
    Keeps an assessment's derived fields consistent with its raw scores.

    Every edit method finishes with a full ``recalculate`` pass so callers never
    observe a theme score, overall score or recommendation list that lags the
    sub-theme scores.
    """

    def __init__(self, logger: logging.Logger | None = None):
        self.logger = logger or logging.getLogger(__name__)

    def recalculate(self, assessment: PolicyAssessment) -> PolicyAssessment:
        for theme in assessment.themes:
            refresh_theme(theme)
        for cross in assessment.cross_cutting_themes:
            cross.stage = score_to_stage(cross.score)

        assessment.overall_score = calculate_overall_score(assessment)
        assessment.overall_stage = score_to_stage(assessment.overall_score)
        assessment.recommendations = generate_policy_recommendations(assessment, self.logger)

        self.logger.debug(
            "Recalculated assessment %s: overall=%s (%s), %d recommendations",
            assessment.id,
            assessment.overall_score,
            assessment.overall_stage.value,
            len(assessment.recommendations),
        )
        return assessment

    # ---------- edits ----------

    def _require_sub_theme(
        self, assessment: PolicyAssessment, theme_code: str, sub_theme_code: str
    ) -> SubTheme:
        theme = assessment.get_theme(theme_code)
        if theme is None:
            raise KeyError(f"Unknown theme code: {theme_code}")
        sub_theme = theme.get_sub_theme(sub_theme_code)
        if sub_theme is None:
            raise KeyError(f"Unknown sub-theme code {sub_theme_code} in theme {theme_code}")
        return sub_theme

    def _require_cross_cutting(self, assessment: PolicyAssessment, code: str) -> CrossCuttingTheme:
        cross = assessment.get_cross_cutting_theme(code)
        if cross is None:
            raise KeyError(f"Unknown cross-cutting theme code: {code}")
        return cross

    def set_sub_theme_score(
        self,
        assessment: PolicyAssessment,
        theme_code: str,
        sub_theme_code: str,
        score: float,
    ) -> PolicyAssessment:
        sub_theme = self._require_sub_theme(assessment, theme_code, sub_theme_code)
        sub_theme.score = clamp_score(score)
        sub_theme.stage = score_to_stage(sub_theme.score)
        sub_theme.last_assessed = datetime.utcnow()
        assessment.updated_at = sub_theme.last_assessed
        return self.recalculate(assessment)

    def set_sub_theme_stage(
        self,
        assessment: PolicyAssessment,
        theme_code: str,
        sub_theme_code: str,
        stage: Stage | str,
    ) -> PolicyAssessment:
        """Snap the sub-theme score to the stage anchor."""
        return self.set_sub_theme_score(
            assessment, theme_code, sub_theme_code, stage_to_score(stage)
        )

    def set_cross_cutting_score(
        self, assessment: PolicyAssessment, code: str, score: float
    ) -> PolicyAssessment:
        cross = self._require_cross_cutting(assessment, code)
        cross.score = clamp_score(score)
        cross.stage = score_to_stage(cross.score)
        assessment.updated_at = datetime.utcnow()
        return self.recalculate(assessment)

    def set_cross_cutting_stage(
        self, assessment: PolicyAssessment, code: str, stage: Stage | str
    ) -> PolicyAssessment:
        return self.set_cross_cutting_score(assessment, code, stage_to_score(stage))

    def add_sub_theme_evidence(
        self,
        assessment: PolicyAssessment,
        theme_code: str,
        sub_theme_code: str,
        evidence: Iterable[str],
        notes: str | None = None,
    ) -> PolicyAssessment:
        sub_theme = self._require_sub_theme(assessment, theme_code, sub_theme_code)
        sub_theme.evidence.extend(item for item in evidence if item)
        if notes is not None:
            sub_theme.notes = notes
        assessment.updated_at = datetime.utcnow()
        return assessment

    def add_cross_cutting_evidence(
        self,
        assessment: PolicyAssessment,
        code: str,
        evidence: Iterable[str],
        notes: str | None = None,
    ) -> PolicyAssessment:
        cross = self._require_cross_cutting(assessment, code)
        cross.evidence.extend(item for item in evidence if item)
        if notes is not None:
            cross.notes = notes
        assessment.updated_at = datetime.utcnow()
        return assessment


def calculate_policy_trends(assessments: Iterable[PolicyAssessment]) -> list[TrendPoint]:
    """
    Chronological score points for charting.

    Sorted ascending by assessment date; assessments sharing a date keep their
    input order. The input collection is left untouched.
    """
    ordered = sorted(assessments, key=lambda a: a.assessment_date)
    points: list[TrendPoint] = []
    for assessment in ordered:
        overall = calculate_overall_score(assessment)
        points.append(
            TrendPoint(
                assessment_id=assessment.id,
                date=assessment.assessment_date,
                overall_score=overall,
                stage=score_to_stage(overall),
                theme_scores={theme.code: calculate_theme_score(theme) for theme in assessment.themes},
            )
        )
    return points


def _gap(score: int, benchmark: Benchmark | None, scope: str) -> float:
    if benchmark is None:
        return float(score)
    value = getattr(benchmark, scope)
    return float(score) - (value.average if value is not None else 0.0)


def compare_to_benchmarks(
    assessment: PolicyAssessment, benchmarks: BenchmarkSet
) -> tuple[BenchmarkComparison, list[BenchmarkComparison]]:
    """
    Score differences against national, regional and global reference averages.

    Returns the overall comparison and one comparison per theme. Missing
    benchmark values count as an average of 0.
    """
    overall_score = calculate_overall_score(assessment)
    overall = BenchmarkComparison(
        code="overall",
        name="Overall",
        score=overall_score,
        stage=score_to_stage(overall_score),
        national=_gap(overall_score, benchmarks.overall, "national"),
        regional=_gap(overall_score, benchmarks.overall, "regional"),
        global_=_gap(overall_score, benchmarks.overall, "global_"),
    )

    themes: list[BenchmarkComparison] = []
    for theme in assessment.themes:
        score = calculate_theme_score(theme)
        bench = benchmarks.themes.get(theme.code)
        themes.append(
            BenchmarkComparison(
                code=theme.code,
                name=theme.name,
                score=score,
                stage=score_to_stage(score),
                national=_gap(score, bench, "national"),
                regional=_gap(score, bench, "regional"),
                global_=_gap(score, bench, "global_"),
            )
        )
    return overall, themes


def change_status(
    assessment: PolicyAssessment,
    status: AssessmentStatus | str,
    logger: logging.Logger | None = None,
) -> PolicyAssessment:
    """
    Move an assessment through draft → completed → approved → archived.

    Moving backwards is allowed but logged as a warning.
    """
    logger = logger or logging.getLogger(__name__)
    new_status = AssessmentStatus(status)
    current = AssessmentStatus(assessment.status)
    if new_status.rank < current.rank:
        logger.warning(
            "Assessment %s moved backwards from %s to %s",
            assessment.id,
            current.value,
            new_status.value,
        )
    assessment.status = new_status
    assessment.updated_at = datetime.utcnow()
    return assessment
