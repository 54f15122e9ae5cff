# ict_observatory/infrastructure/repositories_assessment.py
"""
Persistence for policy assessments.

Only raw inputs are stored: header fields, sub-theme scores and cross-cutting
scores with their evidence. Loading rebuilds the assessment from the framework
catalog, overlays the stored rows and recalculates, so theme scores, stages
and recommendations always reflect the current scoring rules.
"""

from __future__ import annotations

import builtins
from datetime import date, datetime
from typing import Any

from sqlalchemy.orm import Session, selectinload

from ..domain.framework import Stage
from ..domain.models import AssessmentLevel, AssessmentStatus, Assessor, PolicyAssessment
from ..domain.services import ScoringService, new_policy_assessment
from .exceptions import AssessmentNotFoundError
from .logging import get_logger
from .logging import log_database_operation as log_op
from .models import CrossCuttingScoreORM, PolicyAssessmentORM, SubThemeScoreORM
from .repositories_base import BaseRepository as GenericBaseRepository

logger = get_logger(__name__)


def assessment_to_domain(row: PolicyAssessmentORM, scoring: ScoringService | None = None) -> PolicyAssessment:
    assessment = new_policy_assessment(
        level=AssessmentLevel(row.level),
        assessor=Assessor(
            name=row.assessor_name, role=row.assessor_role, email=row.assessor_email
        ),
        assessment_date=row.assessment_date,
        school_id=row.school_id,
        district_id=row.district_id,
    )
    assessment.id = row.id
    assessment.status = AssessmentStatus(row.status)
    assessment.created_at = row.created_at
    assessment.updated_at = row.updated_at

    for stored in row.sub_theme_scores:
        theme = assessment.get_theme(stored.theme_code)
        sub_theme = theme.get_sub_theme(stored.sub_theme_code) if theme else None
        if sub_theme is None:
            logger.warning(
                f"Assessment {row.id}: dropping stored score for unknown sub-theme "
                f"{stored.theme_code}/{stored.sub_theme_code}"
            )
            continue
        sub_theme.score = stored.score
        sub_theme.evidence = list(stored.evidence or [])
        sub_theme.notes = stored.notes
        sub_theme.last_assessed = stored.last_assessed

    for stored in row.cross_cutting_scores:
        cross = assessment.get_cross_cutting_theme(stored.code)
        if cross is None:
            logger.warning(
                f"Assessment {row.id}: dropping stored score for unknown cross-cutting theme "
                f"{stored.code}"
            )
            continue
        cross.score = stored.score
        cross.evidence = list(stored.evidence or [])
        cross.notes = stored.notes

    return (scoring or ScoringService()).recalculate(assessment)


class AssessmentRepo(GenericBaseRepository[PolicyAssessmentORM]):
    model = PolicyAssessmentORM

    def __init__(self, session: Session):
        super().__init__(session)

    def _not_found(self, id_: Any) -> Exception:
        return AssessmentNotFoundError(id_)

    # -------- Read --------

    @log_op("assessment.get")
    def get(self, id_: Any) -> PolicyAssessmentORM | None:
        return super().get(id_)

    @log_op("assessment.load")
    def load(self, id_: int) -> PolicyAssessment:
        return assessment_to_domain(self.get_by_id_required(id_))

    @log_op("assessment.list")
    def list_assessments(
        self,
        school_id: str | None = None,
        district_id: str | None = None,
        level: AssessmentLevel | str | None = None,
        status: AssessmentStatus | str | None = None,
        date_from: date | None = None,
        date_to: date | None = None,
    ) -> builtins.list[PolicyAssessmentORM]:
        q = self.s.query(PolicyAssessmentORM).options(
            selectinload(PolicyAssessmentORM.sub_theme_scores),
            selectinload(PolicyAssessmentORM.cross_cutting_scores),
        )
        if school_id is not None:
            q = q.filter(PolicyAssessmentORM.school_id == school_id)
        if district_id is not None:
            q = q.filter(PolicyAssessmentORM.district_id == district_id)
        if level is not None:
            q = q.filter(PolicyAssessmentORM.level == AssessmentLevel(level).value)
        if status is not None:
            q = q.filter(PolicyAssessmentORM.status == AssessmentStatus(status).value)
        if date_from is not None:
            q = q.filter(PolicyAssessmentORM.assessment_date >= date_from)
        if date_to is not None:
            q = q.filter(PolicyAssessmentORM.assessment_date <= date_to)
        return q.order_by(PolicyAssessmentORM.assessment_date, PolicyAssessmentORM.id).all()

    # -------- Write --------

    @log_op("assessment.save")
    def save(self, assessment: PolicyAssessment, created_by_id: int | None = None) -> PolicyAssessment:
        """
        Insert or update ``assessment`` and write its id back onto it.

        Score rows are upserted by code; rows for codes the assessment no longer
        carries are removed.
        """
        header = {
            "level": AssessmentLevel(assessment.level).value,
            "assessor_name": assessment.assessor.name,
            "assessor_role": assessment.assessor.role,
            "assessor_email": assessment.assessor.email,
            "assessment_date": assessment.assessment_date,
            "school_id": assessment.school_id,
            "district_id": assessment.district_id,
            "status": AssessmentStatus(assessment.status).value,
            "overall_score": assessment.overall_score,
            "overall_stage": Stage(assessment.overall_stage).value,
            "updated_at": assessment.updated_at or datetime.utcnow(),
        }

        if assessment.id is None:
            row = self.create(
                created_by_id=created_by_id,
                created_at=assessment.created_at or datetime.utcnow(),
                **header,
            )
        else:
            row = self.get_by_id_required(assessment.id)
            for key, value in header.items():
                setattr(row, key, value)

        sub_rows = {r.sub_theme_code: r for r in row.sub_theme_scores}
        seen_sub: set[str] = set()
        for theme in assessment.themes:
            for sub_theme in theme.sub_themes:
                seen_sub.add(sub_theme.code)
                stored = sub_rows.get(sub_theme.code)
                if stored is None:
                    stored = SubThemeScoreORM(
                        theme_code=theme.code, sub_theme_code=sub_theme.code, score=0.0
                    )
                    row.sub_theme_scores.append(stored)
                stored.score = float(sub_theme.score)
                stored.evidence = list(sub_theme.evidence)
                stored.notes = sub_theme.notes
                stored.last_assessed = sub_theme.last_assessed
        for code, stored in sub_rows.items():
            if code not in seen_sub:
                row.sub_theme_scores.remove(stored)

        cross_rows = {r.code: r for r in row.cross_cutting_scores}
        seen_cross: set[str] = set()
        for cross in assessment.cross_cutting_themes:
            seen_cross.add(cross.code)
            stored = cross_rows.get(cross.code)
            if stored is None:
                stored = CrossCuttingScoreORM(code=cross.code, score=0.0)
                row.cross_cutting_scores.append(stored)
            stored.score = float(cross.score)
            stored.evidence = list(cross.evidence)
            stored.notes = cross.notes
        for code, stored in cross_rows.items():
            if code not in seen_cross:
                row.cross_cutting_scores.remove(stored)

        self._flush("save policy_assessments")
        assessment.id = row.id
        assessment.created_at = row.created_at
        return assessment

    @log_op("assessment.delete")
    def delete(self, obj: PolicyAssessmentORM) -> None:
        super().delete(obj)
