from __future__ import annotations

import json
import logging
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import asdict
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from ict_observatory.application import api as app_api
from ict_observatory.domain.framework import (
    CROSS_CUTTING_THEMES,
    POLICY_THEMES,
    STAGE_COLORS,
    STAGE_SCORES,
)
from ict_observatory.domain.models import (
    Benchmark,
    BenchmarkSet,
    BenchmarkValue,
    PolicyAssessment,
    User,
)
from ict_observatory.domain.permissions import (
    can_access_resource,
    get_role_description,
    get_role_display_name,
    get_role_permissions,
)
from ict_observatory.web.dependencies import get_current_user, get_db_session, require_permission
from ict_observatory.web.schemas import (
    AssessmentCreateRequest,
    AssessmentDetail,
    AssessmentSummary,
    AssessorUpdateRequest,
    BenchmarkComparisonOut,
    BenchmarkIn,
    BenchmarkRequest,
    BenchmarkResponse,
    CrossCuttingDefinitionOut,
    EvidenceRequest,
    FrameworkResponse,
    ICTReadinessOut,
    LoginRequest,
    LoginResponse,
    PasswordResetRequest,
    ReadinessRequest,
    RecommendationOut,
    RolePermissionsOut,
    SchoolMaturityOut,
    SchoolMaturityRequest,
    SchoolSummaryOut,
    SchoolSummaryRequest,
    ScoreUpdate,
    StageUpdate,
    StatusUpdate,
    ThemeDefinitionOut,
    TrendPointOut,
    TrendResponse,
    UserCreateRequest,
    UserOut,
    UserUpdateRequest,
)

router = APIRouter(prefix="/api")
logger = logging.getLogger(__name__)


@contextmanager
def _transaction(db: Session) -> Iterator[None]:
    try:
        yield
        db.commit()
    except Exception:
        db.rollback()
        raise


def _user_out(user: User) -> UserOut:
    return UserOut(
        id=user.id,
        email=user.email,
        first_name=user.first_name,
        last_name=user.last_name,
        full_name=user.full_name,
        role=user.role,
        role_display_name=get_role_display_name(user.role),
        district=user.district,
        sub_county=user.sub_county,
        school_id=user.school_id,
        is_active=user.is_active,
        last_login=user.last_login,
        created_at=user.created_at,
        updated_at=user.updated_at,
    )


def _permissions_out(user: User) -> RolePermissionsOut:
    return RolePermissionsOut(
        role=user.role.value,
        display_name=get_role_display_name(user.role),
        description=get_role_description(user.role),
        **asdict(get_role_permissions(user.role, user)),
    )


def _load_for(db: Session, assessment_id: int, user: User) -> PolicyAssessment:
    assessment = app_api.get_assessment(db, assessment_id)
    app_api.require_assessment_access(user, assessment)
    return assessment


def _scoped_filters(
    user: User, school_id: Optional[str], district_id: Optional[str]
) -> tuple[Optional[str], Optional[str]]:
    """Narrow list filters to the user's district or school when their role is scoped."""
    permissions = get_role_permissions(user.role, user)
    if permissions.restricted_to_district:
        district_id = permissions.restricted_to_district
    if permissions.restricted_to_school:
        school_id = permissions.restricted_to_school
    return school_id, district_id


def _benchmark(payload: BenchmarkIn) -> Benchmark:
    def value(v):
        return BenchmarkValue(average=v.average, stage=v.stage) if v is not None else None

    return Benchmark(
        national=value(payload.national),
        regional=value(payload.regional),
        global_=value(payload.global_),
    )


# ---------- framework ----------


@router.get("/health")
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/framework", response_model=FrameworkResponse)
def get_framework() -> FrameworkResponse:
    return FrameworkResponse(
        stage_scores={stage.value: score for stage, score in STAGE_SCORES.items()},
        stage_colors={stage.value: color for stage, color in STAGE_COLORS.items()},
        themes=[ThemeDefinitionOut.model_validate(t) for t in POLICY_THEMES],
        cross_cutting_themes=[CrossCuttingDefinitionOut.model_validate(c) for c in CROSS_CUTTING_THEMES],
    )


# ---------- assessments ----------


@router.get("/assessments", response_model=list[AssessmentSummary])
def list_assessments(
    school_id: Optional[str] = None,
    district_id: Optional[str] = None,
    level: Optional[str] = None,
    status_filter: Optional[str] = Query(default=None, alias="status"),
    db: Session = Depends(get_db_session),
    user: User = Depends(get_current_user),
) -> list[AssessmentSummary]:
    school_id, district_id = _scoped_filters(user, school_id, district_id)
    assessments = app_api.list_assessments(
        db, school_id=school_id, district_id=district_id, level=level, status=status_filter
    )
    return [
        AssessmentSummary.model_validate(a)
        for a in assessments
        if can_access_resource(user, "report", school_id=a.school_id, district=a.district_id)
    ]


@router.post(
    "/assessments", response_model=AssessmentDetail, status_code=status.HTTP_201_CREATED
)
def create_assessment(
    payload: AssessmentCreateRequest,
    db: Session = Depends(get_db_session),
    user: User = Depends(require_permission("can_edit_all_reports")),
) -> AssessmentDetail:
    permissions = get_role_permissions(user.role, user)
    school_id = permissions.restricted_to_school or payload.school_id
    district_id = permissions.restricted_to_district or payload.district_id
    with _transaction(db):
        assessment = app_api.initialise_assessment(
            db,
            level=payload.level,
            assessor_name=payload.assessor_name,
            assessor_role=payload.assessor_role,
            assessor_email=payload.assessor_email,
            assessment_date=payload.assessment_date,
            school_id=school_id,
            district_id=district_id,
            created_by_id=user.id,
        )
    return AssessmentDetail.model_validate(assessment)


@router.get("/assessments/{assessment_id}", response_model=AssessmentDetail)
def get_assessment(
    assessment_id: int,
    db: Session = Depends(get_db_session),
    user: User = Depends(get_current_user),
) -> AssessmentDetail:
    return AssessmentDetail.model_validate(_load_for(db, assessment_id, user))


@router.delete("/assessments/{assessment_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_assessment(
    assessment_id: int,
    db: Session = Depends(get_db_session),
    user: User = Depends(require_permission("can_delete_reports")),
) -> Response:
    _load_for(db, assessment_id, user)
    with _transaction(db):
        app_api.delete_assessment(db, assessment_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.put("/assessments/{assessment_id}/assessor", response_model=AssessmentDetail)
def update_assessor(
    assessment_id: int,
    payload: AssessorUpdateRequest,
    db: Session = Depends(get_db_session),
    user: User = Depends(require_permission("can_edit_all_reports")),
) -> AssessmentDetail:
    _load_for(db, assessment_id, user)
    with _transaction(db):
        assessment = app_api.update_assessor(
            db, assessment_id, name=payload.name, role=payload.role, email=payload.email
        )
    return AssessmentDetail.model_validate(assessment)


@router.put(
    "/assessments/{assessment_id}/themes/{theme_code}/sub-themes/{sub_theme_code}/score",
    response_model=AssessmentDetail,
)
def set_sub_theme_score(
    assessment_id: int,
    theme_code: str,
    sub_theme_code: str,
    payload: ScoreUpdate,
    db: Session = Depends(get_db_session),
    user: User = Depends(require_permission("can_edit_all_reports")),
) -> AssessmentDetail:
    _load_for(db, assessment_id, user)
    with _transaction(db):
        assessment = app_api.update_sub_theme_score(
            db, assessment_id, theme_code, sub_theme_code, payload.score
        )
    return AssessmentDetail.model_validate(assessment)


@router.put(
    "/assessments/{assessment_id}/themes/{theme_code}/sub-themes/{sub_theme_code}/stage",
    response_model=AssessmentDetail,
)
def set_sub_theme_stage(
    assessment_id: int,
    theme_code: str,
    sub_theme_code: str,
    payload: StageUpdate,
    db: Session = Depends(get_db_session),
    user: User = Depends(require_permission("can_edit_all_reports")),
) -> AssessmentDetail:
    _load_for(db, assessment_id, user)
    with _transaction(db):
        assessment = app_api.update_sub_theme_stage(
            db, assessment_id, theme_code, sub_theme_code, payload.stage
        )
    return AssessmentDetail.model_validate(assessment)


@router.post(
    "/assessments/{assessment_id}/themes/{theme_code}/sub-themes/{sub_theme_code}/evidence",
    response_model=AssessmentDetail,
)
def add_sub_theme_evidence(
    assessment_id: int,
    theme_code: str,
    sub_theme_code: str,
    payload: EvidenceRequest,
    db: Session = Depends(get_db_session),
    user: User = Depends(require_permission("can_edit_all_reports")),
) -> AssessmentDetail:
    _load_for(db, assessment_id, user)
    with _transaction(db):
        assessment = app_api.add_sub_theme_evidence(
            db, assessment_id, theme_code, sub_theme_code, payload.evidence, payload.notes
        )
    return AssessmentDetail.model_validate(assessment)


@router.put(
    "/assessments/{assessment_id}/cross-cutting/{code}/score", response_model=AssessmentDetail
)
def set_cross_cutting_score(
    assessment_id: int,
    code: str,
    payload: ScoreUpdate,
    db: Session = Depends(get_db_session),
    user: User = Depends(require_permission("can_edit_all_reports")),
) -> AssessmentDetail:
    _load_for(db, assessment_id, user)
    with _transaction(db):
        assessment = app_api.update_cross_cutting_score(db, assessment_id, code, payload.score)
    return AssessmentDetail.model_validate(assessment)


@router.put(
    "/assessments/{assessment_id}/cross-cutting/{code}/stage", response_model=AssessmentDetail
)
def set_cross_cutting_stage(
    assessment_id: int,
    code: str,
    payload: StageUpdate,
    db: Session = Depends(get_db_session),
    user: User = Depends(require_permission("can_edit_all_reports")),
) -> AssessmentDetail:
    _load_for(db, assessment_id, user)
    with _transaction(db):
        assessment = app_api.update_cross_cutting_stage(db, assessment_id, code, payload.stage)
    return AssessmentDetail.model_validate(assessment)


@router.post(
    "/assessments/{assessment_id}/cross-cutting/{code}/evidence", response_model=AssessmentDetail
)
def add_cross_cutting_evidence(
    assessment_id: int,
    code: str,
    payload: EvidenceRequest,
    db: Session = Depends(get_db_session),
    user: User = Depends(require_permission("can_edit_all_reports")),
) -> AssessmentDetail:
    _load_for(db, assessment_id, user)
    with _transaction(db):
        assessment = app_api.add_cross_cutting_evidence(
            db, assessment_id, code, payload.evidence, payload.notes
        )
    return AssessmentDetail.model_validate(assessment)


@router.put("/assessments/{assessment_id}/status", response_model=AssessmentDetail)
def update_status(
    assessment_id: int,
    payload: StatusUpdate,
    db: Session = Depends(get_db_session),
    user: User = Depends(require_permission("can_edit_all_reports")),
) -> AssessmentDetail:
    _load_for(db, assessment_id, user)
    with _transaction(db):
        assessment = app_api.update_assessment_status(db, assessment_id, payload.status)
    return AssessmentDetail.model_validate(assessment)


@router.get(
    "/assessments/{assessment_id}/recommendations", response_model=list[RecommendationOut]
)
def get_recommendations(
    assessment_id: int,
    db: Session = Depends(get_db_session),
    user: User = Depends(get_current_user),
) -> list[RecommendationOut]:
    assessment = _load_for(db, assessment_id, user)
    return [RecommendationOut.model_validate(r) for r in assessment.recommendations]


@router.get("/assessments/{assessment_id}/radar")
def get_theme_radar(
    assessment_id: int,
    db: Session = Depends(get_db_session),
    user: User = Depends(get_current_user),
) -> JSONResponse:
    _load_for(db, assessment_id, user)
    return JSONResponse(content=app_api.build_theme_radar(db, assessment_id))


@router.post("/assessments/{assessment_id}/benchmarks", response_model=BenchmarkResponse)
def compare_benchmarks(
    assessment_id: int,
    payload: BenchmarkRequest,
    db: Session = Depends(get_db_session),
    user: User = Depends(require_permission("can_view_analytics")),
) -> BenchmarkResponse:
    _load_for(db, assessment_id, user)
    benchmarks = BenchmarkSet(
        overall=_benchmark(payload.overall),
        themes={code: _benchmark(b) for code, b in payload.themes.items()},
    )
    overall, themes = app_api.compare_assessment_to_benchmarks(db, assessment_id, benchmarks)
    return BenchmarkResponse(
        overall=BenchmarkComparisonOut.model_validate(overall),
        themes=[BenchmarkComparisonOut.model_validate(t) for t in themes],
    )


@router.get("/assessments/{assessment_id}/exports/json")
def export_assessment_json(
    assessment_id: int,
    db: Session = Depends(get_db_session),
    user: User = Depends(require_permission("can_export_data")),
) -> JSONResponse:
    _load_for(db, assessment_id, user)
    payload = json.loads(app_api.export_assessment_json(db, assessment_id))
    headers = {"Content-Disposition": f"attachment; filename=assessment_{assessment_id}.json"}
    return JSONResponse(content=payload, headers=headers)


# ---------- trends ----------


@router.get("/trends", response_model=TrendResponse)
def get_trends(
    school_id: Optional[str] = None,
    district_id: Optional[str] = None,
    level: Optional[str] = None,
    include_figure: bool = False,
    db: Session = Depends(get_db_session),
    user: User = Depends(require_permission("can_view_analytics")),
) -> TrendResponse:
    school_id, district_id = _scoped_filters(user, school_id, district_id)
    points = app_api.get_policy_trends(
        db, school_id=school_id, district_id=district_id, level=level
    )
    figure = None
    if include_figure:
        figure = app_api.build_trend_chart(
            db, school_id=school_id, district_id=district_id, level=level
        )
    return TrendResponse(points=[TrendPointOut.model_validate(p) for p in points], figure=figure)


@router.get("/exports/assessments.csv")
def export_assessments_csv(
    school_id: Optional[str] = None,
    district_id: Optional[str] = None,
    level: Optional[str] = None,
    db: Session = Depends(get_db_session),
    user: User = Depends(require_permission("can_export_data")),
) -> Response:
    school_id, district_id = _scoped_filters(user, school_id, district_id)
    csv_text = app_api.export_assessments_csv(
        db, school_id=school_id, district_id=district_id, level=level
    )
    headers = {"Content-Disposition": "attachment; filename=assessments.csv"}
    return Response(content=csv_text, media_type="text/csv", headers=headers)


# ---------- school maturity ----------


@router.post("/schools/maturity", response_model=SchoolMaturityOut)
def assess_school_maturity(
    payload: SchoolMaturityRequest, user: User = Depends(get_current_user)
) -> SchoolMaturityOut:
    maturity = app_api.assess_school_maturity(payload.school, payload.reports, user=user)
    return SchoolMaturityOut.model_validate(maturity)


@router.post("/schools/readiness", response_model=ICTReadinessOut)
def assess_ict_readiness(
    payload: ReadinessRequest, user: User = Depends(require_permission("can_view_analytics"))
) -> ICTReadinessOut:
    return ICTReadinessOut.model_validate(app_api.assess_ict_readiness(payload.reports))


@router.post("/schools/summary", response_model=SchoolSummaryOut)
def summarise_schools(
    payload: SchoolSummaryRequest,
    user: User = Depends(require_permission("can_view_analytics")),
) -> SchoolSummaryOut:
    summary = app_api.summarise_schools(payload.schools, payload.reports)
    return SchoolSummaryOut.model_validate(summary)


# ---------- users ----------


@router.post("/auth/login", response_model=LoginResponse)
def login(payload: LoginRequest, db: Session = Depends(get_db_session)) -> LoginResponse:
    with _transaction(db):
        user = app_api.authenticate_user(db, payload.email, payload.password)
    return LoginResponse(user=_user_out(user), permissions=_permissions_out(user))


@router.get("/me", response_model=LoginResponse)
def whoami(user: User = Depends(get_current_user)) -> LoginResponse:
    return LoginResponse(user=_user_out(user), permissions=_permissions_out(user))


@router.get("/users", response_model=list[UserOut])
def list_users(
    role: Optional[str] = None,
    district: Optional[str] = None,
    is_active: Optional[bool] = None,
    db: Session = Depends(get_db_session),
    user: User = Depends(require_permission("can_manage_users")),
) -> list[UserOut]:
    permissions = get_role_permissions(user.role, user)
    if permissions.restricted_to_district:
        district = permissions.restricted_to_district
    users = app_api.list_users(db, role=role, district=district, is_active=is_active)
    return [_user_out(u) for u in users]


@router.post("/users", response_model=UserOut, status_code=status.HTTP_201_CREATED)
def create_user(
    payload: UserCreateRequest,
    db: Session = Depends(get_db_session),
    user: User = Depends(require_permission("can_manage_users")),
) -> UserOut:
    with _transaction(db):
        created = app_api.create_user(db, **payload.model_dump())
    return _user_out(created)


@router.get("/users/{user_id}", response_model=UserOut)
def get_user(
    user_id: int,
    db: Session = Depends(get_db_session),
    user: User = Depends(require_permission("can_manage_users")),
) -> UserOut:
    return _user_out(app_api.get_user(db, user_id))


@router.patch("/users/{user_id}", response_model=UserOut)
def update_user(
    user_id: int,
    payload: UserUpdateRequest,
    db: Session = Depends(get_db_session),
    user: User = Depends(require_permission("can_manage_users")),
) -> UserOut:
    with _transaction(db):
        updated = app_api.update_user(db, user_id, **payload.model_dump(exclude_unset=True))
    return _user_out(updated)


@router.delete("/users/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(
    user_id: int,
    db: Session = Depends(get_db_session),
    user: User = Depends(require_permission("can_manage_users")),
) -> Response:
    with _transaction(db):
        app_api.delete_user(db, user_id, acting_user_id=user.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/users/{user_id}/password", status_code=status.HTTP_204_NO_CONTENT)
def reset_password(
    user_id: int,
    payload: PasswordResetRequest,
    db: Session = Depends(get_db_session),
    user: User = Depends(require_permission("can_manage_users")),
) -> Response:
    with _transaction(db):
        app_api.reset_password(db, user_id, payload.new_password)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/exports/users.csv")
def export_users_csv(
    db: Session = Depends(get_db_session),
    user: User = Depends(require_permission("can_manage_users")),
) -> Response:
    csv_text = app_api.export_users_csv(db)
    headers = {"Content-Disposition": "attachment; filename=users.csv"}
    return Response(content=csv_text, media_type="text/csv", headers=headers)
