"""
Application API layer with comprehensive error handling and validation.

This module provides the high-level use cases of the policy observatory:
starting and scoring assessments, moving them through the review workflow,
trend and benchmark analysis, school maturity scoring, the user directory
and data exports. Each function validates its input, works through the
repositories, and converts unexpected failures into ``ObservatoryError``
with a user-friendly message.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import date
from typing import Any, TypeVar

from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..domain.framework import Stage
from ..domain.models import (
    AssessmentLevel,
    AssessmentStatus,
    Assessor,
    BenchmarkComparison,
    BenchmarkSet,
    PolicyAssessment,
    PolicyRecommendation,
    TrendPoint,
    User,
    UserRole,
)
from ..domain.permissions import RolePermissions, can_access_resource, get_role_permissions
from ..domain.schemas import (
    AssessmentCreationInput,
    AssessorInput,
    EvidenceInput,
    LoginInput,
    PasswordResetInput,
    SchoolMaturityInput,
    SchoolSummaryInput,
    ScoreInput,
    StageInput,
    StatusInput,
    UserCreateInput,
    UserUpdateInput,
    validate_input,
)
from ..domain.school_maturity import (
    ICTReadiness,
    ICTReport,
    SchoolPolicyMaturity,
    SchoolProfile,
    SchoolSummary,
    build_ict_report,
    build_school_profile,
    calculate_ict_readiness,
    calculate_school_policy_maturity,
    calculate_summary_stats,
)
from ..domain.services import (
    ScoringService,
    calculate_policy_trends,
    change_status,
    compare_to_benchmarks,
    new_policy_assessment,
)
from ..infrastructure.config import get_settings
from ..infrastructure.exceptions import (
    AuthenticationError,
    BusinessLogicError,
    ExportError,
    MultipleValidationError,
    ObservatoryError,
    PermissionDeniedError,
    UnknownThemeError,
    ValidationError,
    create_user_friendly_error_message,
    log_error_details,
)
from ..infrastructure.logging import LogContext, get_logger, log_operation, set_context
from ..infrastructure.repositories import (
    AssessmentRepo,
    UserRepo,
    assessment_to_domain,
    user_to_domain,
)
from ..infrastructure.security import hash_password, verify_password
from ..utils.charts import figure_to_payload, make_theme_radar, make_trend_figure
from ..utils.exports import (
    assessments_summary_to_csv,
    make_assessment_json_export,
    users_to_csv,
)

logger = get_logger(__name__)

R = TypeVar("R")


# ---------- shared helpers ----------


def _validated(
    schema_class: type[BaseModel],
    data: dict[str, Any],
    field: str,
    exclude_unset: bool = False,
) -> dict[str, Any]:
    """Validate ``data`` or raise ``ValidationError`` / ``MultipleValidationError``."""
    result = validate_input(schema_class, data, exclude_unset=exclude_unset)
    if result.success and result.data is not None:
        return result.data

    errors = [ValidationError(e.field or field, e.message, e.value) for e in result.errors]
    logger.warning(
        f"{schema_class.__name__} validation failed: "
        + "; ".join(f"{e.field}: {e.message}" for e in result.errors)
    )
    if len(errors) == 1:
        raise errors[0]
    raise MultipleValidationError(errors)


def _run(operation: str, context: dict[str, Any], fn: Callable[[], R]) -> R:
    """Run ``fn``; re-raise application errors as-is, wrap anything else."""
    try:
        return fn()
    except ObservatoryError:
        raise
    except Exception as e:
        error_details = log_error_details(e, {"operation": operation, **context})
        logger.error(f"Failed to {operation.replace('_', ' ')}", extra=error_details)
        raise ObservatoryError(
            f"Failed to {operation.replace('_', ' ')}: {str(e)}",
            details=error_details,
            user_message=create_user_friendly_error_message(e),
        ) from e


def _edit(
    session: Session,
    assessment_id: int,
    operation: str,
    code: str,
    edit: Callable[[ScoringService, PolicyAssessment], PolicyAssessment],
) -> PolicyAssessment:
    """Load, apply a scoring edit, persist; unknown framework codes become ``UnknownThemeError``."""
    set_context(assessment_id=assessment_id)

    def work() -> PolicyAssessment:
        repo = AssessmentRepo(session)
        assessment = repo.load(assessment_id)
        scoring = ScoringService(logger)
        try:
            edit(scoring, assessment)
        except KeyError as e:
            raise UnknownThemeError(code, assessment_id) from e
        repo.save(assessment)
        return assessment

    with LogContext(framework_code=code):
        return _run(operation, {"assessment_id": assessment_id}, work)


# ---------- permissions ----------


def require_permission(user: User, permission: str) -> RolePermissions:
    """
    Raise ``PermissionDeniedError`` unless ``user``'s role grants ``permission``.

    Example:
        >>> require_permission(current_user, "can_manage_users")
    """
    if not user.is_active:
        raise PermissionDeniedError(f"User {user.id} is inactive", operation=permission)
    permissions = get_role_permissions(user.role, user)
    if not getattr(permissions, permission, False):
        logger.warning(f"User {user.id} ({user.role.value}) denied {permission}")
        raise PermissionDeniedError(
            f"Role {user.role.value} lacks {permission}", operation=permission
        )
    return permissions


def require_assessment_access(user: User, assessment: PolicyAssessment) -> None:
    if not can_access_resource(
        user, "report", school_id=assessment.school_id, district=assessment.district_id
    ):
        raise PermissionDeniedError(
            f"User {user.id} cannot access assessment {assessment.id}",
            operation="view_assessment",
        )


# ---------- assessments ----------


@log_operation("initialise_assessment")
def initialise_assessment(
    session: Session,
    level: AssessmentLevel | str,
    assessor_name: str,
    assessor_role: str,
    assessor_email: str,
    assessment_date: date | None = None,
    school_id: str | None = None,
    district_id: str | None = None,
    created_by_id: int | None = None,
) -> PolicyAssessment:
    """
    Start a draft assessment with every theme populated from the framework catalog.

    All sub-themes and cross-cutting themes start at the Latent anchor (25), so
    a fresh assessment already carries its recommendation list.

    Raises:
        ValidationError: If the header fields are invalid

    Example:
        >>> assessment = initialise_assessment(
        ...     session, "school", "Jane Akello", "Head Teacher", "jane@school.ug",
        ...     school_id="SCH001", district_id="Kampala",
        ... )
        >>> assessment.overall_stage
        <Stage.LATENT: 'Latent'>
    """
    data = _validated(
        AssessmentCreationInput,
        {
            "level": level.value if isinstance(level, AssessmentLevel) else level,
            "assessor_name": assessor_name,
            "assessor_role": assessor_role,
            "assessor_email": assessor_email,
            "assessment_date": assessment_date,
            "school_id": school_id,
            "district_id": district_id,
        },
        "assessment_data",
    )

    def work() -> PolicyAssessment:
        assessment = new_policy_assessment(
            level=AssessmentLevel(data["level"]),
            assessor=Assessor(
                name=data["assessor_name"],
                role=data["assessor_role"],
                email=data["assessor_email"],
            ),
            assessment_date=data["assessment_date"],
            school_id=data["school_id"],
            district_id=data["district_id"],
        )
        AssessmentRepo(session).save(assessment, created_by_id=created_by_id)
        set_context(assessment_id=assessment.id)
        logger.info(
            f"Created {assessment.level.value} assessment {assessment.id} "
            f"dated {assessment.assessment_date.isoformat()}"
        )
        return assessment

    return _run("initialise_assessment", {"level": data["level"]}, work)


def get_assessment(session: Session, assessment_id: int) -> PolicyAssessment:
    """Load one assessment with every derived field recalculated."""
    return AssessmentRepo(session).load(assessment_id)


@log_operation("list_assessments")
def list_assessments(
    session: Session,
    school_id: str | None = None,
    district_id: str | None = None,
    level: AssessmentLevel | str | None = None,
    status: AssessmentStatus | str | None = None,
    date_from: date | None = None,
    date_to: date | None = None,
) -> list[PolicyAssessment]:
    """Assessments matching the filters, oldest first."""
    try:
        level = AssessmentLevel(level) if level is not None else None
        status = AssessmentStatus(status) if status is not None else None
    except ValueError as e:
        raise ValidationError("filters", str(e)) from e

    def work() -> list[PolicyAssessment]:
        rows = AssessmentRepo(session).list_assessments(
            school_id=school_id,
            district_id=district_id,
            level=level,
            status=status,
            date_from=date_from,
            date_to=date_to,
        )
        scoring = ScoringService(logger)
        return [assessment_to_domain(row, scoring) for row in rows]

    return _run("list_assessments", {"school_id": school_id, "district_id": district_id}, work)


@log_operation("update_sub_theme_score")
def update_sub_theme_score(
    session: Session,
    assessment_id: int,
    theme_code: str,
    sub_theme_code: str,
    score: float,
) -> PolicyAssessment:
    """
    Record a continuous 0-100 score for one sub-theme.

    Raises:
        ValidationError: If the score is outside 0-100
        AssessmentNotFoundError: If the assessment doesn't exist
        UnknownThemeError: If the theme or sub-theme code isn't in the framework

    Example:
        >>> assessment = update_sub_theme_score(session, 1, "teachers", "3.2", 80)
        >>> assessment.get_theme("teachers").overall_score
    """
    data = _validated(ScoreInput, {"score": score}, "score")
    return _edit(
        session,
        assessment_id,
        "update_sub_theme_score",
        f"{theme_code}/{sub_theme_code}",
        lambda scoring, a: scoring.set_sub_theme_score(a, theme_code, sub_theme_code, data["score"]),
    )


@log_operation("update_sub_theme_stage")
def update_sub_theme_stage(
    session: Session,
    assessment_id: int,
    theme_code: str,
    sub_theme_code: str,
    stage: Stage | str,
) -> PolicyAssessment:
    """Snap a sub-theme to the anchor score of ``stage``."""
    data = _validated(
        StageInput, {"stage": stage.value if isinstance(stage, Stage) else stage}, "stage"
    )
    return _edit(
        session,
        assessment_id,
        "update_sub_theme_stage",
        f"{theme_code}/{sub_theme_code}",
        lambda scoring, a: scoring.set_sub_theme_stage(a, theme_code, sub_theme_code, data["stage"]),
    )


@log_operation("update_cross_cutting_score")
def update_cross_cutting_score(
    session: Session, assessment_id: int, code: str, score: float
) -> PolicyAssessment:
    data = _validated(ScoreInput, {"score": score}, "score")
    return _edit(
        session,
        assessment_id,
        "update_cross_cutting_score",
        code,
        lambda scoring, a: scoring.set_cross_cutting_score(a, code, data["score"]),
    )


@log_operation("update_cross_cutting_stage")
def update_cross_cutting_stage(
    session: Session, assessment_id: int, code: str, stage: Stage | str
) -> PolicyAssessment:
    data = _validated(
        StageInput, {"stage": stage.value if isinstance(stage, Stage) else stage}, "stage"
    )
    return _edit(
        session,
        assessment_id,
        "update_cross_cutting_stage",
        code,
        lambda scoring, a: scoring.set_cross_cutting_stage(a, code, data["stage"]),
    )


@log_operation("add_sub_theme_evidence")
def add_sub_theme_evidence(
    session: Session,
    assessment_id: int,
    theme_code: str,
    sub_theme_code: str,
    evidence: list[str],
    notes: str | None = None,
) -> PolicyAssessment:
    data = _validated(EvidenceInput, {"evidence": evidence, "notes": notes}, "evidence")
    return _edit(
        session,
        assessment_id,
        "add_sub_theme_evidence",
        f"{theme_code}/{sub_theme_code}",
        lambda scoring, a: scoring.add_sub_theme_evidence(
            a, theme_code, sub_theme_code, data["evidence"], data["notes"]
        ),
    )


@log_operation("add_cross_cutting_evidence")
def add_cross_cutting_evidence(
    session: Session,
    assessment_id: int,
    code: str,
    evidence: list[str],
    notes: str | None = None,
) -> PolicyAssessment:
    data = _validated(EvidenceInput, {"evidence": evidence, "notes": notes}, "evidence")
    return _edit(
        session,
        assessment_id,
        "add_cross_cutting_evidence",
        code,
        lambda scoring, a: scoring.add_cross_cutting_evidence(
            a, code, data["evidence"], data["notes"]
        ),
    )


@log_operation("update_assessment_status")
def update_assessment_status(
    session: Session, assessment_id: int, status: AssessmentStatus | str
) -> PolicyAssessment:
    """
    Move an assessment to ``status``.

    The usual path is draft → completed → approved → archived. Other moves are
    applied too, with a warning in the log. Completing requires the assessor
    name, role and a valid email.

    Raises:
        ValidationError: If ``status`` is unknown or the assessor is incomplete
        AssessmentNotFoundError: If the assessment doesn't exist
    """
    data = _validated(
        StatusInput,
        {"status": status.value if isinstance(status, AssessmentStatus) else status},
        "status",
    )
    new_status = AssessmentStatus(data["status"])
    set_context(assessment_id=assessment_id)

    repo = AssessmentRepo(session)
    assessment = repo.load(assessment_id)

    if new_status == AssessmentStatus.COMPLETED:
        _validated(
            AssessorInput,
            {
                "name": assessment.assessor.name,
                "role": assessment.assessor.role,
                "email": assessment.assessor.email,
            },
            "assessor",
        )

    def work() -> PolicyAssessment:
        previous = assessment.status
        change_status(assessment, new_status, logger)
        repo.save(assessment)
        logger.info(
            f"Assessment {assessment_id} status {AssessmentStatus(previous).value} -> "
            f"{new_status.value}"
        )
        return assessment

    return _run("update_assessment_status", {"assessment_id": assessment_id}, work)


def complete_assessment(session: Session, assessment_id: int) -> PolicyAssessment:
    return update_assessment_status(session, assessment_id, AssessmentStatus.COMPLETED)


def approve_assessment(session: Session, assessment_id: int) -> PolicyAssessment:
    return update_assessment_status(session, assessment_id, AssessmentStatus.APPROVED)


def archive_assessment(session: Session, assessment_id: int) -> PolicyAssessment:
    return update_assessment_status(session, assessment_id, AssessmentStatus.ARCHIVED)


@log_operation("update_assessor")
def update_assessor(
    session: Session, assessment_id: int, name: str, role: str, email: str
) -> PolicyAssessment:
    data = _validated(AssessorInput, {"name": name, "role": role, "email": email}, "assessor")

    def edit(scoring: ScoringService, assessment: PolicyAssessment) -> PolicyAssessment:
        assessment.assessor = Assessor(**data)
        return assessment

    return _edit(session, assessment_id, "update_assessor", "assessor", edit)


@log_operation("delete_assessment")
def delete_assessment(session: Session, assessment_id: int) -> None:
    repo = AssessmentRepo(session)
    row = repo.get_by_id_required(assessment_id)
    _run("delete_assessment", {"assessment_id": assessment_id}, lambda: repo.delete(row))
    logger.info(f"Deleted assessment {assessment_id}")


def get_recommendations(session: Session, assessment_id: int) -> list[PolicyRecommendation]:
    """Recommendations for an assessment, highest priority first."""
    return get_assessment(session, assessment_id).recommendations


@log_operation("get_policy_trends")
def get_policy_trends(
    session: Session,
    school_id: str | None = None,
    district_id: str | None = None,
    level: AssessmentLevel | str | None = None,
    include_drafts: bool = True,
) -> list[TrendPoint]:
    """Chronological trend points for the assessments matching the filters."""
    assessments = list_assessments(
        session, school_id=school_id, district_id=district_id, level=level
    )
    if not include_drafts:
        assessments = [a for a in assessments if a.status != AssessmentStatus.DRAFT]
    points = calculate_policy_trends(assessments)
    logger.info(f"Built {len(points)} trend points")
    return points


@log_operation("build_trend_chart")
def build_trend_chart(
    session: Session,
    school_id: str | None = None,
    district_id: str | None = None,
    level: AssessmentLevel | str | None = None,
    include_themes: bool = True,
) -> dict[str, Any]:
    """Plotly figure payload of the trend points for the filters."""
    points = get_policy_trends(session, school_id=school_id, district_id=district_id, level=level)
    return _run(
        "build_trend_chart",
        {"school_id": school_id, "district_id": district_id},
        lambda: figure_to_payload(make_trend_figure(points, include_themes=include_themes)),
    )


def build_theme_radar(session: Session, assessment_id: int) -> dict[str, Any]:
    assessment = get_assessment(session, assessment_id)
    return figure_to_payload(make_theme_radar(assessment))


@log_operation("compare_assessment_to_benchmarks")
def compare_assessment_to_benchmarks(
    session: Session, assessment_id: int, benchmarks: BenchmarkSet
) -> tuple[BenchmarkComparison, list[BenchmarkComparison]]:
    assessment = get_assessment(session, assessment_id)
    return compare_to_benchmarks(assessment, benchmarks)


# ---------- school maturity ----------


def _school_inputs(
    data: dict[str, Any],
) -> tuple[list[SchoolProfile], list[ICTReport]]:
    schools = [build_school_profile(s) for s in data.get("schools", [])]
    if "school" in data:
        schools.append(build_school_profile(data["school"]))
    reports = [build_ict_report(r) for r in data.get("reports", [])]
    return schools, reports


@log_operation("assess_school_maturity")
def assess_school_maturity(
    school: dict[str, Any],
    reports: list[dict[str, Any]] | None = None,
    user: User | None = None,
) -> SchoolPolicyMaturity:
    """
    Score a school profile and its ICT reports against the policy framework.

    When ``user`` is given, their role must let them view this school.
    """
    data = _validated(SchoolMaturityInput, {"school": school, "reports": reports or []}, "school")
    (profile,), ict_reports = _school_inputs(data)
    set_context(school_id=profile.id)

    if user is not None and not can_access_resource(
        user, "school", school_id=profile.id, district=profile.district
    ):
        raise PermissionDeniedError(
            f"User {user.id} cannot access school {profile.id}", operation="view_school"
        )

    maturity = _run(
        "assess_school_maturity",
        {"school_id": profile.id},
        lambda: calculate_school_policy_maturity(profile, ict_reports),
    )
    logger.info(
        f"School {profile.id} scored {maturity.overall_score} "
        f"({maturity.overall_stage.value}, readiness {maturity.readiness_level.value})"
    )
    return maturity


@log_operation("assess_ict_readiness")
def assess_ict_readiness(reports: list[dict[str, Any]]) -> ICTReadiness:
    """Points-based readiness from the most recent of ``reports``."""
    data = _validated(SchoolSummaryInput, {"reports": reports}, "reports")
    _, ict_reports = _school_inputs(data)
    return calculate_ict_readiness(ict_reports)


@log_operation("summarise_schools")
def summarise_schools(
    schools: list[dict[str, Any]], reports: list[dict[str, Any]] | None = None
) -> SchoolSummary:
    data = _validated(
        SchoolSummaryInput, {"schools": schools, "reports": reports or []}, "schools"
    )
    profiles, ict_reports = _school_inputs(data)
    return _run(
        "summarise_schools",
        {"schools": len(profiles)},
        lambda: calculate_summary_stats(profiles, ict_reports),
    )


# ---------- users ----------


def _check_password_length(field: str, password: str) -> None:
    min_length = get_settings().security.min_password_length
    if len(password) < min_length:
        raise ValidationError(field, f"Password must be at least {min_length} characters")


def _require_user_management() -> None:
    if not get_settings().app.enable_user_management:
        raise BusinessLogicError(
            "User management is disabled",
            rule="feature_disabled",
            user_message="User management is disabled on this deployment.",
        )


@log_operation("create_user")
def create_user(
    session: Session,
    email: str,
    first_name: str,
    last_name: str,
    role: UserRole | str,
    password: str,
    district: str | None = None,
    sub_county: str | None = None,
    school_id: str | None = None,
) -> User:
    """
    Register a user account.

    Raises:
        ValidationError: If the account data is invalid
        DuplicateEmailError: If the email is already registered
    """
    _require_user_management()
    data = _validated(
        UserCreateInput,
        {
            "email": email,
            "first_name": first_name,
            "last_name": last_name,
            "role": role,
            "password": password,
            "district": district,
            "sub_county": sub_county,
            "school_id": school_id,
        },
        "user_data",
    )
    _check_password_length("password", data["password"])

    def work() -> User:
        password_hash = hash_password(data.pop("password"))
        row = UserRepo(session).create_user(password_hash, is_active=True, **data)
        logger.info(f"Created user {row.id} with role {row.role}")
        return user_to_domain(row)

    return _run("create_user", {"email": data["email"]}, work)


def get_user(session: Session, user_id: int) -> User:
    return user_to_domain(UserRepo(session).get_by_id_required(user_id))


@log_operation("list_users")
def list_users(
    session: Session,
    role: UserRole | str | None = None,
    district: str | None = None,
    is_active: bool | None = None,
) -> list[User]:
    try:
        role = UserRole(role) if role is not None else None
    except ValueError as e:
        raise ValidationError("role", str(e), role) from e
    rows = UserRepo(session).list_users(role=role, district=district, is_active=is_active)
    return [user_to_domain(row) for row in rows]


@log_operation("update_user")
def update_user(session: Session, user_id: int, **fields: Any) -> User:
    """
    Apply a partial update; only the supplied fields change.

    Example:
        >>> update_user(session, 4, district="Wakiso", is_active=False)
    """
    _require_user_management()
    data = _validated(UserUpdateInput, fields, "user_data", exclude_unset=True)
    for required in ("first_name", "last_name", "role", "is_active"):
        if required in data and data[required] is None:
            raise ValidationError(required, "This field cannot be cleared")
    set_context(user_id=user_id)

    repo = UserRepo(session)
    row = repo.get_by_id_required(user_id)

    def work() -> User:
        repo.update(row, **data)
        logger.info(f"Updated user {user_id}: {', '.join(sorted(data)) or 'no changes'}")
        return user_to_domain(row)

    return _run("update_user", {"user_id": user_id}, work)


@log_operation("delete_user")
def delete_user(session: Session, user_id: int, acting_user_id: int | None = None) -> None:
    """
    Remove a user account.

    Raises:
        BusinessLogicError: If a user tries to delete their own account
        UserNotFoundError: If the user doesn't exist
    """
    _require_user_management()
    if acting_user_id is not None and acting_user_id == user_id:
        raise BusinessLogicError(
            f"User {user_id} attempted to delete their own account",
            rule="no_self_delete",
            user_message="You cannot delete your own account",
        )
    repo = UserRepo(session)
    row = repo.get_by_id_required(user_id)
    _run("delete_user", {"user_id": user_id}, lambda: repo.delete(row))
    logger.info(f"Deleted user {user_id}")


@log_operation("authenticate_user")
def authenticate_user(session: Session, email: str, password: str) -> User:
    """
    Check credentials and stamp ``last_login``.

    Raises:
        AuthenticationError: For unknown email, wrong password or inactive account
    """
    data = _validated(LoginInput, {"email": email, "password": password}, "credentials")
    repo = UserRepo(session)
    row = repo.get_by_email(data["email"])
    if row is None or not verify_password(data["password"], row.password_hash):
        logger.warning(f"Rejected login for {data['email']}")
        raise AuthenticationError()
    if not row.is_active:
        logger.warning(f"Rejected login for inactive user {row.id}")
        raise AuthenticationError("Account is inactive")
    repo.record_login(row)
    set_context(user_id=row.id)
    return user_to_domain(row)


@log_operation("reset_password")
def reset_password(session: Session, user_id: int, new_password: str) -> None:
    _require_user_management()
    data = _validated(PasswordResetInput, {"new_password": new_password}, "new_password")
    _check_password_length("new_password", data["new_password"])
    repo = UserRepo(session)
    row = repo.get_by_id_required(user_id)
    repo.update(row, password_hash=hash_password(data["new_password"]))
    logger.info(f"Password reset for user {user_id}")


# ---------- exports ----------


def _require_export() -> None:
    if not get_settings().app.enable_data_export:
        raise BusinessLogicError(
            "Data export is disabled",
            rule="feature_disabled",
            user_message="Data export is disabled on this deployment.",
        )


def _export(
    operation: str, export_format: str, context: dict[str, Any], render: Callable[[], str]
) -> str:
    """Render an export; rendering failures surface as ``ExportError``."""
    try:
        return render()
    except Exception as e:
        error_details = log_error_details(e, {"operation": operation, **context})
        logger.error(f"Failed to {operation.replace('_', ' ')}", extra=error_details)
        raise ExportError(
            f"Failed to {operation.replace('_', ' ')}: {e}",
            export_format=export_format,
            details=error_details,
        ) from e


@log_operation("export_users_csv")
def export_users_csv(session: Session, **filters: Any) -> str:
    _require_export()
    users = list_users(session, **filters)
    return _export("export_users_csv", "csv", {"rows": len(users)}, lambda: users_to_csv(users))


@log_operation("export_assessments_csv")
def export_assessments_csv(session: Session, **filters: Any) -> str:
    _require_export()
    assessments = list_assessments(session, **filters)
    return _export(
        "export_assessments_csv",
        "csv",
        {"rows": len(assessments)},
        lambda: assessments_summary_to_csv(assessments),
    )


@log_operation("export_assessment_json")
def export_assessment_json(session: Session, assessment_id: int) -> str:
    _require_export()
    assessment = get_assessment(session, assessment_id)
    return _export(
        "export_assessment_json",
        "json",
        {"assessment_id": assessment_id},
        lambda: make_assessment_json_export(assessment),
    )
