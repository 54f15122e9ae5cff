from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from sqlalchemy import inspect
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from ict_observatory.domain.models import AssessmentLevel, Assessor, PolicyAssessment, UserRole
from ict_observatory.domain.services import ScoringService, new_policy_assessment
from ict_observatory.infrastructure.logging import get_logger
from ict_observatory.infrastructure.models import Base
from ict_observatory.infrastructure.repositories import AssessmentRepo, UserRepo
from ict_observatory.infrastructure.security import hash_password

logger = get_logger(__name__)

DEMO_PASSWORD = "password123"


@dataclass(frozen=True)
class DemoUser:
    email: str
    first_name: str
    last_name: str
    role: UserRole
    district: str | None = None
    sub_county: str | None = None
    school_id: str | None = None


DEMO_USERS: tuple[DemoUser, ...] = (
    DemoUser("admin@education.ug", "System", "Administrator", UserRole.SUPER_ADMIN),
    DemoUser("ministry@education.ug", "Ministry", "Official", UserRole.MINISTRY_ADMIN),
    DemoUser(
        "kampala@education.ug", "Kampala", "District Officer", UserRole.DISTRICT_ADMIN,
        district="Kampala",
    ),
    DemoUser(
        "principal@greenhill.ug", "Sarah", "Nakato", UserRole.SCHOOL_ADMIN,
        district="Kampala", sub_county="Central", school_id="SCH001",
    ),
    DemoUser("analyst@education.ug", "Data", "Analyst", UserRole.DATA_ANALYST),
)

# (date, {sub-theme code: score}) for the Greenhill demo history
DEMO_HISTORY: tuple[tuple[date, dict[str, float]], ...] = (
    (date(2024, 3, 1), {"1.1": 40, "2.1": 30, "3.1": 35}),
    (date(2024, 9, 1), {"1.1": 60, "1.2": 50, "2.1": 55, "3.1": 50, "4.1": 45}),
    (date(2025, 3, 1), {"1.1": 80, "1.2": 70, "2.1": 75, "2.2": 60, "3.1": 70, "4.1": 65, "6.1": 55}),
)


def initialise_database(engine: Engine) -> bool:
    """
    Ensure all ORM tables exist.

    Returns:
        True if every table already existed before this call, False if at least one table
        needed to be created.
    """
    inspector = inspect(engine)
    existing_tables = set(inspector.get_table_names())
    expected_tables = [table.name for table in Base.metadata.sorted_tables]
    already_exists = all(table in existing_tables for table in expected_tables)
    Base.metadata.create_all(engine)
    return already_exists


def seed_demo_users(session: Session, password: str = DEMO_PASSWORD) -> int:
    """Create the demo accounts that are missing; returns how many were added."""
    repo = UserRepo(session)
    password_hash = hash_password(password)
    created = 0
    for demo in DEMO_USERS:
        if repo.get_by_email(demo.email) is not None:
            continue
        repo.create_user(
            password_hash,
            email=demo.email,
            first_name=demo.first_name,
            last_name=demo.last_name,
            role=demo.role,
            district=demo.district,
            sub_county=demo.sub_county,
            school_id=demo.school_id,
            is_active=True,
        )
        created += 1
    logger.info(f"Seeded {created} demo users")
    return created


def seed_demo_assessments(session: Session) -> list[PolicyAssessment]:
    """Three dated school assessments for SCH001 showing steady progress."""
    repo = AssessmentRepo(session)
    if repo.count() > 0:
        logger.info("Assessments already present; skipping demo history")
        return []

    scoring = ScoringService(logger)
    assessments = []
    for assessment_date, scores in DEMO_HISTORY:
        assessment = new_policy_assessment(
            level=AssessmentLevel.SCHOOL,
            assessor=Assessor(
                name="Sarah Nakato", role="Head Teacher", email="principal@greenhill.ug"
            ),
            assessment_date=assessment_date,
            school_id="SCH001",
            district_id="Kampala",
        )
        for sub_code, score in scores.items():
            theme_code = next(
                theme.code for theme in assessment.themes if theme.get_sub_theme(sub_code)
            )
            scoring.set_sub_theme_score(assessment, theme_code, sub_code, score)
        repo.save(assessment)
        assessments.append(assessment)
    logger.info(f"Seeded {len(assessments)} demo assessments")
    return assessments
