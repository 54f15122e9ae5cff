from __future__ import annotations

import logging
import os

os.environ.setdefault("APP_ENVIRONMENT", "testing")

import pytest
from sqlalchemy.orm import Session, sessionmaker

from ict_observatory.domain.models import AssessmentLevel, Assessor, PolicyAssessment
from ict_observatory.domain.services import new_policy_assessment
from ict_observatory.infrastructure.config import reset_settings
from ict_observatory.infrastructure.db import create_database_engine, create_session_factory
from ict_observatory.infrastructure.logging import clear_context
from ict_observatory.infrastructure.models import Base


@pytest.fixture(autouse=True)
def _propagate_app_logs():
    """Let caplog see records from the application logger tree."""
    app_logger = logging.getLogger("ict_observatory")
    previous = app_logger.propagate
    app_logger.propagate = True
    yield
    app_logger.propagate = previous
    clear_context()


@pytest.fixture
def session_factory() -> sessionmaker[Session]:
    engine = create_database_engine(url="sqlite:///:memory:")
    Base.metadata.create_all(engine)
    return create_session_factory(engine)


@pytest.fixture
def db(session_factory: sessionmaker[Session]):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def fresh_settings():
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def assessor() -> Assessor:
    return Assessor(name="Jane Akello", role="Head Teacher", email="jane@greenhill.ug")


@pytest.fixture
def assessment(assessor: Assessor) -> PolicyAssessment:
    return new_policy_assessment(
        AssessmentLevel.SCHOOL, assessor, school_id="SCH001", district_id="Kampala"
    )
