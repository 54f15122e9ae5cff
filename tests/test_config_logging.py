"""
Tests for configuration, logging and error-handling infrastructure.
"""

from __future__ import annotations

import json
import logging

import pytest
from pydantic import ValidationError as PydanticValidationError

from ict_observatory.infrastructure.config import (
    ApplicationConfig,
    DatabaseConfig,
    LoggingConfig,
    get_settings,
    override_settings,
    reset_settings,
)
from ict_observatory.infrastructure.db import get_database_url, is_database_configured
from ict_observatory.infrastructure.exceptions import (
    AssessmentNotFoundError,
    ConfigurationError,
    DatabaseError,
    DuplicateEmailError,
    IntegrityError,
    MultipleValidationError,
    UnknownThemeError,
    ValidationError,
    create_user_friendly_error_message,
    handle_database_error,
    log_error_details,
)
from ict_observatory.infrastructure.logging import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    context_filter,
    get_logger,
    log_operation,
    set_context,
)
from ict_observatory.infrastructure.security import hash_password, verify_password


class TestConfiguration:
    """Test the pydantic-settings configuration layer."""

    def test_sqlite_url(self, tmp_path):
        config = DatabaseConfig(backend="sqlite", sqlite_path=str(tmp_path / "obs"))
        assert config.get_connection_url() == f"sqlite:///{tmp_path / 'obs.db'}"

    def test_mysql_url(self):
        config = DatabaseConfig(
            backend="mysql",
            mysql_host="db",
            mysql_user="obs",
            mysql_password="pw",
            mysql_database="ict",
        )
        assert config.get_connection_url() == (
            "mysql+pymysql://obs:pw@db:3306/ict?charset=utf8mb4"
        )

    def test_mysql_requires_host(self):
        with pytest.raises(PydanticValidationError):
            DatabaseConfig(backend="mysql", mysql_host="")

    def test_debug_not_allowed_in_production(self):
        with pytest.raises(PydanticValidationError):
            ApplicationConfig(environment="production", debug=True)

    def test_override_settings(self, fresh_settings, monkeypatch):
        monkeypatch.setenv("APP_ENVIRONMENT", "testing")
        settings = override_settings(app_title="Observatory Test")
        title = settings.app.title
        monkeypatch.delenv("APP_TITLE")

        assert title == "Observatory Test"
        assert settings.is_testing()
        info = settings.get_environment_info()
        assert info["environment"] == "testing"
        assert info["features"]["data_export"] is True

    def test_settings_are_cached(self, fresh_settings):
        assert get_settings() is get_settings()

    def test_database_configured(self, fresh_settings):
        assert is_database_configured() is True

    def test_invalid_database_settings(self, fresh_settings, monkeypatch):
        monkeypatch.setenv("DB_BACKEND", "mysql")
        monkeypatch.setenv("DB_MYSQL_HOST", "")
        reset_settings()
        with pytest.raises(ConfigurationError) as exc_info:
            get_database_url()
        assert exc_info.value.config_key == "database"
        assert is_database_configured() is False


class TestErrors:
    def test_validation_error_message(self):
        error = ValidationError("assessor_email", "Please enter a valid email address")
        assert error.user_message == "Invalid assessor email: Please enter a valid email address"
        assert create_user_friendly_error_message(error) == error.user_message

    def test_multiple_validation_error_details(self):
        error = MultipleValidationError(
            [ValidationError("email", "bad"), ValidationError("first_name", "missing")]
        )
        assert [e["field"] for e in error.details["errors"]] == ["email", "first_name"]

    def test_domain_errors_carry_ids(self):
        assert AssessmentNotFoundError(7).assessment_id == 7
        unknown = UnknownThemeError("9.9", assessment_id=3)
        assert unknown.code == "9.9"
        assert "9.9" in unknown.user_message
        assert DuplicateEmailError("a@b.cd").user_message == "Email already exists"

    @pytest.mark.parametrize(
        "message, expected_type, constraint",
        [
            ("UNIQUE constraint failed: users.email", IntegrityError, "unique"),
            ("FOREIGN KEY constraint failed", IntegrityError, "foreign_key"),
            ("CHECK constraint failed: ck_sub_theme_score_range", IntegrityError, "check"),
            ("disk I/O error", DatabaseError, None),
        ],
    )
    def test_handle_database_error(self, message, expected_type, constraint):
        error = handle_database_error(Exception(message), "save")
        assert type(error) is expected_type
        assert getattr(error, "constraint", None) == constraint

    def test_generic_errors_get_friendly_text(self):
        assert "missing" in create_user_friendly_error_message(KeyError("x"))
        assert "unexpected" in create_user_friendly_error_message(RuntimeError("x"))

    def test_log_error_details(self):
        details = log_error_details(AssessmentNotFoundError(5), {"user_id": 1})
        assert details["error_type"] == "AssessmentNotFoundError"
        assert details["context"] == {"user_id": 1}
        assert details["error_details"] == {"assessment_id": 5}


class TestLogging:
    def test_get_logger_namespaces_under_root(self):
        assert get_logger("web").name == "ict_observatory.web"
        assert get_logger("ict_observatory.domain").name == "ict_observatory.domain"

    def test_structured_formatter_includes_context(self):
        record = logging.LogRecord(
            "ict_observatory.test", logging.INFO, __file__, 10, "hello %s", ("world",), None
        )
        record.assessment_id = 12
        payload = json.loads(StructuredFormatter().format(record))
        assert payload["message"] == "hello world"
        assert payload["level"] == "INFO"
        assert payload["assessment_id"] == 12

    def test_log_context_restores_previous(self):
        set_context(user_id=1)
        with LogContext(assessment_id=4):
            assert context_filter.context == {"user_id": 1, "assessment_id": 4}
        assert context_filter.context == {"user_id": 1}

    def test_log_operation_logs_failures(self, caplog):
        @log_operation("explode")
        def explode():
            raise RuntimeError("boom")

        with caplog.at_level(logging.INFO, logger="ict_observatory"):
            with pytest.raises(RuntimeError):
                explode()
        assert "Starting explode" in caplog.text
        assert "Failed explode: boom" in caplog.text

    def test_configure_logging_writes_json_lines(self, tmp_path):
        log_file = tmp_path / "observatory.log"
        configure_logging(
            LoggingConfig(level="INFO", file_path=str(log_file), console_enabled=False)
        )
        try:
            with LogContext(assessment_id=9):
                get_logger("scoring").info("Assessment 9 recalculated")
                get_logger("scoring").debug("not written at INFO")
        finally:
            configure_logging(LoggingConfig(level="WARNING", file_path=None, console_enabled=False))

        lines = log_file.read_text(encoding="utf-8").splitlines()
        assert len(lines) == 1
        entry = json.loads(lines[0])
        assert entry["message"] == "Assessment 9 recalculated"
        assert entry["logger"] == "ict_observatory.scoring"
        assert entry["assessment_id"] == 9


class TestLoggingPresets:
    def test_environment_presets(self, fresh_settings, monkeypatch, tmp_path):
        monkeypatch.setenv("LOG_FILE_PATH", str(tmp_path / "app.log"))

        monkeypatch.setenv("APP_ENVIRONMENT", "development")
        reset_settings()
        development = get_settings().logging
        assert development.level == "DEBUG"
        assert development.structured is False

        monkeypatch.setenv("APP_ENVIRONMENT", "production")
        reset_settings()
        production = get_settings().logging
        assert production.level == "INFO"
        assert production.console_enabled is False
        assert production.file_path == str(tmp_path / "app.log")

    def test_log_variables_override_presets(self, fresh_settings, monkeypatch):
        monkeypatch.setenv("APP_ENVIRONMENT", "testing")
        monkeypatch.setenv("LOG_LEVEL", "ERROR")
        reset_settings()
        config = get_settings().logging
        assert config.level == "ERROR"
        assert config.file_path is None
        assert config.console_enabled is False


class TestPasswords:
    def test_round_trip(self):
        stored = hash_password("password123", iterations=1000)
        assert stored.startswith("pbkdf2_sha256$1000$")
        assert verify_password("password123", stored)
        assert not verify_password("password124", stored)

    def test_salted(self):
        assert hash_password("same", iterations=1000) != hash_password("same", iterations=1000)

    def test_malformed_hash(self):
        assert verify_password("x", "plain-text") is False
        assert verify_password("x", "md5$1$00$00") is False

    @pytest.mark.parametrize(
        "stored",
        [
            "pbkdf2_sha256$many$00$00",
            "pbkdf2_sha256$1000$not-hex$00",
            "pbkdf2_sha256$0$00$00",
        ],
    )
    def test_corrupt_stored_hash_is_rejected(self, stored):
        assert verify_password("password123", stored) is False
