"""Unit tests for settings validation and error helpers."""

import pytest
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import OperationalError

from commission_engine.config.settings import Settings
from commission_engine.utils.exceptions import (
    ClassificationFailure,
    CommissionEngineError,
    ConflictError,
    NotFoundError,
    PersistenceError,
    ValidationError,
    must_log,
    must_raise,
)


SQLITE_URL = "sqlite+aiosqlite:///./x.db"


def make_settings(**overrides) -> Settings:
    values = {"database_url": SQLITE_URL, "environment": "test"}
    values.update(overrides)
    return Settings(_env_file=None, **values)


class TestSettings:
    """Test Settings validators."""

    def test_defaults(self):
        s = make_settings()
        assert s.referral_external_after_days == 30
        assert s.min_report_year == 2000
        assert s.classification_concurrency >= 1

    def test_unknown_database_scheme(self):
        with pytest.raises(PydanticValidationError):
            make_settings(database_url="mysql://localhost/db")

    def test_debug_forbidden_in_production(self):
        with pytest.raises(PydanticValidationError):
            make_settings(
                environment="production",
                debug=True,
                database_url="postgresql+asyncpg://u:p@localhost/db",
            )

    def test_threshold_must_be_positive(self):
        with pytest.raises(PydanticValidationError):
            make_settings(referral_external_after_days=0)

    def test_log_level_normalized(self):
        assert make_settings(log_level="debug").log_level == "DEBUG"

    def test_unknown_log_level(self):
        with pytest.raises(PydanticValidationError):
            make_settings(log_level="loud")


class TestExceptions:
    """Test error helpers."""

    def test_user_errors_share_base(self):
        for error in (ValidationError("bad"), ConflictError("dup"), NotFoundError("gone")):
            assert isinstance(error, CommissionEngineError)

    def test_classification_failure_message(self):
        failure = ClassificationFailure("lead", 7, RuntimeError("boom"))
        assert failure.subject_type == "lead"
        assert failure.subject_id == 7
        assert isinstance(failure.cause, RuntimeError)
        assert "lead 7" in str(failure)
        assert "RuntimeError: boom" in str(failure)


class TestExceptionCategories:
    """Test exception grouping."""

    def test_user_errors_must_raise(self):
        assert must_raise(ValidationError("bad"))
        assert must_raise(ConflictError("dup"))
        assert not must_raise(ClassificationFailure("property", 1, RuntimeError("x")))

    def test_classification_failure_must_log(self):
        assert must_log(ClassificationFailure("lead", 7, RuntimeError("boom")))
        assert not must_log(RuntimeError("bug"))

    def test_persistence_error_is_sqlalchemy_family(self):
        error = OperationalError("SELECT 1", {}, Exception("down"))
        assert isinstance(error, PersistenceError)
        assert must_log(error)
        assert not must_raise(error)
