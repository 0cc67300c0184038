"""
Exception handling utilities.

Defines the engine's error taxonomy and categorized exception groups for
deciding whether a failure is raised to the caller or logged and skipped.
"""

from sqlalchemy.exc import SQLAlchemyError


class CommissionEngineError(Exception):
    """Base class for all engine errors."""
    pass


class ValidationError(CommissionEngineError):
    """Raised for bad input: date ranges, missing IDs, years before 2000."""
    pass


class ConflictError(CommissionEngineError):
    """Raised when a report already exists for the same agent and range."""
    pass


class NotFoundError(CommissionEngineError):
    """Raised when a report, referral or subject does not exist."""
    pass


class ClassificationFailure(CommissionEngineError):
    """
    Recency classification failed for one subject.

    Non-fatal during report aggregation: logged and skipped.
    """

    def __init__(
        self, subject_type: str, subject_id: int, cause: BaseException
    ) -> None:
        self.subject_type = subject_type
        self.subject_id = subject_id
        self.cause = cause
        super().__init__(
            f"Classification failed for {subject_type} {subject_id}: "
            f"{type(cause).__name__}: {cause}"
        )


# Store failures are SQLAlchemy's own exceptions, propagated unchanged
PersistenceError = SQLAlchemyError


# Exception categories based on handling strategy

# Must raise - surfaced verbatim to the caller
MUST_RAISE = (
    ValidationError,
    ConflictError,
    NotFoundError,
)

# Must log but can continue - per-subject failures during aggregation
MUST_LOG = (
    ClassificationFailure,
    SQLAlchemyError,
)


def must_raise(exc: Exception) -> bool:
    """
    Check if exception must be raised.

    Args:
        exc: Exception to check

    Returns:
        True if exception must be raised
    """
    return isinstance(exc, MUST_RAISE)


def must_log(exc: Exception) -> bool:
    """
    Check if exception must be logged.

    Args:
        exc: Exception to check

    Returns:
        True if exception must be logged
    """
    return isinstance(exc, MUST_LOG)
