"""
Error taxonomy for the invoicing service.

Every failure leaves the API as {"error": {"code": ..., "message": ...}}.
Raw database errors are translated exactly once, by map_db_error(), at the
service boundary.
"""

from typing import Any, Optional

from sqlalchemy.exc import DBAPIError, IntegrityError, DataError
import structlog

logger = structlog.get_logger()


class AppError(Exception):
    code = "INTERNAL_ERROR"
    status_code = 500
    message = "Unexpected error."

    def __init__(self, message: Optional[str] = None, details: Any = None):
        super().__init__(message or self.message)
        self.message = message or self.message
        self.details = details

    def to_body(self) -> dict:
        error = {"code": self.code, "message": self.message}
        if self.details is not None:
            error["details"] = self.details
        return {"error": error}


class ValidationFailedError(AppError):
    code = "VALIDATION_ERROR"
    status_code = 422
    message = "Missing required fields or empty items."


class NotFoundError(AppError):
    code = "NOT_FOUND"
    status_code = 404
    message = "Invoice not found."


class ConflictError(AppError):
    code = "UNIQUE_VIOLATION"
    status_code = 409
    message = "Duplicate data violates a unique constraint."


class ForeignKeyError(AppError):
    code = "FK_VIOLATION"
    status_code = 422
    message = "Related record not found (foreign key violation)."


class InvalidLiteralError(AppError):
    code = "INVALID_LITERAL"
    status_code = 400
    message = "Invalid value format for one of the fields."


class NotNullError(AppError):
    code = "NOT_NULL"
    status_code = 400
    message = "A required field is missing."


class DataAccessError(AppError):
    code = "DB_ERROR"
    status_code = 500
    message = "Database error occurred."


class ConfigError(AppError):
    code = "CONFIG_ERROR"
    status_code = 500
    message = "DATABASE_URL is not configured."


# PostgreSQL SQLSTATE -> error class
_SQLSTATE_MAP = {
    "23505": ConflictError,  # unique_violation
    "23503": ForeignKeyError,  # foreign_key_violation
    "22P02": InvalidLiteralError,  # invalid_text_representation
    "22007": InvalidLiteralError,  # invalid_datetime_format
    "22008": InvalidLiteralError,  # datetime_field_overflow
    "23502": NotNullError,  # not_null_violation
}

# Message fragments for drivers that carry no SQLSTATE (sqlite)
_MESSAGE_MAP = (
    ("unique constraint", ConflictError),
    ("foreign key constraint", ForeignKeyError),
    ("not null constraint", NotNullError),
)


def _sqlstate(exc: DBAPIError) -> Optional[str]:
    orig = getattr(exc, "orig", None)
    for attr in ("sqlstate", "pgcode"):
        code = getattr(orig, attr, None)
        if code:
            return str(code)
    return None


def map_db_error(exc: Exception) -> AppError:
    """Translate a SQLAlchemy/driver exception into the service taxonomy."""
    if isinstance(exc, AppError):
        return exc

    error_cls = DataAccessError
    sqlstate = None
    if isinstance(exc, DBAPIError):
        sqlstate = _sqlstate(exc)
        if sqlstate in _SQLSTATE_MAP:
            error_cls = _SQLSTATE_MAP[sqlstate]
        elif isinstance(exc, IntegrityError):
            text = str(exc.orig).lower()
            for fragment, cls in _MESSAGE_MAP:
                if fragment in text:
                    error_cls = cls
                    break
        elif isinstance(exc, DataError):
            error_cls = InvalidLiteralError

    logger.warning(
        "db_error_mapped",
        code=error_cls.code,
        sqlstate=sqlstate,
        error=str(exc),
    )
    return error_cls()
