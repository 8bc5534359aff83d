from typing import Any, Dict, Tuple

from sqlalchemy.exc import IntegrityError

FRIENDLY_DB_DOWN_MESSAGE = (
    "Database is temporarily unavailable (it may be waking up). "
    "Please try again in a few seconds."
)

# P1001: can't reach database server. 08001 / 08006: SQLSTATE connection failures.
UNAVAILABLE_ERROR_CODES = frozenset({"P1001", "08001", "08006"})

UNAVAILABLE_MESSAGE_MARKERS = (
    "Can't reach database server",
    "PrismaClientInitializationError",
    "could not connect to server",
    "Connection refused",
    "the database system is starting up",
)

UNIQUE_VIOLATION_CODE = "23505"


def _error_chain(err: BaseException):
    """The error itself plus the DBAPI error SQLAlchemy wrapped, if any."""
    yield err
    orig = getattr(err, "orig", None)
    if orig is not None and orig is not err:
        yield orig


def is_db_unavailable_error(err: Any) -> bool:
    """
    Connectivity errors you typically see while the database is waking up
    or unreachable. Anything else is a regular failure.
    """
    if err is None:
        return False

    for e in _error_chain(err):
        # Known errors often carry a code; psycopg2 exposes SQLSTATE as pgcode.
        if getattr(e, "code", None) in UNAVAILABLE_ERROR_CODES:
            return True
        if getattr(e, "pgcode", None) in UNAVAILABLE_ERROR_CODES:
            return True

        # Fallback: sometimes the error is wrapped and only the message is left.
        msg = str(getattr(e, "message", None) or e)
        if any(marker in msg for marker in UNAVAILABLE_MESSAGE_MARKERS):
            return True

    return False


def to_db_unavailable_response() -> Tuple[int, Dict[str, str]]:
    return 503, {"error": FRIENDLY_DB_DOWN_MESSAGE}


def is_unique_violation(err: Any) -> bool:
    if not isinstance(err, IntegrityError):
        return False
    orig = err.orig
    if getattr(orig, "pgcode", None) == UNIQUE_VIOLATION_CODE:
        return True
    return "unique" in str(orig).lower()
