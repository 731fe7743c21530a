"""
Classification of errors returned by the Supabase / PostgREST client.

PostgREST reports failures as ``postgrest.exceptions.APIError`` with a ``code``
that is either a PostgREST code (``PGRSTxxx``) or a Postgres SQLSTATE. Callers
only care about a handful of outcomes, so every error is reduced to a
``BackendErrorKind``.
"""

from enum import Enum
from typing import Optional

from postgrest.exceptions import APIError


NO_ROWS_CODES = {"PGRST116"}
# PGRST205: table not in schema cache, 42P01: undefined_table.
# PGRST301 is kept because existing frontend code treats it as "table missing".
TABLE_MISSING_CODES = {"PGRST205", "42P01", "PGRST301"}
PERMISSION_DENIED_CODES = {"42501"}


class BackendErrorKind(str, Enum):
    NO_ROWS = "no_rows"
    TABLE_MISSING = "table_missing"
    PERMISSION_DENIED = "permission_denied"
    UNAVAILABLE = "unavailable"


def error_code(exc: BaseException) -> Optional[str]:
    if isinstance(exc, APIError):
        return exc.code
    return None


def classify_error(exc: BaseException) -> BackendErrorKind:
    code = error_code(exc)
    message = error_message(exc).lower()
    if code in NO_ROWS_CODES:
        return BackendErrorKind.NO_ROWS
    if code in TABLE_MISSING_CODES or ("relation" in message and "does not exist" in message):
        return BackendErrorKind.TABLE_MISSING
    if code in PERMISSION_DENIED_CODES or "permission denied" in message:
        return BackendErrorKind.PERMISSION_DENIED
    return BackendErrorKind.UNAVAILABLE


def error_message(exc: BaseException) -> str:
    if isinstance(exc, APIError) and exc.message:
        return exc.message
    return str(exc) or exc.__class__.__name__
