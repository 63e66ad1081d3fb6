"""
Ledger errors.

Domain exceptions raised by the crud layer. Each carries the HTTP status
and the machine-readable code used when main.py renders it as
{"error": {"code", "message"}}.
"""

from starlette import status


class LedgerError(Exception):
    """Base exception for all ledger failures."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "LEDGER_ERROR"

    def __init__(self, message: str, code: str = None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code


class ValidationError(LedgerError):
    """Malformed input: unbalanced entry, bad amounts, bad date range."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "VALIDATION_ERROR"


class NotFoundError(LedgerError):
    """Referenced record does not exist inside the caller's organization."""

    status_code = status.HTTP_404_NOT_FOUND
    code = "NOT_FOUND"


class ConflictError(LedgerError):
    status_code = status.HTTP_409_CONFLICT
    code = "CONFLICT"


class DuplicateCodeError(ConflictError):
    code = "DUPLICATE_CODE"


class AccountInUseError(ConflictError):
    code = "ACCOUNT_IN_USE"


class JournalInUseError(ConflictError):
    code = "JOURNAL_IN_USE"


class SystemAccountError(LedgerError):
    """Attempted mutation of a protected system account."""

    status_code = status.HTTP_403_FORBIDDEN
    code = "SYSTEM_ACCOUNT"


class InvalidStateError(LedgerError):
    """Operation not allowed for the entry's current status."""

    status_code = status.HTTP_409_CONFLICT
    code = "INVALID_STATE"


class ImmutableEntryError(InvalidStateError):
    code = "IMMUTABLE_ENTRY"


class PermissionDeniedError(LedgerError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "FORBIDDEN"
