"""Error taxonomy shared by the ledger clients, the resolver and the API.

Every ledger failure keeps the full underlying reason in ``detail`` for the
logs; ``public_message`` is the truncated form shown to users.
"""
from __future__ import annotations

from typing import Optional


def truncate(text: str, limit: int) -> str:
    text = " ".join((text or "").split())
    if limit <= 0 or len(text) <= limit:
        return text
    return text[: max(0, limit - 3)].rstrip() + "..."


class CertichainError(Exception):
    code = "CERTICHAIN_ERROR"
    status_code = 500

    def __init__(self, message: str, *, detail: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.detail = detail or message

    def public_message(self, limit: int = 160) -> str:
        return truncate(self.detail, limit)


class InputValidationError(CertichainError, ValueError):
    """Malformed or missing input, raised before any network call."""
    code = "INPUT_VALIDATION"
    status_code = 422

    def __init__(self, message: str, *, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class UnauthorizedError(CertichainError):
    """The ledger refused a write because the caller lacks authorization."""
    code = "UNAUTHORIZED"
    status_code = 403


class DuplicateCommitmentError(CertichainError):
    code = "DUPLICATE_COMMITMENT"
    status_code = 409


class AlreadyRevokedError(CertichainError):
    code = "ALREADY_REVOKED"
    status_code = 409


class NotFoundError(CertichainError):
    code = "NOT_FOUND"
    status_code = 404


class TransientLedgerError(CertichainError):
    """Network failure or timeout talking to the ledger; safe to retry."""
    code = "LEDGER_UNAVAILABLE"
    status_code = 503


class LedgerRejectedError(CertichainError):
    """Any other ledger-side rejection."""
    code = "LEDGER_REJECTED"
    status_code = 502
