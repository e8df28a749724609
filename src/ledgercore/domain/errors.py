"""Shared domain error messages and error types."""

from typing import Any, Optional


class DomainError(ValueError):
    """Base class for domain-level errors.

    Every error carries a machine-readable ``kind``, a human-readable
    message and an optional ``details`` payload the caller can use to
    correct and resubmit.
    """

    kind = "domain"

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details: dict[str, Any] = dict(details or {})
        # Terminal posting state, set when the error ends a posting attempt
        self.state: Optional[Any] = None

    def to_dict(self) -> dict[str, Any]:
        """Return the structured failure result."""
        result: dict[str, Any] = {"kind": self.kind, "message": self.message}
        if self.details:
            result["details"] = self.details
        if self.state is not None:
            result["state"] = getattr(self.state, "value", self.state)
        return result


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""

    kind = "validation"


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""

    kind = "not_found"


class ConflictError(DomainError):
    """Domain conflict, such as uniqueness violations."""

    kind = "conflict"


class StorageError(DomainError):
    """I/O or transactional failure at the storage boundary."""

    kind = "storage"


class PostingFailedError(DomainError):
    """Posting was aborted and rolled back; retrying is safe."""

    kind = "posting_failed"


def account_not_found(account_id: str) -> str:
    """Return message for missing account."""
    return f"Account {account_id} not found"


def account_code_not_found(code: str) -> str:
    """Return message for missing account by code."""
    return f"Account with code '{code}' not found"


def entry_not_found(entry_id: str) -> str:
    """Return message for missing ledger entry."""
    return f"Ledger entry {entry_id} not found"


def duplicate_account_code(code: str) -> str:
    """Return message for duplicate account code."""
    return f"Account with code '{code}' already exists"


def duplicate_idempotency_key(key: str) -> str:
    """Return message for an idempotency key that is already taken."""
    return f"Ledger entry with idempotency key '{key}' already exists"
