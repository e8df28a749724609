"""Account domain service."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Optional

from ledgercore.domain.entities import Account as AccountEntity
from ledgercore.domain.entities import AccountType, Direction
from ledgercore.domain.errors import (
    NotFoundError,
    ValidationError,
    account_code_not_found,
    account_not_found,
)

if TYPE_CHECKING:
    from ledgercore.database.base import LedgerStore

logger = logging.getLogger(__name__)

DEFAULT_CURRENCY = "USD"


def _coerce_enum(enum_cls, value: Any, field: str):
    if value is None or isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).strip().lower())
    except ValueError:
        choices = ", ".join(member.value for member in enum_cls)
        raise ValidationError(
            f"{field} must be one of: {choices}", {"field": field, "value": str(value)}
        ) from None


class AccountService:
    """Service for managing ledger accounts.

    Accounts are never deleted: lines reference them immutably, so retiring
    an account means deactivating it.
    """

    def __init__(self, store: LedgerStore):
        """Initialize account service.

        Args:
            store: Ledger store
        """
        self.store = store

    def create_account(
        self,
        name: str,
        currency: Optional[str] = None,
        code: Optional[str] = None,
        description: Optional[str] = None,
        account_type: Optional[AccountType | str] = None,
        normal_side: Optional[Direction | str] = None,
        owner_user_id: Optional[str] = None,
        owner_group_id: Optional[str] = None,
        metadata: Optional[Mapping[str, Any]] = None,
    ) -> AccountEntity:
        """Create a new account.

        Args:
            name: Account name
            currency: Display denomination (defaults to USD)
            code: Optional unique chart-of-accounts code
            description: Optional description
            account_type: Optional asset/liability/equity/revenue/expense
            normal_side: Side the balance grows on; derived from
                ``account_type`` when omitted, else debit
            owner_user_id: Optional owning user
            owner_group_id: Optional owning group
            metadata: Optional opaque metadata

        Returns:
            Created account

        Raises:
            ValidationError: If the name is empty or the attributes disagree
            ConflictError: If the code already exists
        """
        if name is None or not name.strip():
            raise ValidationError("name is required", {"field": "name"})
        if metadata is not None and not isinstance(metadata, Mapping):
            raise ValidationError("metadata must be an object", {"field": "metadata"})

        account_type = _coerce_enum(AccountType, account_type, "account_type")
        normal_side = _coerce_enum(Direction, normal_side, "normal_side")

        if normal_side is None:
            normal_side = account_type.normal_side if account_type else Direction.DEBIT
        elif account_type is not None and account_type.normal_side is not normal_side:
            raise ValidationError(
                f"{account_type.value} accounts have a {account_type.normal_side.value} normal side",
                {"field": "normal_side"},
            )

        code = code.strip() if code and code.strip() else None
        currency = (currency or DEFAULT_CURRENCY).strip().upper() or DEFAULT_CURRENCY

        account = self.store.create_account(
            name=name.strip(),
            currency=currency,
            code=code,
            description=description,
            account_type=account_type,
            normal_side=normal_side,
            owner_user_id=owner_user_id,
            owner_group_id=owner_group_id,
            metadata=dict(metadata or {}),
        )
        logger.info("Created account %s (%s)", account.id, account.name)
        return account

    def get_account(self, account_id: str) -> AccountEntity:
        """Get account by ID.

        Raises:
            NotFoundError: If the account does not exist
        """
        account = self.store.get_account(account_id)
        if account is None:
            raise NotFoundError(account_not_found(account_id), {"account_id": account_id})
        return account

    def get_account_by_code(self, code: str) -> AccountEntity:
        """Get account by code.

        Raises:
            NotFoundError: If no account has this code
        """
        account = self.store.get_account_by_code(code)
        if account is None:
            raise NotFoundError(account_code_not_found(code), {"code": code})
        return account

    def list_accounts(
        self,
        active_only: bool = True,
        owner_user_id: Optional[str] = None,
        owner_group_id: Optional[str] = None,
    ) -> list[AccountEntity]:
        """List accounts, newest first.

        Args:
            active_only: If True, hide deactivated accounts
            owner_user_id: Optional owner user filter
            owner_group_id: Optional owner group filter
        """
        return self.store.list_accounts(
            active_only=active_only,
            owner_user_id=owner_user_id,
            owner_group_id=owner_group_id,
        )

    def deactivate_account(self, account_id: str) -> AccountEntity:
        """Deactivate an account. Its lines and balance stay intact."""
        account = self.store.set_account_active(account_id, False)
        logger.info("Deactivated account %s", account_id)
        return account

    def reactivate_account(self, account_id: str) -> AccountEntity:
        """Reactivate a previously deactivated account."""
        account = self.store.set_account_active(account_id, True)
        logger.info("Reactivated account %s", account_id)
        return account
