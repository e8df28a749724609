"""Utility for resolving account references to IDs."""

from ledgercore.domain.account import AccountService
from ledgercore.domain.errors import NotFoundError


def resolve_account(account_service: AccountService, account: str) -> str:
    """Resolve an account ID or code to an account ID.

    IDs are tried first, then codes.

    Args:
        account_service: AccountService instance
        account: Account ID or chart-of-accounts code

    Returns:
        Account ID

    Raises:
        NotFoundError: If neither an ID nor a code matches
    """
    account = account.strip()
    try:
        return account_service.get_account(account).id
    except NotFoundError:
        pass

    try:
        return account_service.get_account_by_code(account).id
    except NotFoundError:
        raise NotFoundError(f"Account '{account}' not found", {"account": account}) from None
