"""CLI helpers for account resolution."""

from __future__ import annotations

import click
from ledgercore.cli.error_handling import handle_domain_error
from ledgercore.domain.account import AccountService
from ledgercore.domain.errors import NotFoundError
from ledgercore.utils.account_resolver import resolve_account


def resolve_account_or_exit(
    ctx: click.Context, account_service: AccountService, account: str
) -> str:
    """Resolve account ID or code, or exit with a CLI error.

    This keeps error messaging and exit behavior consistent across commands.
    """
    try:
        return resolve_account(account_service, account)
    except NotFoundError as exc:
        handle_domain_error(ctx, exc)
