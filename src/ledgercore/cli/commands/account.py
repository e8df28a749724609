"""Account management commands."""

import click

from ledgercore.cli.account_resolution import resolve_account_or_exit
from ledgercore.cli.error_handling import handle_domain_error
from ledgercore.domain.account import AccountService
from ledgercore.domain.entities import AccountType, Direction
from ledgercore.domain.errors import DomainError
from ledgercore.domain.projector import BalanceProjector
from ledgercore.utils.date_parser import parse_as_of


@click.group()
def account_group():
    """Manage accounts."""
    pass


@account_group.command("create")
@click.argument("name", metavar="ACCOUNT_NAME")
@click.option("--code", help="Unique chart-of-accounts code")
@click.option("--currency", default="USD", show_default=True, help="Display currency")
@click.option(
    "--type",
    "account_type",
    type=click.Choice([t.value for t in AccountType], case_sensitive=False),
    help="Account type (sets the normal side)",
)
@click.option(
    "--normal-side",
    type=click.Choice([d.value for d in Direction], case_sensitive=False),
    help="Side the balance increases on (defaults from --type, else debit)",
)
@click.option("--description", help="Free-text description")
@click.option("--owner-user", help="Owning user ID")
@click.option("--owner-group", help="Owning group ID")
@click.pass_context
def create_account(
    ctx,
    name: str,
    code: str | None,
    currency: str,
    account_type: str | None,
    normal_side: str | None,
    description: str | None,
    owner_user: str | None,
    owner_group: str | None,
):
    """Create a new account.

    Examples:
        ledger account create "Cash" --code 1000 --type asset
        ledger account create "Sales" --code 4000 --type revenue
        ledger account create "Wallet" --currency BTC
    """
    service = AccountService(ctx.obj["db"])

    try:
        account = service.create_account(
            name=name,
            currency=currency,
            code=code,
            description=description,
            account_type=account_type,
            normal_side=normal_side,
            owner_user_id=owner_user,
            owner_group_id=owner_group,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Created account '{account.name}' (ID: {account.id})")
    click.echo(f"Normal side: {account.normal_side.value}")


@account_group.command("list")
@click.option("--all", "show_all", is_flag=True, help="Include deactivated accounts")
@click.pass_context
def list_accounts(ctx, show_all: bool):
    """List accounts, newest first."""
    service = AccountService(ctx.obj["db"])

    accounts = service.list_accounts(active_only=not show_all)
    if not accounts:
        click.echo("No accounts found.")
        return

    click.echo("\nAccounts:")
    click.echo("-" * 90)
    for acc in accounts:
        status = "" if acc.is_active else " (inactive)"
        click.echo(
            f"{acc.id} | {(acc.code or '-'):8s} | {acc.name:20s} | "
            f"{acc.currency:5s} | {acc.normal_side.value}{status}"
        )


@account_group.command("deactivate")
@click.argument("account", metavar="ACCOUNT")
@click.pass_context
def deactivate_account(ctx, account: str):
    """Deactivate an account.

    ACCOUNT can be an account ID or code. Posted lines are kept; the
    account is hidden from the default listing.
    """
    service = AccountService(ctx.obj["db"])
    account_id = resolve_account_or_exit(ctx, service, account)

    try:
        acc = service.deactivate_account(account_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Deactivated account '{acc.name}'")


@account_group.command("reactivate")
@click.argument("account", metavar="ACCOUNT")
@click.pass_context
def reactivate_account(ctx, account: str):
    """Reactivate a deactivated account."""
    service = AccountService(ctx.obj["db"])
    account_id = resolve_account_or_exit(ctx, service, account)

    try:
        acc = service.reactivate_account(account_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Reactivated account '{acc.name}'")


@account_group.command("balance")
@click.argument("account", metavar="ACCOUNT")
@click.option("--as-of", help="Only count entries that occurred up to this date/time")
@click.option("--currency", help="Currency to report (defaults to the account currency)")
@click.option("--all-currencies", is_flag=True, help="Report every currency held")
@click.pass_context
def account_balance(
    ctx, account: str, as_of: str | None, currency: str | None, all_currencies: bool
):
    """Show an account's balance.

    Examples:
        ledger account balance 1000
        ledger account balance 1000 --as-of "end of last month"
        ledger account balance 1000 --all-currencies
    """
    db = ctx.obj["db"]
    service = AccountService(db)
    projector = BalanceProjector(db)
    account_id = resolve_account_or_exit(ctx, service, account)

    as_of_dt = None
    if as_of is not None:
        try:
            as_of_dt = parse_as_of(as_of)
        except ValueError as e:
            click.echo(f"Error: {e}", err=True)
            ctx.exit(1)

    try:
        if all_currencies:
            balances = projector.compute_balances(account_id, as_of=as_of_dt)
            if not balances:
                click.echo("No lines posted.")
            for amount in balances.values():
                click.echo(str(amount))
        else:
            click.echo(str(projector.compute_balance(account_id, as_of=as_of_dt, currency=currency)))
    except DomainError as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register account commands with main CLI."""
    cli.add_command(account_group, name="account")
