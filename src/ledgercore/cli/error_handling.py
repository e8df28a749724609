"""CLI error handling helpers."""

import click

from ledgercore.domain.errors import DomainError


def handle_domain_error(ctx: click.Context, error: DomainError) -> None:
    """Render a domain error and exit with failure."""
    click.echo(f"Error: {error}", err=True)

    line = error.details.get("line")
    if line is not None:
        click.echo(f"  at line {line + 1}", err=True)

    totals = error.details.get("totals_by_currency")
    if totals:
        for currency, sums in totals.items():
            click.echo(
                f"  {currency}: debit {sums['debit']} / credit {sums['credit']}", err=True
            )
    ctx.exit(1)
