"""Ledger entry commands."""

import json

import click

from ledgercore.cli.error_handling import handle_domain_error
from ledgercore.domain.entities import PostedEntry
from ledgercore.domain.entry import EntryService
from ledgercore.domain.errors import DomainError
from ledgercore.domain.posting import EntryPoster, PostEntryRequest


def _poster(ctx) -> EntryPoster:
    return EntryPoster(ctx.obj["db"], policy=ctx.obj["currency_policy"])


def _echo_posted(posted: PostedEntry, as_json: bool) -> None:
    if as_json:
        click.echo(json.dumps(posted.to_dict(), indent=2))
        return

    entry = posted.entry
    click.echo(f"Entry {entry.id}")
    click.echo(f"  Occurred:    {entry.occurred_at.isoformat()}")
    if entry.description:
        click.echo(f"  Description: {entry.description}")
    if entry.reference:
        click.echo(f"  Reference:   {entry.reference.type}:{entry.reference.id}")
    click.echo("-" * 80)
    for line in posted.lines:
        click.echo(
            f"{line.direction.value:6s} | {line.account_id} | "
            f"{line.to_dict()['amount']:>24s} {line.currency}"
        )


@click.group()
def entry_group():
    """Post and inspect ledger entries."""
    pass


@entry_group.command("post")
@click.argument("file", type=click.File("r"))
@click.option("--json", "as_json", is_flag=True, help="Print the posted entry as JSON")
@click.pass_context
def post_entry(ctx, file, as_json: bool):
    """Post an entry from a JSON document (use - for stdin).

    The document holds description, reference {type, id}, metadata,
    occurred_at, idempotency_key and a list of lines, each with
    account_id, direction, amount, currency and optional metadata.

    Examples:
        ledger entry post sale.json
        cat sale.json | ledger entry post -
    """
    try:
        payload = json.load(file)
    except json.JSONDecodeError as e:
        click.echo(f"Error: Invalid JSON: {e}", err=True)
        ctx.exit(1)

    try:
        request = PostEntryRequest.from_dict(payload)
        posted = _poster(ctx).post(request)
    except DomainError as e:
        handle_domain_error(ctx, e)

    if not as_json:
        click.echo(f"Posted entry {posted.entry.id} ({len(posted.lines)} lines)")
    _echo_posted(posted, as_json)


@entry_group.command("list")
@click.option("--limit", type=int, default=50, show_default=True, help="Maximum entries (capped at 200)")
@click.pass_context
def list_entries(ctx, limit: int):
    """List entries, most recent first."""
    service = EntryService(ctx.obj["db"])

    entries = service.list_entries(limit=limit)
    if not entries:
        click.echo("No entries found.")
        return

    for entry in entries:
        reference = f"{entry.reference.type}:{entry.reference.id}" if entry.reference else "-"
        click.echo(
            f"{entry.id} | {entry.occurred_at:%Y-%m-%d %H:%M:%S} | "
            f"{reference:20s} | {entry.description or ''}"
        )


@entry_group.command("show")
@click.argument("entry_id")
@click.option("--json", "as_json", is_flag=True, help="Print as JSON")
@click.pass_context
def show_entry(ctx, entry_id: str, as_json: bool):
    """Show an entry and its lines."""
    service = EntryService(ctx.obj["db"])

    try:
        posted = service.get_entry(entry_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    _echo_posted(posted, as_json)


@entry_group.command("reverse")
@click.argument("entry_id")
@click.option("--description", help="Description of the compensating entry")
@click.pass_context
def reverse_entry(ctx, entry_id: str, description: str | None):
    """Post a compensating entry that reverses ENTRY_ID.

    Committed entries are never edited; a reversal flips every line's
    direction. Reversing the same entry twice returns the first reversal.
    """
    service = EntryService(ctx.obj["db"], poster=_poster(ctx))

    try:
        posted = service.reverse_entry(entry_id, description=description)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Reversed entry {entry_id} with entry {posted.entry.id}")


def register_commands(cli):
    """Register entry commands with main CLI."""
    cli.add_command(entry_group, name="entry")
