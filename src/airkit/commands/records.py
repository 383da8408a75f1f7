"""Record commands -- list, read, and modify records in a table.

Provides the ``airkit records`` sub-command group.  Every command works on an
ad-hoc :class:`~airkit.records.Record` subclass built for the named table
(:func:`record_type_for`), so the full record machinery applies: reads go
through the disk cache with the TTL from the settings file unless
``--no-cache`` was passed, and linked-record fields resolve concurrently.

Typical workflow::

    airkit records list Tasks --view "Grid view"
    airkit records get Tasks recXXXXXXXXXXXXXX
    airkit records create Tasks -f Name="Write docs" -f Estimate=3
    airkit records resolve Tasks recXXXXXXXXXXXXXX Tags --target Tags
"""

from __future__ import annotations

import asyncio
import json
from typing import Any, Awaitable, Callable, Optional, TypeVar

import typer

from airkit.client import AsyncClient
from airkit.exceptions import AirkitError
from airkit.exit_codes import EXIT_INVALID_USAGE, EXIT_NOT_FOUND
from airkit.output import error, format_response, print_records, success, warning
from airkit.records import Record, Relationship

T = TypeVar("T")

records_app = typer.Typer(no_args_is_help=True)

# Attribute name of the relationship declared by ``records resolve``.
_LINK_ATTRIBUTE = "link"


def record_type_for(table: str, ttl: Optional[float] = None, **attributes: Any) -> type[Record]:
    """Build a record class for *table*.

    Args:
        table: Remote table name; also used as the class name, so the list
            index is cached under ``"<table>.list"``.
        ttl: Cache lifetime in seconds, or ``None`` to bypass the cache.
        **attributes: Extra class attributes, typically field declarations.
    """
    namespace: dict[str, Any] = {"table": table, "cache_ttl": ttl, **attributes}
    return type(table, (Record,), namespace)


def _parse_fields(pairs: list[str]) -> dict[str, Any]:
    """Parse ``key=value`` pairs; values are decoded as JSON when possible."""
    fields: dict[str, Any] = {}
    for pair in pairs:
        key, sep, raw = pair.partition("=")
        if not sep or not key:
            error(f"Invalid field '{pair}'. Expected key=value.")
            raise typer.Exit(code=EXIT_INVALID_USAGE)
        try:
            fields[key] = json.loads(raw)
        except json.JSONDecodeError:
            fields[key] = raw
    return fields


def _execute(
    ctx: typer.Context,
    work: Callable[[AsyncClient, Optional[float]], Awaitable[T]],
) -> T:
    """Resolve the connection config and run *work* inside an open client.

    *work* receives the client and the cache TTL to use for record types
    (``None`` when caching is disabled by settings or ``--no-cache``).

    Raises:
        typer.Exit: With the error's exit code on any :class:`AirkitError`.
    """
    from airkit.config import load_settings, resolve_client_config

    opts = ctx.obj or {}
    try:
        settings = load_settings()
        config = resolve_client_config(
            cli_base_id=opts.get("base_id"),
            cli_api_key_source=opts.get("api_key_source"),
            settings=settings,
        )
        ttl: Optional[float] = None
        if settings.cache.enabled and not opts.get("no_cache", False):
            ttl = settings.cache.ttl_seconds

        async def _main() -> T:
            async with AsyncClient(config) as client:
                return await work(client, ttl)

        return asyncio.run(_main())
    except AirkitError as exc:
        error(exc.message)
        raise typer.Exit(code=exc.exit_code) from None


@records_app.command("list")
def records_list(
    ctx: typer.Context,
    table: str = typer.Argument(help="Table name."),
    view: Optional[str] = typer.Option(None, "--view", help="View to list records from."),
    limit: Optional[int] = typer.Option(
        None, "--limit", help="Maximum number of records (page size with --all)."
    ),
    offset: Optional[str] = typer.Option(None, "--offset", help="Page offset from a previous call."),
    fetch_all: bool = typer.Option(False, "--all", help="Follow pagination to the last page."),
) -> None:
    """List records in a table.

    Without ``--all`` a fresh cached listing for the table answers the call
    without a request.  With ``--all`` every page is fetched.

    Example::

        airkit records list Tasks
        airkit records list Tasks --view "Grid view" --limit 10
        airkit --json records list Tasks --all
    """

    async def work(client: AsyncClient, ttl: Optional[float]) -> list[Record]:
        record_type = record_type_for(table, ttl)
        if fetch_all:
            return await record_type.list_all(client, view=view, page_size=limit)
        return await record_type.list(client, view=view, limit=limit, offset=offset)

    records = _execute(ctx, work)
    print_records([record.json for record in records], title=table)


@records_app.command("get")
def records_get(
    ctx: typer.Context,
    table: str = typer.Argument(help="Table name."),
    record_id: str = typer.Argument(help="Record id."),
) -> None:
    """Show one record.

    Example::

        airkit records get Tasks recXXXXXXXXXXXXXX
    """

    async def work(client: AsyncClient, ttl: Optional[float]) -> Optional[Record]:
        return await record_type_for(table, ttl).get(client, record_id)

    record = _execute(ctx, work)
    if record is None:
        error(f"No record returned for {table}/{record_id}")
        raise typer.Exit(code=EXIT_NOT_FOUND)
    print_records([record.json], title=table)


@records_app.command("create")
def records_create(
    ctx: typer.Context,
    table: str = typer.Argument(help="Table name."),
    field: list[str] = typer.Option(
        [], "--field", "-f", help="Field value as key=value (repeatable)."
    ),
) -> None:
    """Create a record.

    Values are parsed as JSON when possible (``-f Estimate=3`` sends a
    number, ``-f Tags='["recA"]'`` a list) and sent as strings otherwise.

    Example::

        airkit records create Tasks -f Name="Write docs" -f Estimate=3
    """
    fields = _parse_fields(field)

    async def work(client: AsyncClient, ttl: Optional[float]) -> Optional[Record]:
        return await record_type_for(table, ttl).create(client, fields)

    record = _execute(ctx, work)
    if record is not None:
        print_records([record.json], title=table)
        success(f"Created {record.id}")


@records_app.command("update")
def records_update(
    ctx: typer.Context,
    table: str = typer.Argument(help="Table name."),
    record_id: str = typer.Argument(help="Record id."),
    field: list[str] = typer.Option(
        [], "--field", "-f", help="Field value as key=value (repeatable)."
    ),
) -> None:
    """Replace a record's fields.

    Fields not passed are cleared by the API.

    Example::

        airkit records update Tasks recXXXXXXXXXXXXXX -f Name="Done"
    """
    fields = _parse_fields(field)

    async def work(client: AsyncClient, ttl: Optional[float]) -> Optional[Record]:
        return await record_type_for(table, ttl).update(client, record_id, fields)

    record = _execute(ctx, work)
    if record is not None:
        print_records([record.json], title=table)
        success(f"Updated {record.id}")


@records_app.command("delete")
def records_delete(
    ctx: typer.Context,
    table: str = typer.Argument(help="Table name."),
    record_id: str = typer.Argument(help="Record id."),
) -> None:
    """Delete a record.

    Example::

        airkit records delete Tasks recXXXXXXXXXXXXXX
    """

    async def work(client: AsyncClient, ttl: Optional[float]) -> bool:
        return await record_type_for(table, ttl).delete(client, record_id)

    deleted = _execute(ctx, work)
    format_response({"id": record_id, "deleted": deleted})


@records_app.command("resolve")
def records_resolve(
    ctx: typer.Context,
    table: str = typer.Argument(help="Table name."),
    record_id: str = typer.Argument(help="Record id."),
    field: str = typer.Argument(help="Linked-record field to resolve."),
    target: Optional[str] = typer.Option(
        None, "--target", "-t", help="Linked table name (defaults to the field name)."
    ),
) -> None:
    """Fetch the records a linked-record field points to.

    The linked records are fetched concurrently and printed in the order the
    field lists them.  If any of them cannot be fetched the command fails.

    Example::

        airkit records resolve Tasks recXXXXXXXXXXXXXX Tags
        airkit records resolve Tasks recXXXXXXXXXXXXXX Owner --target People
    """
    target_table = target or field

    async def work(client: AsyncClient, ttl: Optional[float]) -> Optional[list[Record]]:
        target_type = record_type_for(target_table, ttl)
        source_type = record_type_for(
            table, ttl, **{_LINK_ATTRIBUTE: Relationship(field, target_type)}
        )
        record = await source_type.get(client, record_id)
        if record is None:
            return None
        return await getattr(record, _LINK_ATTRIBUTE).resolve(client)

    linked = _execute(ctx, work)
    if linked is None:
        error(f"No record returned for {table}/{record_id}")
        raise typer.Exit(code=EXIT_NOT_FOUND)
    if not linked:
        warning(f"{table}/{record_id} links no records in field '{field}'")
    print_records([record.json for record in linked], title=target_table)
