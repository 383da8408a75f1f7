"""Concurrent fan-out/fan-in resolution of linked records.

:func:`resolve` fetches every id of a relationship at once -- one asyncio
task per id, each going through :meth:`Record.get
<airkit.records.record.Record.get>` and therefore through the cache first --
and joins the results back into the order of the ids.

The join is all-or-nothing: it waits for every fetch to finish, and if any of
them failed the whole resolution raises the error observed last, discarding
the records that did arrive.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Sequence, TypeVar

from airkit.output import get_output

if TYPE_CHECKING:
    from airkit.client import AsyncClient
    from airkit.records.record import Record

R = TypeVar("R", bound="Record")


async def resolve(client: AsyncClient, record_type: type[R], ids: Sequence[str]) -> list[R]:
    """Fetch the records for *ids* concurrently and return them in *ids* order.

    Args:
        client: Client used for every fetch.
        record_type: Record class of the linked table.
        ids: Record ids in their authoritative order.  Duplicates resolve to
            the same record at each position.

    Returns:
        One record per id, in *ids* order; ``[]`` for no ids, without any
        fetch.

    Raises:
        Exception: The error of the fetch that failed last, if any failed.
        AssertionError: If a fetch neither failed nor produced a record.
    """
    ids = list(ids)
    if not ids:
        return []

    results: dict[str, R] = {}
    errors: list[Exception] = []

    async def fetch(record_id: str) -> None:
        try:
            record = await record_type.get(client, record_id)
        except Exception as exc:
            errors.append(exc)
            return
        if record is not None:
            results[record_id] = record

    await asyncio.gather(*(fetch(record_id) for record_id in ids))

    if errors:
        get_output().debug(
            f"Resolving {len(ids)} {record_type.__name__} records failed "
            f"({len(errors)} errors); discarding {len(results)} fetched"
        )
        raise errors[-1]

    resolved = []
    for record_id in ids:
        record = results.get(record_id)
        assert record is not None, f"{record_type.__name__} {record_id!r} resolved to nothing"
        resolved.append(record)
    return resolved
