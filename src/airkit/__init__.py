"""airkit -- typed, cached client for Airtable-style record APIs.

Record classes declare their table and fields; the package maps the JSON
records returned by list/get/create/update/delete onto them, resolves
linked-record fields concurrently, and caches records on disk with a per-type
time-to-live.

Typical use::

    from airkit import AsyncClient, Field, Record, Relationship, setup

    class Tag(Record):
        table = "Tags"
        cache_ttl = 3600
        label = Field("Label", str)

    class Task(Record):
        table = "Tasks"
        name = Field("Name", str)
        tags = Relationship("Tags", Tag)

    config = setup("appXXXXXXXXXXXXXX", api_key)
    async with AsyncClient(config) as client:
        for task in await Task.list(client, view="Grid view"):
            print(task.name.get(), [t.label.get() for t in await task.tags.resolve(client)])

Modules:
    records: Record base class, field declarations, relationship resolver.
    client: Request descriptors and the asynchronous HTTP client.
    cache: One-file-per-key record cache with TTL expiry.
    config: Settings, credential resolution, and :func:`setup`.
    models: Pydantic configuration models.
    exceptions: Exception hierarchy with exit-code mapping.
    output: stdout/stderr formatting and debug diagnostics.
    app: Typer command-line interface.
"""

__version__ = "0.1.0"

from airkit.cache import RecordCache
from airkit.client import AsyncClient, Request
from airkit.config import setup
from airkit.exceptions import AirkitError, ApiError, UncategorizedError, ValidationError
from airkit.models import ClientConfig
from airkit.records import Attachment, Field, Record, Relationship

__all__ = [
    "AirkitError",
    "ApiError",
    "AsyncClient",
    "Attachment",
    "ClientConfig",
    "Field",
    "Record",
    "RecordCache",
    "Relationship",
    "Request",
    "UncategorizedError",
    "ValidationError",
    "setup",
]
