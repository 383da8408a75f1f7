"""Typed records over the JSON objects returned by the record API.

A record class names its table, optionally opts into caching, and declares
its fields::

    class Tag(Record):
        table = "Tags"
        cache_ttl = 3600

        label = Field("Label", str)


    class Task(Record):
        table = "Tasks"

        name = Field("Name", str)
        tags = Relationship("Tags", Tag)

Every operation exists in two forms:

* descriptor-only classmethods (``list_request``, ``get_request``, ...)
  returning an unexecuted :class:`~airkit.client.Request`;
* awaitable classmethods (``list``, ``get``, ``create``, ...) that execute
  through an :class:`~airkit.client.AsyncClient` and return records.

Types with a ``cache_ttl`` read through the client's
:class:`~airkit.cache.RecordCache`: ``get`` returns a fresh entry without a
network call, and ``list`` serves from the ``"<ClassName>.list"`` id index
while it is fresh.  Constructing such a record from a network payload writes
the payload to the cache before the fields are bound.
"""

from __future__ import annotations

import copy
from datetime import datetime
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, ClassVar, Mapping, Optional, TypeVar

from airkit.client.request import Request
from airkit.output import get_output
from airkit.records.fields import AnyField

if TYPE_CHECKING:
    from airkit.cache import RecordCache
    from airkit.client import AsyncClient

R = TypeVar("R", bound="Record")

CREATED_TIME_FORMAT = "%Y-%m-%dT%H:%M:%S.%f%z"
RECORDS_KEY = "records"

_registry: dict[str, type[Record]] = {}


def lookup_record_type(name: str) -> type[Record]:
    """Return the record class registered under *name*.

    Classes register under their ``__name__`` when defined.  Redefining a
    name from another module or scope replaces the earlier class and emits a
    warning; re-creating the same definition does so silently.

    Raises:
        LookupError: If no record class with that name has been defined.
    """
    try:
        return _registry[name]
    except KeyError:
        raise LookupError(f"Unknown record type '{name}'") from None


def _origin(cls: type) -> str:
    return f"{cls.__module__}.{cls.__qualname__}"


class Record:
    """Base class for typed records.

    Class attributes:
        table: Remote table name.  Defaults to the class name.
        cache_ttl: Cache lifetime in seconds, or ``None`` (the default) to
            never touch the cache.

    Args:
        json: The record payload (``{"id", "createdTime", "fields"}``).  It
            is deep-copied; the record owns its copy.
        cache: When given and the type caches, the payload is written to it
            before the fields are bound.  Pass it only for payloads that came
            from the network.
    """

    table: ClassVar[str] = ""
    cache_ttl: ClassVar[Optional[float]] = None
    _fields: ClassVar[dict[str, AnyField]] = {}

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        if not cls.table:
            cls.table = cls.__name__
        fields: dict[str, AnyField] = {}
        for base in reversed(cls.__mro__):
            for name, value in vars(base).items():
                if isinstance(value, AnyField):
                    fields[name] = value
        cls._fields = fields
        previous = _registry.get(cls.__name__)
        if previous is not None and _origin(previous) != _origin(cls):
            get_output().warning(
                f"Record type '{cls.__name__}' from {_origin(cls)} replaces "
                f"{_origin(previous)}; lookups by name now resolve to the new class"
            )
        _registry[cls.__name__] = cls

    def __init__(
        self,
        json: Optional[dict[str, Any]] = None,
        cache: Optional[RecordCache] = None,
    ) -> None:
        self._json: dict[str, Any] = copy.deepcopy(json) if json is not None else {}
        self._bindings: dict[str, Any] = {}
        if cache is not None and self.caches():
            cache.save(self)
        self.bind()

    # ------------------------------------------------------------------ #
    # Payload and binding
    # ------------------------------------------------------------------ #

    @property
    def json(self) -> dict[str, Any]:
        """The owned payload.  Assigning a new payload rebinds every field."""
        return self._json

    @json.setter
    def json(self, value: dict[str, Any]) -> None:
        self._json = copy.deepcopy(value)
        self.bind()

    @property
    def fields(self) -> Mapping[str, Any]:
        """Read-only view of the payload's ``"fields"`` object."""
        fields = self._json.get("fields")
        return MappingProxyType(fields if isinstance(fields, dict) else {})

    def bind(self) -> None:
        """Connect every declared field to the current payload.

        Called on construction and on payload assignment; calling it again
        yields equivalent bound values.
        """
        view = self.fields
        self._bindings = {name: field.connect(view) for name, field in self._fields.items()}

    # ------------------------------------------------------------------ #
    # Identity
    # ------------------------------------------------------------------ #

    @property
    def id(self) -> Optional[str]:
        """Server-assigned id; ``None`` until the payload carries one."""
        value = self._json.get("id")
        return value if isinstance(value, str) else None

    @property
    def created_time(self) -> Optional[datetime]:
        """Creation timestamp, or ``None`` if the payload has none.

        Raises:
            ValueError: If ``createdTime`` is not a string matching
                ``YYYY-MM-DDTHH:MM:SS.sss<offset>``.
        """
        raw = self._json.get("createdTime")
        if raw is None:
            return None
        if not isinstance(raw, str):
            raise ValueError(f"createdTime is not a string: {raw!r}")
        return datetime.strptime(raw, CREATED_TIME_FORMAT)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Record):
            return NotImplemented
        return type(self) is type(other) and self.id is not None and self.id == other.id

    def __hash__(self) -> int:
        if self.id is None:
            return object.__hash__(self)
        return hash((type(self), self.id))

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.id!r})"

    # ------------------------------------------------------------------ #
    # Caching
    # ------------------------------------------------------------------ #

    @classmethod
    def caches(cls) -> bool:
        """Whether this record type uses the cache at all."""
        return cls.cache_ttl is not None

    @classmethod
    def list_key(cls) -> str:
        """Cache key of this type's list index."""
        return f"{cls.__name__}.list"

    @classmethod
    def load(cls: type[R], cache: RecordCache, key: str) -> Optional[R]:
        """Build a record from a fresh cache entry, or return ``None``.

        The entry is not written back.
        """
        if cls.cache_ttl is None:
            return None
        payload = cache.load(key, cls.cache_ttl)
        if not isinstance(payload, dict):
            return None
        return cls(payload)

    def save(self, cache: RecordCache) -> None:
        """Write this record to *cache* (skipped when it has no id)."""
        cache.save(self)

    @classmethod
    def from_list_payload(
        cls: type[R],
        payload: Optional[Mapping[str, Any]],
        cache: Optional[RecordCache] = None,
    ) -> list[R]:
        """Build one record per object in ``payload["records"]``."""
        if payload is None:
            return []
        items = payload.get(RECORDS_KEY)
        if not isinstance(items, list):
            return []
        return [cls(item, cache=cache) for item in items if isinstance(item, dict)]

    # ------------------------------------------------------------------ #
    # Descriptor-only operations
    # ------------------------------------------------------------------ #

    @classmethod
    def list_request(
        cls,
        view: Optional[str] = None,
        limit: Optional[int] = None,
        offset: Optional[str] = None,
    ) -> Request:
        params: dict[str, Any] = {}
        if limit is not None:
            params["limit"] = limit
        if offset is not None:
            params["offset"] = offset
        if view is not None:
            params["view"] = view
        return Request.get(cls.table, params)

    @classmethod
    def get_request(cls, record_id: str) -> Request:
        return Request.get(f"{cls.table}/{record_id}")

    @classmethod
    def create_request(cls, fields: Mapping[str, Any]) -> Request:
        return Request.post(cls.table, {"fields": dict(fields)})

    @classmethod
    def update_request(cls, record_id: str, fields: Mapping[str, Any]) -> Request:
        return Request.put(f"{cls.table}/{record_id}", {"fields": dict(fields)})

    @classmethod
    def delete_request(cls, record_id: str) -> Request:
        return Request.delete(f"{cls.table}/{record_id}")

    # ------------------------------------------------------------------ #
    # Resolved operations
    # ------------------------------------------------------------------ #

    @classmethod
    async def list(
        cls: type[R],
        client: AsyncClient,
        view: Optional[str] = None,
        limit: Optional[int] = None,
        offset: Optional[str] = None,
    ) -> list[R]:
        """List records, from the cached id index when one is fresh.

        The index key does not include *view*, *limit* or *offset*: any fresh
        index for this type answers any list call.  A listed record whose
        cache entry has expired (or cannot be read) turns the index into a
        miss, and the list is fetched again.

        Raises:
            ApiError: If the request fails.
            AssertionError: If the fresh index names a record with no cache
                entry at all, which the index write below never allows.
        """
        if cls.caches():
            ids = client.cache.load(cls.list_key(), cls.cache_ttl)
            if isinstance(ids, list) and ids and all(isinstance(i, str) for i in ids):
                records = []
                for record_id in ids:
                    record = cls.load(client.cache, record_id)
                    if record is None:
                        assert client.cache.contains(record_id), (
                            f"{cls.list_key()} lists {record_id!r}, which is not cached"
                        )
                        # Members are written before the index and expire first.
                        get_output().debug(
                            f"Cache miss: {cls.list_key()} lists expired {record_id!r}"
                        )
                        break
                    records.append(record)
                else:
                    get_output().debug(f"Cache hit: {cls.list_key()} ({len(ids)} records)")
                    return records

        records = await client.fetch_list(cls.list_request(view, limit, offset), cls)
        if cls.caches():
            cls._save_index(client.cache, records)
        return records

    @classmethod
    def _save_index(cls, cache: RecordCache, records: list[Record]) -> None:
        ids = [record.id for record in records]
        if not all(
            record_id is not None and cache.is_fresh(record_id, cls.cache_ttl)
            for record_id in ids
        ):
            get_output().debug(f"Not writing {cls.list_key()}: some records are not cached")
            return
        cache.save_json(cls.list_key(), ids)

    @classmethod
    async def list_all(
        cls: type[R],
        client: AsyncClient,
        view: Optional[str] = None,
        page_size: Optional[int] = None,
    ) -> list[R]:
        """List every record, following the response ``offset`` page by page.

        Never reads or writes the list index.
        """
        records: list[R] = []
        offset: Optional[str] = None
        while True:
            payload = await client.send(cls.list_request(view, page_size, offset))
            store = client.cache if cls.caches() else None
            records.extend(cls.from_list_payload(payload, store))
            next_offset = payload.get("offset") if payload else None
            if not isinstance(next_offset, str) or not next_offset or next_offset == offset:
                return records
            offset = next_offset

    @classmethod
    async def get(cls: type[R], client: AsyncClient, record_id: str) -> Optional[R]:
        """Fetch one record, from the cache when a fresh entry exists.

        Returns:
            The record, or ``None`` when the response carried no object.

        Raises:
            ApiError: If the request fails.
        """
        if cls.caches():
            record = cls.load(client.cache, record_id)
            if record is not None:
                get_output().debug(f"Cache hit: {cls.__name__} {record_id}")
                return record
        return await client.fetch(cls.get_request(record_id), cls)

    @classmethod
    async def create(cls: type[R], client: AsyncClient, fields: Mapping[str, Any]) -> Optional[R]:
        """Create a record.  The result is not cached; call :meth:`save` if needed."""
        return await client.fetch(cls.create_request(fields), cls, cache=False)

    @classmethod
    async def update(
        cls: type[R],
        client: AsyncClient,
        record_id: str,
        fields: Mapping[str, Any],
    ) -> Optional[R]:
        """Replace a record's fields.  The result is not cached."""
        return await client.fetch(cls.update_request(record_id, fields), cls, cache=False)

    @classmethod
    async def delete(cls, client: AsyncClient, record_id: str) -> bool:
        """Delete a record and return the API's ``deleted`` flag.

        Cached copies are left to expire.
        """
        payload = await client.send(cls.delete_request(record_id))
        return bool(payload and payload.get("deleted"))
