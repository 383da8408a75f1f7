"""Declared record fields and the bound values they produce.

A record class declares its fields as class attributes::

    class Task(Record):
        table = "Tasks"

        name = Field("Name", str)
        estimate = Field("Estimate", int)
        cover = Attachment("Cover")
        tags = Relationship("Tags", "Tag")

Each declaration is an :class:`AnyField` descriptor, created once per class
and fixed to one payload key.  When a record is constructed (or its payload
replaced) every descriptor is *connected* to a read-only view of the
payload's ``"fields"`` object and returns a bound value, which is what
``task.name`` evaluates to:

* ``Field(key, type)`` -> :class:`FieldValue`, decoding to ``int`` or ``str``
  (anything else is ``None``).
* ``Attachment(key)`` -> :class:`AttachmentValue`, the large thumbnail URL
  and size of the last attachment.
* ``Relationship(key, target)`` -> :class:`RelationshipValue`, the ordered
  ids of linked records, resolved on demand.

Bound values never own the payload and are replaced whenever the record is
rebound, so they cannot observe a payload they were not connected to.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Generic, Iterator, NamedTuple, Optional, TypeVar, Union

if TYPE_CHECKING:
    from airkit.client import AsyncClient
    from airkit.records.record import Record

T = TypeVar("T")
R = TypeVar("R", bound="Record")


class AnyField:
    """Base class for declared record fields.

    Subclasses implement :meth:`connect`, which turns the record's
    ``"fields"`` view into the bound value exposed on instances.

    Args:
        key: Name of the field in the payload's ``"fields"`` object.
    """

    def __init__(self, key: str) -> None:
        self.key = key
        self.name: Optional[str] = None

    def __set_name__(self, owner: type, name: str) -> None:
        self.name = name

    def __get__(self, instance: Optional[Record], owner: Optional[type] = None) -> Any:
        if instance is None:
            return self
        return instance._bindings[self.name]

    def __set__(self, instance: Record, value: Any) -> None:
        raise AttributeError(
            f"Field '{self.name}' is read-only; assign a new payload to 'json' instead"
        )

    def connect(self, fields: Mapping[str, Any]) -> Any:
        """Bind against a record's ``"fields"`` view and return the bound value."""
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.key!r})"


# --------------------------------------------------------------------- #
# Scalars
# --------------------------------------------------------------------- #


def _decode_scalar(value: Any, target: type) -> Any:
    if target is int:
        if isinstance(value, bool):
            return None
        if isinstance(value, int):
            return value
        if isinstance(value, float):
            return int(value) if math.isfinite(value) else None
        return None
    if target is str:
        return value if isinstance(value, str) else None
    return None


class FieldValue(Generic[T]):
    """Bound scalar value; :meth:`get` decodes it on each call."""

    __slots__ = ("_view", "_key", "_type")

    def __init__(self, view: Mapping[str, Any], key: str, target: type[T]) -> None:
        self._view = view
        self._key = key
        self._type = target

    def get(self) -> Optional[T]:
        """Return the decoded value, or ``None`` if absent, mistyped, or unsupported."""
        return _decode_scalar(self._view.get(self._key), self._type)

    def __repr__(self) -> str:
        return f"FieldValue({self._key!r}, {self.get()!r})"


class Field(AnyField, Generic[T]):
    """A scalar field decoded to ``int`` or ``str``.

    Numbers decode to ``int`` (floats are truncated; booleans are not
    numbers).  A value of another JSON type, or a *target* other than
    ``int``/``str``, decodes to ``None`` rather than failing.

    Args:
        key: Field name in the payload.
        target: ``int`` or ``str``.
    """

    def __init__(self, key: str, target: type[T]) -> None:
        super().__init__(key)
        self.target = target

    def connect(self, fields: Mapping[str, Any]) -> FieldValue[T]:
        return FieldValue(fields, self.key, self.target)


# --------------------------------------------------------------------- #
# Attachments
# --------------------------------------------------------------------- #


class ThumbnailSize(NamedTuple):
    width: float
    height: float


class AttachmentValue:
    """Bound attachment: URL and pixel size of the last attachment's large thumbnail."""

    __slots__ = ("url", "thumbnail_size")

    def __init__(self, url: Optional[str] = None, thumbnail_size: Optional[ThumbnailSize] = None):
        self.url = url
        self.thumbnail_size = thumbnail_size

    def get(self) -> Optional[str]:
        return self.url

    def __repr__(self) -> str:
        return f"AttachmentValue(url={self.url!r}, thumbnail_size={self.thumbnail_size!r})"


def _dimension(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value) if math.isfinite(value) else None


class Attachment(AnyField):
    """An attachment field decoded from the **last** attachment in the array.

    Only the ``"large"`` thumbnail is considered.  Without attachments or
    without a large thumbnail the bound value has ``url is None`` and
    ``thumbnail_size is None``; a thumbnail missing either dimension has a
    URL but no size.
    """

    def connect(self, fields: Mapping[str, Any]) -> AttachmentValue:
        items = fields.get(self.key)
        if not isinstance(items, list) or not items or not isinstance(items[-1], dict):
            return AttachmentValue()
        thumbnails = items[-1].get("thumbnails")
        large = thumbnails.get("large") if isinstance(thumbnails, dict) else None
        if not isinstance(large, dict):
            return AttachmentValue()

        url = large.get("url")
        width, height = _dimension(large.get("width")), _dimension(large.get("height"))
        size = ThumbnailSize(width, height) if width is not None and height is not None else None
        return AttachmentValue(url if isinstance(url, str) else None, size)


# --------------------------------------------------------------------- #
# Relationships
# --------------------------------------------------------------------- #


class RelationshipValue(Generic[R]):
    """Bound relationship: the ordered ids of linked records.

    Nothing is fetched until :meth:`resolve` is awaited.
    """

    __slots__ = ("_ids", "_field")

    def __init__(self, ids: Optional[tuple[str, ...]], field: Relationship[R]) -> None:
        self._ids = ids
        self._field = field

    @property
    def ids(self) -> list[str]:
        """Referenced ids in payload order (empty if the field is absent)."""
        return list(self._ids or ())

    @property
    def count(self) -> int:
        return len(self._ids or ())

    def has_key(self, record_id: str) -> bool:
        """Whether *record_id* is among the referenced ids."""
        return record_id in (self._ids or ())

    def __len__(self) -> int:
        return self.count

    def __iter__(self) -> Iterator[str]:
        return iter(self._ids or ())

    def __contains__(self, record_id: object) -> bool:
        return record_id in (self._ids or ())

    async def resolve(self, client: AsyncClient) -> list[R]:
        """Fetch every referenced record concurrently, in payload order.

        Raises:
            ApiError: If any single fetch failed; no partial result is
                returned.
        """
        from airkit.records.resolver import resolve

        return await resolve(client, self._field.target, self.ids)

    def __repr__(self) -> str:
        return f"RelationshipValue({self._field.key!r}, {self.ids!r})"


class Relationship(AnyField, Generic[R]):
    """A linked-record field holding the ids of records of another type.

    Args:
        key: Field name in the payload.
        target: The linked record class, or its class name.  Names are
            looked up in the record registry on first use, which allows
            self-references and forward references.
    """

    def __init__(self, key: str, target: Union[type[R], str]) -> None:
        super().__init__(key)
        self._target = target

    @property
    def target(self) -> type[R]:
        if isinstance(self._target, str):
            from airkit.records.record import lookup_record_type

            self._target = lookup_record_type(self._target)
        return self._target

    def connect(self, fields: Mapping[str, Any]) -> RelationshipValue[R]:
        raw = fields.get(self.key)
        if not isinstance(raw, list):
            return RelationshipValue(None, self)
        return RelationshipValue(tuple(v for v in raw if isinstance(v, str)), self)
