"""Typed records, their declared fields, and linked-record resolution.

Classes:
    :class:`Record` -- base class for table models.
    :class:`Field`, :class:`Attachment`, :class:`Relationship` -- field
    declarations.

Functions:
    :func:`resolve` -- concurrent, order-preserving fetch of linked records.
"""

from airkit.records.fields import (
    AnyField,
    Attachment,
    AttachmentValue,
    Field,
    FieldValue,
    Relationship,
    RelationshipValue,
    ThumbnailSize,
)
from airkit.records.record import Record, lookup_record_type
from airkit.records.resolver import resolve

__all__ = [
    "AnyField",
    "Attachment",
    "AttachmentValue",
    "Field",
    "FieldValue",
    "Record",
    "Relationship",
    "RelationshipValue",
    "ThumbnailSize",
    "lookup_record_type",
    "resolve",
]
