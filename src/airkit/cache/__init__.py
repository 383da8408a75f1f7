"""Disk-based record caching for airkit.

This package provides :class:`RecordCache`, a one-file-per-key store for
record payloads and list indices with read-time TTL expiry.  It is consumed
by :class:`~airkit.records.record.Record` for types that declare a
``cache_ttl``.
"""

from airkit.cache.cache import RecordCache

__all__ = ["RecordCache"]
