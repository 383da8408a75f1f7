"""Disk-backed record cache with per-type time-to-live.

One file per key inside a single cache directory.  The file name is the key
verbatim: a record id for single records, or ``"<ClassName>.list"`` for the
ordered id index written by a list query.  The content is the raw JSON value
(an object for a record, an array of id strings for an index).

Freshness is decided solely by the file's modification time against the TTL
the caller passes in, so an entry never expires on write, only on read.  A
stale entry is ignored, not deleted.

Cache failures never reach the caller: unreadable or corrupt entries are
misses, and failed writes are dropped after a debug trace.  Concurrent
writers to the same key are last-writer-wins; each write goes through a
temp-file-then-rename so readers never observe a partial file.

See Also:
    :class:`~airkit.records.record.Record` -- the only consumer; it decides
    per record type whether caching is enabled and with which TTL.
"""

from __future__ import annotations

import json
import os
import time
from pathlib import Path
from typing import TYPE_CHECKING, Any, Optional

from airkit.config import atomic_write
from airkit.output import get_output

if TYPE_CHECKING:
    from airkit.records.record import Record


class RecordCache:
    """Keyed, TTL-governed persistence of record payloads and id lists.

    Args:
        directory: The process-designated cache directory.  Created on the
            first write if it does not exist.

    Example::

        cache = RecordCache("/tmp/airkit-cache")
        cache.save(task)                        # writes /tmp/airkit-cache/<task.id>
        payload = cache.load(task.id, expire_after=300)
    """

    def __init__(self, directory: str | Path) -> None:
        self._directory = Path(directory)

    @property
    def directory(self) -> Path:
        return self._directory

    def path_for(self, key: str) -> Optional[Path]:
        """Return the file path for *key*, or ``None`` if the key is not a safe file name."""
        if not key or key in (".", "..") or "/" in key or os.sep in key or "\0" in key:
            return None
        return self._directory / key

    def load(self, key: str, expire_after: float) -> Optional[Any]:
        """Return the JSON value stored under *key*, or ``None``.

        Args:
            key: Record id or list index key.
            expire_after: TTL in seconds.  An entry whose age is greater than
                or equal to this is treated as absent (and left on disk).

        Returns:
            The deserialised value, or ``None`` on a miss, an expired entry,
            or any read/decode failure.
        """
        path = self.path_for(key)
        if path is None:
            return None
        try:
            modified = path.stat().st_mtime
        except OSError:
            return None
        if time.time() - modified >= expire_after:
            get_output().debug(f"Cache entry expired: {key}")
            return None
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            get_output().debug(f"Ignoring unreadable cache entry {key}: {exc}")
            return None

    def contains(self, key: str) -> bool:
        """Whether an entry exists for *key*, fresh or not."""
        path = self.path_for(key)
        return path is not None and path.is_file()

    def is_fresh(self, key: str, expire_after: float) -> bool:
        """Whether an unexpired entry exists for *key* (its content is not read)."""
        path = self.path_for(key)
        if path is None:
            return False
        try:
            return time.time() - path.stat().st_mtime < expire_after
        except OSError:
            return False

    def save(self, record: Record) -> None:
        """Persist *record*'s payload under its id.

        Records without an id (not yet created server-side) are skipped.
        """
        if record.id is None:
            return
        self.save_json(record.id, record.json)

    def save_json(self, key: str, value: Any) -> None:
        """Persist an arbitrary JSON value under *key*, best effort."""
        path = self.path_for(key)
        if path is None:
            get_output().debug(f"Skipping cache write for unsafe key {key!r}")
            return
        try:
            data = json.dumps(value, ensure_ascii=False)
        except (TypeError, ValueError) as exc:
            get_output().debug(f"Skipping cache write for {key}: {exc}")
            return
        try:
            atomic_write(path, data)
        except OSError as exc:
            get_output().debug(f"Cache write failed for {key}: {exc}")

    def clear(self) -> int:
        """Delete every entry and return how many files were removed."""
        removed = 0
        if not self._directory.is_dir():
            return removed
        for path in self._directory.iterdir():
            if path.is_file():
                try:
                    path.unlink()
                    removed += 1
                except OSError as exc:
                    get_output().debug(f"Could not remove cache entry {path.name}: {exc}")
        return removed

    def stats(self) -> dict[str, Any]:
        """Return ``directory`` (str path) and ``size`` (number of entries)."""
        size = 0
        if self._directory.is_dir():
            size = sum(1 for p in self._directory.iterdir() if p.is_file() and not p.name.startswith("."))
        return {"directory": str(self._directory), "size": size}
