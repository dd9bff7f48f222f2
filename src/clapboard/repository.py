#!/usr/bin/env python3
"""Entry repository.

The history table. Each entry is one bucket of the blob store named by its
decimal id, holding one blob per format tag (see format_keys for the file
naming). The repository is the only reader and writer of the cache root.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from clapboard.blob_store import DirectoryBlobStore
from clapboard.entry_ids import parse_entry_id
from clapboard.errors import EntryNotFound, StorageError
from clapboard.format_keys import sanitize, unsanitize

logger = logging.getLogger(__name__)

# Upper bound on id bumps when reserving; a collision streak this long
# means something other than clapboard is writing into the cache root.
MAX_RESERVE_ATTEMPTS: int = 1000


@dataclass(frozen=True)
class EntryInfo:
    """Listing row for one materialized entry.

    Attributes:
        entry_id: The entry id (millisecond capture timestamp).
        formats: Format tags stored for the entry, sorted.
    """

    entry_id: int
    formats: tuple[str, ...]


class EntryRepository:
    """Filesystem-backed table of history entries."""

    def __init__(self, store: DirectoryBlobStore) -> None:
        self.store = store

    @classmethod
    def at(cls, root: Path) -> EntryRepository:
        """Open the repository stored under root."""
        return cls(DirectoryBlobStore(root))

    def reserve(self, preferred_id: int) -> int:
        """Create an empty entry for the first free id >= preferred_id.

        Directory creation is atomic, so two processes reserving the same
        millisecond end up with different ids.

        Args:
            preferred_id: Id to try first.

        Returns:
            The reserved id.

        Raises:
            StorageError: If no id could be reserved.
        """
        for entry_id in range(preferred_id, preferred_id + MAX_RESERVE_ATTEMPTS):
            if self.store.create_bucket(str(entry_id)):
                return entry_id
            logger.debug("Entry %s already exists, trying the next id", entry_id)
        raise StorageError(f"Could not reserve an entry id from {preferred_id}")

    def put(self, entry_id: int, format_tag: str, data: bytes) -> None:
        """Store one representation of an entry, creating the entry if needed.

        Calling put() again for the same id with another format adds a
        representation to the same entry.

        Raises:
            InvalidFormatTag: If the format tag has no safe storage key.
            StorageError: If the data cannot be written.
        """
        self.store.put(str(entry_id), sanitize(format_tag), data)

    def list(self) -> list[EntryInfo]:
        """Return all materialized entries, most recent first.

        Names that are not ids, hidden names and entries without any
        representation (incomplete captures) are skipped.
        """
        return [
            EntryInfo(entry_id, tuple(sorted(unsanitize(key) for key in keys)))
            for entry_id, keys in self._scan()
            if keys
        ]

    def incomplete_ids(self) -> list[int]:
        """Return ids of entries without any representation, newest first.

        These are captures still in progress, or ones interrupted between
        reserve() and their first put().
        """
        return [entry_id for entry_id, keys in self._scan() if not keys]

    def _scan(self) -> list[tuple[int, list[str]]]:
        ids = []
        for name in self.store.buckets():
            entry_id = parse_entry_id(name)
            if entry_id is None:
                logger.debug("Ignoring %s in history store", name)
                continue
            ids.append(entry_id)

        rows = []
        for entry_id in sorted(ids, reverse=True):
            try:
                keys = self.store.keys(str(entry_id))
            except KeyError:
                continue  # removed since the directory scan
            rows.append((entry_id, keys))
        return rows

    def newest_id(self) -> int | None:
        """Return the id of the most recent materialized entry, if any."""
        entries = self.list()
        return entries[0].entry_id if entries else None

    def read(self, entry_id: int, format_tag: str) -> bytes:
        """Return one representation of an entry.

        Raises:
            EntryNotFound: If the entry or that representation is missing.
            StorageError: If the data exists but cannot be read.
        """
        try:
            return self.store.get(str(entry_id), sanitize(format_tag))
        except KeyError as e:
            raise EntryNotFound(entry_id, format_tag) from e

    def read_all(self, entry_id: int) -> dict[str, bytes]:
        """Return every representation of an entry, keyed by format tag.

        Raises:
            EntryNotFound: If the entry is missing or has no representation
                left (an empty restore is never acceptable).
            StorageError: If a representation cannot be read.
        """
        bucket = str(entry_id)
        try:
            keys = self.store.keys(bucket)
            representations = {
                unsanitize(key): self.store.get(bucket, key) for key in keys
            }
        except KeyError as e:
            raise EntryNotFound(entry_id) from e
        if not representations:
            raise EntryNotFound(entry_id)
        return representations

    def delete(self, entry_id: int) -> bool:
        """Remove an entry and all its representations, if it exists.

        Returns:
            True if the entry was removed by this call, False if it was
            already gone.

        Raises:
            StorageError: If the entry exists but cannot be removed.
        """
        return self.store.delete(str(entry_id))
