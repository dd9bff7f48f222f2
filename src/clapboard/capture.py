#!/usr/bin/env python3
"""Capture session.

Persists clipboard events into the repository. One listener task runs per
source; every event is fetched format by format, written under a freshly
reserved id, and followed by an inline trim so the history bound holds
after every write.

Faults stay local: a format that cannot be fetched or written is logged
and skipped, and the listener keeps running.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from clapboard.entry_ids import EntryIdAllocator
from clapboard.errors import CaptureError, ResolutionError, StorageError
from clapboard.eviction import trim
from clapboard.hashing import HashState, compute_hash

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from clapboard.repository import EntryRepository
    from clapboard.source import ClipboardEvent, ClipboardSource

logger = logging.getLogger(__name__)

# Largest single representation that is recorded (10 MB).
MAX_CONTENT_SIZE: int = 10485760


def validate_content_size(data: bytes) -> bool:
    """Return True if data is small enough to be recorded."""
    return len(data) <= MAX_CONTENT_SIZE


class CaptureSession:
    """Writes clipboard events into a repository.

    Attributes:
        repository: Where entries are stored.
        history_size: Number of entries kept after each capture.
        deduplicate: Skip an event identical to the last recorded one.
        hash_state: Digest of the last recorded event, shared by listeners.
        allocator: Source of strictly increasing entry ids.
    """

    def __init__(
        self,
        repository: EntryRepository,
        history_size: int,
        deduplicate: bool = True,
    ) -> None:
        self.repository = repository
        self.history_size = history_size
        self.deduplicate = deduplicate
        self.hash_state = HashState()
        self.allocator = EntryIdAllocator()

    def prime(self) -> None:
        """Seed deduplication with the newest stored entry.

        Keeps a restarted session from recording the clipboard content it
        finds on startup a second time.
        """
        entry_id = self.repository.newest_id()
        if entry_id is None:
            return
        try:
            self.hash_state.record(compute_hash(self.repository.read_all(entry_id)))
        except (ResolutionError, StorageError) as e:
            logger.debug("Cannot read newest entry %s: %s", entry_id, e)

    async def run(self, sources: Iterable[ClipboardSource]) -> None:
        """Run one listener task per source until they end or fail.

        The first listener failure cancels the others and is re-raised.
        """
        tasks = [
            asyncio.create_task(self.listen(source), name=f"capture-{source.name}")
            for source in sources
        ]
        try:
            await asyncio.gather(*tasks)
        finally:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)

    async def listen(self, source: ClipboardSource) -> None:
        """Record every event reported by one source."""
        logger.debug("Listening on %s", source.name)
        await source.listen(self.capture_event)

    async def capture_event(self, event: ClipboardEvent) -> int | None:
        """Fetch every format of an event and record it.

        Args:
            event: The clipboard change to capture.

        Returns:
            The id of the new entry, or None if nothing was recorded.
        """
        blobs: dict[str, bytes] = {}
        for format_tag in event.formats:
            try:
                data = await event.fetch(format_tag)
            except CaptureError as e:
                logger.warning("Skipping format %s: %s", format_tag, e)
                continue
            if not data:
                logger.debug("Format %s is empty, skipping", format_tag)
                continue
            if not validate_content_size(data):
                logger.warning("Format %s exceeds 10 MB limit, skipping", format_tag)
                continue
            blobs[format_tag] = data
        return self.record(blobs)

    def record(self, blobs: Mapping[str, bytes]) -> int | None:
        """Store one event's representations, then trim the history.

        Args:
            blobs: Format tag -> content for one event.

        Returns:
            The id of the new entry, or None if nothing was recorded.
        """
        entry_id = None
        if not blobs:
            logger.debug("Event has no content, nothing recorded")
        else:
            current_hash = compute_hash(blobs)
            if self.deduplicate and not self.hash_state.should_record(current_hash):
                logger.debug("Skipping repeat of the last recorded event")
            else:
                entry_id = self._store(blobs)
                if entry_id is not None:
                    self.hash_state.record(current_hash)
        trim(self.repository, self.history_size)
        return entry_id

    def _store(self, blobs: Mapping[str, bytes]) -> int | None:
        """Write blobs under a newly reserved id; release the id if none stick."""
        try:
            entry_id = self.repository.reserve(self.allocator.next_id())
        except StorageError as e:
            logger.warning("Cannot create history entry: %s", e)
            return None
        self.allocator.last_id = max(self.allocator.last_id, entry_id)

        stored = 0
        for format_tag, data in blobs.items():
            try:
                self.repository.put(entry_id, format_tag, data)
            except StorageError as e:
                logger.warning("Cannot store format %s of entry %s: %s",
                    format_tag, entry_id, e)
                continue
            stored += 1

        if stored == 0:
            try:
                self.repository.delete(entry_id)
            except StorageError as e:
                logger.warning("Cannot remove empty entry %s: %s", entry_id, e)
            return None
        logger.debug("Recorded entry %s with %d formats", entry_id, stored)
        return entry_id
