#!/usr/bin/env python3
"""History size enforcement.

trim() runs inline after every capture, so the history bound is kept
eagerly instead of by a background sweep. It is best-effort cleanup: an
entry that cannot be removed (typically because another capture process
removed it first) is logged and skipped.

Entries left empty by a capture that died after reserving its id are
removed too, once they are older than the oldest entry kept. Newer empty
entries may still be filling up in another process and are left alone.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING

from clapboard.errors import StorageError

if TYPE_CHECKING:
    from clapboard.repository import EntryRepository

logger = logging.getLogger(__name__)


def trim(repository: EntryRepository, max_count: int) -> list[int]:
    """Delete every entry older than the max_count most recent ones.

    Args:
        repository: The entry repository to trim.
        max_count: Number of most recent entries to keep.

    Returns:
        Ids removed by this call, newest first.
    """
    try:
        entries = repository.list()
        incomplete = repository.incomplete_ids()
    except StorageError as e:
        logger.warning("Cannot list history for trimming: %s", e)
        return []

    keep = max(max_count, 0)
    doomed = [entry.entry_id for entry in entries[keep:]]
    if keep and entries:
        oldest_kept = entries[:keep][-1].entry_id
        abandoned = [entry_id for entry_id in incomplete if entry_id < oldest_kept]
        if abandoned:
            logger.debug("Removing %d abandoned empty entries", len(abandoned))
        doomed.extend(abandoned)

    removed = _delete_all(repository, sorted(doomed, reverse=True))
    if removed:
        logger.debug("Evicted %d entries beyond %d", len(removed), max_count)
    return removed


def _delete_all(repository: EntryRepository, entry_ids: Iterable[int]) -> list[int]:
    removed = []
    for entry_id in entry_ids:
        try:
            if repository.delete(entry_id):
                removed.append(entry_id)
            else:
                logger.debug("Entry %s already removed", entry_id)
        except StorageError as e:
            logger.warning("Failed to evict entry %s: %s", entry_id, e)
    return removed
