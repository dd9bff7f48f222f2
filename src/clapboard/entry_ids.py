#!/usr/bin/env python3
"""Entry identifiers.

An entry id is the capture time in milliseconds since the epoch. It is the
storage key of the entry and its recency order at the same time.
"""

from __future__ import annotations

import time


def now_ms() -> int:
    """Return the current time as a millisecond epoch timestamp."""
    return time.time_ns() // 1_000_000


def parse_entry_id(name: str) -> int | None:
    """Parse a container name as an entry id.

    Args:
        name: Directory name found in the store.

    Returns:
        The id, or None if the name is not a plain decimal number.
    """
    if not name.isascii() or not name.isdigit():
        return None
    return int(name)


class EntryIdAllocator:
    """Hand out strictly increasing ids within one process.

    Two listeners firing in the same millisecond get consecutive ids
    instead of sharing one.
    """

    def __init__(self) -> None:
        self.last_id = 0

    def next_id(self) -> int:
        """Return an id at least the current time and above any previous one."""
        entry_id = max(now_ms(), self.last_id + 1)
        self.last_id = entry_id
        return entry_id
