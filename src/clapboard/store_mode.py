#!/usr/bin/env python3
"""Store mode: record one entry read from stdin.

Meant for a clipboard watcher that runs a command per change, e.g.
`wl-paste --watch clapboard --store`.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from clapboard.capture import CaptureSession, validate_content_size

if TYPE_CHECKING:
    from clapboard.config import Config
    from clapboard.repository import EntryRepository

logger = logging.getLogger(__name__)

PLAIN_TEXT: str = "text/plain;charset=utf-8"
OCTET_STREAM: str = "application/octet-stream"


def guess_format(data: bytes) -> str:
    """Return the format tag for untyped data: UTF-8 text or opaque bytes."""
    try:
        data.decode("utf-8")
    except UnicodeDecodeError:
        return OCTET_STREAM
    return PLAIN_TEXT


def run_store(
    config: Config,
    repository: EntryRepository,
    data: bytes,
    format_tag: str | None = None,
) -> int | None:
    """Record data as a single-format entry and trim the history.

    Args:
        config: The loaded configuration.
        repository: Where the entry is stored.
        data: Content read from stdin.
        format_tag: Format of data; guessed if None.

    Returns:
        The id of the new entry, or None if nothing was recorded.
    """
    if not data:
        logger.debug("Nothing on stdin, nothing stored")
        return None
    if not validate_content_size(data):
        logger.warning("Input exceeds 10 MB limit, not stored")
        return None
    format_tag = format_tag or guess_format(data)

    session = CaptureSession(repository, config.history_size, config.deduplicate)
    session.prime()
    return session.record({format_tag: data})
