#!/usr/bin/env python3
"""Capture mode: record clipboard changes until terminated.

Starts one listener per selected source and runs until SIGINT or SIGTERM,
or until a listener fails for good (missing tool, no display).
"""

from __future__ import annotations

import asyncio
import logging
import signal
from collections.abc import Sequence
from typing import TYPE_CHECKING

from clapboard.capture import CaptureSession

if TYPE_CHECKING:
    from clapboard.config import Config
    from clapboard.repository import EntryRepository
    from clapboard.source import ClipboardSource

logger = logging.getLogger(__name__)


async def run_capture(
    config: Config,
    repository: EntryRepository,
    sources: Sequence[ClipboardSource],
) -> None:
    """Capture from sources into repository until asked to stop.

    Args:
        config: The loaded configuration.
        repository: Where entries are stored.
        sources: One source per selection to listen on.

    Raises:
        ExternalToolError: If a source's tool is missing.
        BackendUnavailable: If a source cannot reach its display.
    """
    session = CaptureSession(repository, config.history_size, config.deduplicate)
    session.prime()

    # Register signal handlers for clean shutdown
    shutdown_requested = asyncio.Event()
    loop = asyncio.get_running_loop()
    loop.add_signal_handler(signal.SIGINT, shutdown_requested.set)
    loop.add_signal_handler(signal.SIGTERM, shutdown_requested.set)

    capture_task = asyncio.create_task(session.run(sources))
    shutdown_task = asyncio.create_task(shutdown_requested.wait())
    try:
        done, _ = await asyncio.wait(
            {capture_task, shutdown_task}, return_when=asyncio.FIRST_COMPLETED
        )
    finally:
        for task in (capture_task, shutdown_task):
            task.cancel()
        await asyncio.gather(capture_task, shutdown_task, return_exceptions=True)
        loop.remove_signal_handler(signal.SIGINT)
        loop.remove_signal_handler(signal.SIGTERM)

    if capture_task in done:
        # Re-raises a listener failure
        capture_task.result()
    else:
        logger.debug("Shutdown requested, capture stopped")
