#!/usr/bin/env python3
"""Wayland clipboard source using wl-clipboard.

`wl-paste --watch echo` prints one line each time the selection changes.
For each line the offered types are listed with `wl-paste --list-types` and
fetched one at a time with `wl-paste --type`. All commands take `--primary`
when listening on the primary selection.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from tenacity import retry, retry_if_exception_type, stop_never, wait_exponential

from clapboard.errors import CaptureError, ExternalToolError, ListenerLost
from clapboard.listener_constants import (
    FETCH_TIMEOUT,
    INITIAL_WAIT,
    MAX_WAIT,
    WAIT_MULTIPLIER,
)
from clapboard.source import PRIMARY, EventHandler

logger = logging.getLogger(__name__)

WL_PASTE: str = "wl-paste"


async def run_wl_paste(args: list[str], timeout: float = FETCH_TIMEOUT) -> bytes:
    """Run wl-paste with args and return its stdout.

    Raises:
        ExternalToolError: If wl-paste is not installed.
        CaptureError: If it fails or does not finish within timeout.
    """
    try:
        proc = await asyncio.create_subprocess_exec(
            WL_PASTE, *args,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except FileNotFoundError as e:
        raise ExternalToolError(WL_PASTE, "not found, is wl-clipboard installed?") from e
    try:
        stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout)
    except asyncio.TimeoutError as e:
        proc.kill()
        await proc.wait()
        raise CaptureError(f"{WL_PASTE} {' '.join(args)} timed out") from e
    if proc.returncode != 0:
        message = stderr.decode("utf-8", errors="replace").strip()
        raise CaptureError(f"{WL_PASTE} exited with status {proc.returncode}: {message}")
    return stdout


@dataclass
class WaylandClipboardEvent:
    """One change of a Wayland selection."""

    formats: list[str]
    selection_args: list[str]

    async def fetch(self, format_tag: str) -> bytes:
        return await run_wl_paste(
            [*self.selection_args, "--no-newline", "--type", format_tag]
        )


class WaylandClipboardSource:
    """Listener for one Wayland selection."""

    def __init__(self, selection: str) -> None:
        self.name = selection
        self.selection_args = ["--primary"] if selection == PRIMARY else []

    @retry(
        wait=wait_exponential(
            multiplier=WAIT_MULTIPLIER,
            min=INITIAL_WAIT,
            max=MAX_WAIT,
        ),
        retry=retry_if_exception_type(ListenerLost),
        stop=stop_never,
    )
    async def listen(self, handler: EventHandler) -> None:
        """Report every change of the selection to handler.

        Restarted with exponential backoff whenever wl-paste exits.

        Raises:
            ExternalToolError: If wl-paste is not installed.
        """
        try:
            proc = await asyncio.create_subprocess_exec(
                WL_PASTE, *self.selection_args, "--watch", "echo",
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError as e:
            raise ExternalToolError(WL_PASTE, "not found, is wl-clipboard installed?") from e

        assert proc.stdout is not None
        logger.debug("Watching %s selection (pid %s)", self.name, proc.pid)
        try:
            async for _ in proc.stdout:
                event = await self.snapshot()
                if event is not None:
                    await handler(event)
        finally:
            if proc.returncode is None:
                proc.terminate()
            await proc.wait()
        logger.warning("%s --watch for %s exited with status %s, restarting",
            WL_PASTE, self.name, proc.returncode)
        raise ListenerLost(f"{WL_PASTE} --watch exited")

    async def snapshot(self) -> WaylandClipboardEvent | None:
        """List the types currently offered, or None if the selection is empty."""
        try:
            listing = await run_wl_paste([*self.selection_args, "--list-types"])
        except CaptureError as e:
            logger.debug("No types offered on %s: %s", self.name, e)
            return None
        formats = list(dict.fromkeys(
            line.strip() for line in listing.decode("utf-8", errors="replace").splitlines()
            if line.strip()
        ))
        if not formats:
            return None
        return WaylandClipboardEvent(formats=formats, selection_args=self.selection_args)
