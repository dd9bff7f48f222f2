#!/usr/bin/env python3
"""X11 clipboard source using XFixes.

Each listener opens its own display connection and registers for XFixes
SetSelectionOwnerNotify on its selection, so PRIMARY and CLIPBOARD are
watched by independent tasks. When the owner changes, the offered TARGETS
are requested and each content target is fetched on demand.
"""

from __future__ import annotations

import logging
from contextlib import suppress
from dataclasses import dataclass
from typing import TYPE_CHECKING

from tenacity import retry, retry_if_exception_type, stop_never, wait_exponential
from Xlib import X
from Xlib.error import ConnectionClosedError

from clapboard.errors import CaptureError, ListenerLost
from clapboard.listener_constants import INITIAL_WAIT, MAX_WAIT, WAIT_MULTIPLIER
from clapboard.x11_connection import X11Connection
from clapboard.x11_display import (
    create_hidden_window,
    is_owner_change,
    open_display,
    register_xfixes_events,
    selection_atom,
)
from clapboard.x11_read import read_target, read_targets

if TYPE_CHECKING:
    from clapboard.source import EventHandler

logger = logging.getLogger(__name__)


def owner_id(event: object) -> int:
    """Return the window id of the new owner in an owner-change event."""
    owner = event.owner  # type: ignore[attr-defined]
    return getattr(owner, "id", owner)


@dataclass
class X11ClipboardEvent:
    """One owner change of an X11 selection."""

    formats: list[str]
    conn: X11Connection
    selection: int

    async def fetch(self, format_tag: str) -> bytes:
        return await read_target(self.conn, self.selection, format_tag)


class X11ClipboardSource:
    """Listener for one X11 selection."""

    def __init__(self, selection: str) -> None:
        self.name = selection

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
        """Report every owner change of the selection to handler.

        Restarted with exponential backoff if the display connection closes.

        Raises:
            BackendUnavailable: If the display cannot be opened.
        """
        display = open_display()
        try:
            window = create_hidden_window(display)
            atom = selection_atom(display, self.name)
            register_xfixes_events(display, window, atom)
            conn = X11Connection(display=display, window=window)
            conn.attach()
            try:
                await self._watch(conn, atom, handler)
            finally:
                conn.detach()
        except ConnectionClosedError as e:
            logger.warning("X11 connection for %s closed: %s, restarting", self.name, e)
            raise ListenerLost(str(e)) from e
        finally:
            with suppress(ConnectionClosedError):
                display.close()

    async def _watch(
        self, conn: X11Connection, atom: int, handler: EventHandler
    ) -> None:
        """Handle owner changes until cancelled."""
        while True:
            event = await conn.next_event(is_owner_change)
            if owner_id(event) in (X.NONE, conn.window.id):
                logger.debug("%s cleared or owned by us, skipping", self.name)
                continue
            try:
                formats = await read_targets(conn, atom)
            except CaptureError as e:
                logger.warning("Cannot list targets of %s: %s", self.name, e)
                continue
            if not formats:
                continue
            logger.debug("%s changed, targets %s", self.name, formats)
            await handler(X11ClipboardEvent(formats=formats, conn=conn, selection=atom))
