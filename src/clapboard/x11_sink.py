#!/usr/bin/env python3
"""X11 clipboard sink.

X11 has no clipboard daemon: the owner of CLIPBOARD serves every paste
itself. copy() therefore takes ownership with a hidden window and answers
requests until another client takes the selection over (SelectionClear).
The restore stays in the foreground for that whole time.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from Xlib import X, Xatom

from clapboard.errors import BackendUnavailable
from clapboard.x11_display import create_hidden_window, open_display
from clapboard.x11_serve import SelectionServer

if TYPE_CHECKING:
    from Xlib.display import Display
    from Xlib.xobject.drawable import Window

    from clapboard.resolver import RestorePlan

logger = logging.getLogger(__name__)


def get_server_timestamp(display: Display, window: Window) -> int:
    """Query the X server's current time.

    Appending to a dummy property produces a PropertyNotify carrying the
    server time, which is what ownership and TIMESTAMP replies must use.
    """
    prop_atom = display.intern_atom("CLAPBOARD_TIMESTAMP")
    window.change_property(prop_atom, Xatom.INTEGER, 32, [], mode=X.PropModeAppend)
    display.flush()
    while True:
        event = display.next_event()
        if event.type == X.PropertyNotify and event.atom == prop_atom:
            return event.time


def take_ownership(display: Display, window: Window, selection: int) -> int:
    """Become the owner of selection.

    Returns:
        The server time ownership was taken at.

    Raises:
        BackendUnavailable: If the server did not grant ownership.
    """
    timestamp = get_server_timestamp(display, window)
    window.set_selection_owner(selection, timestamp)
    display.flush()
    owner = display.get_selection_owner(selection)
    if getattr(owner, "id", owner) != window.id:
        raise BackendUnavailable("Failed to acquire CLIPBOARD ownership")
    return timestamp


def serve_until_cleared(
    display: Display, window: Window, selection: int, server: SelectionServer
) -> None:
    """Answer requests until ownership of selection is lost."""
    while True:
        event = display.next_event()
        server.incr.expire_stale()
        if server.incr.handle_event(event):
            continue
        if event.type == X.SelectionRequest and event.selection == selection:
            server.handle_request(event)
        elif event.type == X.SelectionClear and event.selection == selection:
            logger.debug("Lost CLIPBOARD ownership, restore finished")
            return


class X11ClipboardSink:
    """Restore plans by owning the X11 CLIPBOARD selection."""

    def copy(self, plan: RestorePlan) -> None:
        """Serve every format of the plan until the clipboard changes.

        Raises:
            BackendUnavailable: If the display cannot be opened or the
                selection cannot be owned.
        """
        display = open_display()
        try:
            window = create_hidden_window(display)
            selection = display.intern_atom("CLIPBOARD")
            acquisition_time = take_ownership(display, window, selection)
            server = SelectionServer(display, plan.representations, acquisition_time)
            logger.debug("Serving %d targets on CLIPBOARD", len(server.targets()))
            serve_until_cleared(display, window, selection, server)
        finally:
            display.close()
