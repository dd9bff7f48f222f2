"""X11 display and window setup.

Helpers shared by the X11 source and sink: opening the display, creating
the hidden window that requests or owns selections, and registering for
XFixes selection-owner notifications.
"""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

from Xlib import X, Xatom

from clapboard.errors import BackendUnavailable
from clapboard.source import PRIMARY

if TYPE_CHECKING:
    from Xlib.display import Display
    from Xlib.xobject.drawable import Window


def open_display() -> Display:
    """Open the X11 display named by $DISPLAY.

    Returns:
        Display object for X11 operations.

    Raises:
        BackendUnavailable: If DISPLAY is unset or the connection fails.
    """
    display_name = os.environ.get("DISPLAY")
    if not display_name:
        raise BackendUnavailable("DISPLAY environment variable is not set")

    try:
        from Xlib.display import Display as XDisplay
        return XDisplay(display_name)
    except Exception as e:
        raise BackendUnavailable(f"Failed to connect to X11 display {display_name}: {e}") from e


def create_hidden_window(display: Display) -> Window:
    """Create a 1x1 unmapped window for selection transfers.

    PropertyChangeMask is needed to follow INCR transfers and to obtain a
    server timestamp.

    Args:
        display: The X11 display connection.

    Returns:
        A Window object used as requestor or owner.
    """
    screen = display.screen()
    return screen.root.create_window(
        0, 0, 1, 1, 0, screen.root_depth, event_mask=X.PropertyChangeMask,
    )


def selection_atom(display: Display, selection: str) -> int:
    """Return the atom of a selection name ("primary" or "clipboard")."""
    if selection == PRIMARY:
        return Xatom.PRIMARY
    return display.intern_atom("CLIPBOARD")


def register_xfixes_events(display: Display, window: Window, atom: int) -> None:
    """Register for XFixes owner-change notifications on one selection.

    Args:
        display: The X11 display connection.
        window: The window to receive selection events.
        atom: The selection atom to watch.
    """
    from Xlib.ext import xfixes

    xfixes.query_version(display)
    mask = xfixes.XFixesSetSelectionOwnerNotifyMask
    xfixes.select_selection_input(display, window.id, atom, mask)
    display.flush()


def is_owner_change(event: object) -> bool:
    """Return True for an XFixes SetSelectionOwnerNotify event."""
    return type(event).__name__ == "SetSelectionOwnerNotify"
