#!/usr/bin/env python3
"""Clipboard source interface.

A source watches one selection ("primary" or "clipboard") and hands every
change to a callback as a ClipboardEvent: the format tags the owner offers
and a way to fetch the bytes of each. Backends live in wayland_source and
x11_source.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Sequence
from typing import Protocol

PRIMARY: str = "primary"
CLIPBOARD: str = "clipboard"
SELECTIONS: tuple[str, ...] = (PRIMARY, CLIPBOARD)


class ClipboardEvent(Protocol):
    """One clipboard change, as offered by its owner."""

    formats: Sequence[str]

    async def fetch(self, format_tag: str) -> bytes:
        """Return the content for one offered format.

        Raises:
            CaptureError: If the owner did not deliver the format.
        """
        ...


EventHandler = Callable[[ClipboardEvent], Awaitable[object]]


class ClipboardSource(Protocol):
    """Listener for one selection."""

    name: str

    async def listen(self, handler: EventHandler) -> None:
        """Call handler for every change until cancelled.

        Raises:
            ExternalToolError: If the backend tool is missing.
            BackendUnavailable: If the backend cannot be reached at all.
        """
        ...


def selections_for(mode: str) -> tuple[str, ...]:
    """Return the selections a capture mode listens on.

    Args:
        mode: "primary", "clipboard" or "both".
    """
    if mode == "both":
        return SELECTIONS
    if mode not in SELECTIONS:
        raise ValueError(f"Unknown selection {mode!r}")
    return (mode,)
