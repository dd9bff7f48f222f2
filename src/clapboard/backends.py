#!/usr/bin/env python3
"""Clipboard backend selection.

Picks Wayland (wl-clipboard and data-control) or X11 (python-xlib)
according to the `backend` setting, and builds the matching sources and
sink. X11 modules are only imported when the X11 backend is chosen.
"""

from __future__ import annotations

import os
from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING

from clapboard.errors import BackendUnavailable

if TYPE_CHECKING:
    from clapboard.sink import ClipboardSink
    from clapboard.source import ClipboardSource

WAYLAND: str = "wayland"
X11: str = "x11"


def detect_backend(preference: str, environ: Mapping[str, str] | None = None) -> str:
    """Resolve the backend to use in this session.

    Args:
        preference: "auto", "wayland" or "x11".
        environ: Environment to inspect; os.environ if None.

    Returns:
        "wayland" or "x11".

    Raises:
        BackendUnavailable: If "auto" finds neither display.
    """
    if preference in (WAYLAND, X11):
        return preference
    environ = os.environ if environ is None else environ
    if environ.get("WAYLAND_DISPLAY"):
        return WAYLAND
    if environ.get("DISPLAY"):
        return X11
    raise BackendUnavailable("Neither WAYLAND_DISPLAY nor DISPLAY is set")


def make_sources(backend: str, selections: Iterable[str]) -> list[ClipboardSource]:
    """Create one source per selection for backend."""
    if backend == WAYLAND:
        from clapboard.wayland_source import WaylandClipboardSource
        return [WaylandClipboardSource(selection) for selection in selections]
    from clapboard.x11_source import X11ClipboardSource
    return [X11ClipboardSource(selection) for selection in selections]


def make_sink(backend: str) -> ClipboardSink:
    """Create the sink for backend."""
    if backend == WAYLAND:
        from clapboard.wayland_sink import WaylandClipboardSink
        return WaylandClipboardSink()
    from clapboard.x11_sink import X11ClipboardSink
    return X11ClipboardSink()
