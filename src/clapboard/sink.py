#!/usr/bin/env python3
"""Clipboard sink interface.

A sink takes a RestorePlan and offers all of its formats on the system
clipboard in one hand-off. copy() returns once the sink no longer needs
this process. Sinks that serve pastes themselves return only when the
content has been replaced on the clipboard.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING, Protocol

from clapboard.summary import TEXT_FORMATS

if TYPE_CHECKING:
    from clapboard.resolver import RestorePlan


class ClipboardSink(Protocol):
    def copy(self, plan: RestorePlan) -> None:
        """Place the plan's content on the clipboard.

        Raises:
            ExternalToolError: If the sink tool is missing or fails.
            BackendUnavailable: If the clipboard cannot be owned.
        """
        ...


def preferred_format(formats: Iterable[str]) -> str:
    """Pick the format a single-format sink should offer.

    Plain text first (it pastes everywhere), then images, then whatever
    was stored first in sorted order.

    Raises:
        ValueError: If formats is empty.
    """
    available = sorted(formats)
    if not available:
        raise ValueError("No formats to choose from")
    for format_tag in TEXT_FORMATS:
        if format_tag in available and format_tag != "text/html":
            return format_tag
    for format_tag in available:
        if format_tag.startswith("image/"):
            return format_tag
    if "text/html" in available:
        return "text/html"
    return available[0]
