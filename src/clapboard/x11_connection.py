#!/usr/bin/env python3
"""Asyncio integration for one X11 display connection.

The display file descriptor is registered with loop.add_reader(), which
only sets an asyncio.Event. Waiting for a particular event then means:
drain what Xlib already has queued, keep the events nobody asked for in
`deferred` for later, and sleep on the readable flag when the queue is
empty. Nothing ever blocks the event loop inside Xlib.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from clapboard.x11_display import is_owner_change

if TYPE_CHECKING:
    from Xlib.display import Display
    from Xlib.protocol.rq import Event
    from Xlib.xobject.drawable import Window


@dataclass
class X11Connection:
    """An X11 display attached to the running event loop.

    Attributes:
        display: The X11 display connection.
        window: The hidden window used for selection transfers.
        readable: Set when the display socket has data.
        deferred: Events read while waiting for something else.
        keep: Decides which of those events are worth deferring; the rest
            are dropped.
        fd: Display socket while attached, -1 otherwise.
    """

    display: Display
    window: Window
    readable: asyncio.Event = field(default_factory=asyncio.Event)
    deferred: list[Event] = field(default_factory=list)
    keep: Callable[[Event], bool] = is_owner_change
    fd: int = -1

    def attach(self) -> None:
        """Start watching the display socket."""
        self.fd = self.display.fileno()
        asyncio.get_running_loop().add_reader(self.fd, self.readable.set)

    def detach(self) -> None:
        """Stop watching the display socket."""
        if self.fd >= 0:
            asyncio.get_running_loop().remove_reader(self.fd)
            self.fd = -1

    async def next_event(self, predicate: Callable[[Event], bool]) -> Event:
        """Return the next event matching predicate.

        Deferred events are searched first, oldest first. Non-matching
        events read from the display are appended to `deferred` if `keep`
        accepts them.
        """
        for index, event in enumerate(self.deferred):
            if predicate(event):
                return self.deferred.pop(index)
        while True:
            self.readable.clear()
            while self.display.pending_events() > 0:
                event = self.display.next_event()
                if predicate(event):
                    return event
                if self.keep(event):
                    self.deferred.append(event)
            await self.readable.wait()

    async def wait_for(
        self, predicate: Callable[[Event], bool], timeout: float
    ) -> Event:
        """Like next_event(), giving up after timeout seconds.

        Raises:
            asyncio.TimeoutError: If no matching event arrived in time.
        """
        return await asyncio.wait_for(self.next_event(predicate), timeout=timeout)
