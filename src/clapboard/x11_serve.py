"""Answering SelectionRequest events for a restored entry.

The owner advertises every stored format as a target. When the entry has
plain text, the classic X11 text targets (UTF8_STRING, STRING, TEXT) and
the text/plain MIME types are served from it as well, so older clients
can paste it too.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING

from Xlib import X, Xatom

from clapboard.summary import TEXT_FORMATS
from clapboard.x11_incr import IncrSender

if TYPE_CHECKING:
    from Xlib.display import Display
    from Xlib.protocol.event import SelectionRequest

logger = logging.getLogger(__name__)

# Targets that are all served from the entry's best plain text.
TEXT_ALIASES: tuple[str, ...] = (
    "UTF8_STRING",
    "text/plain;charset=utf-8",
    "text/plain",
    "STRING",
    "TEXT",
)


def best_plain_text(representations: Mapping[str, bytes]) -> bytes | None:
    """Return the preferred plain text representation, if any."""
    for format_tag in TEXT_FORMATS:
        if format_tag != "text/html" and format_tag in representations:
            return representations[format_tag]
    return None


def send_selection_notify(display: Display, event: SelectionRequest, prop: int) -> None:
    """Reply to a SelectionRequest; prop X.NONE refuses it."""
    from Xlib.protocol.event import SelectionNotify as SelectionNotifyEvent

    event.requestor.send_event(
        SelectionNotifyEvent(
            time=event.time,
            requestor=event.requestor.id,
            selection=event.selection,
            target=event.target,
            property=prop,
        ),
        event_mask=0,
    )
    display.flush()


class SelectionServer:
    """Serves one entry's representations to requesting clients.

    Attributes:
        display: The X11 display connection.
        acquisition_time: Server time at which ownership was taken.
        contents: Target atom -> (type atom, bytes) for every content target.
        incr: In-flight chunked transfers.
    """

    def __init__(
        self,
        display: Display,
        representations: Mapping[str, bytes],
        acquisition_time: int,
    ) -> None:
        self.display = display
        self.acquisition_time = acquisition_time
        self.incr = IncrSender(display)
        self.targets_atom = display.intern_atom("TARGETS")
        self.timestamp_atom = display.intern_atom("TIMESTAMP")
        self.contents: dict[int, tuple[int, bytes]] = {}

        for format_tag, data in representations.items():
            atom = display.intern_atom(format_tag)
            self.contents[atom] = (atom, data)

        text = best_plain_text(representations)
        if text is not None:
            utf8_atom = display.intern_atom("UTF8_STRING")
            for alias in TEXT_ALIASES:
                atom = Xatom.STRING if alias == "STRING" else display.intern_atom(alias)
                type_atom = utf8_atom if alias == "TEXT" else atom
                self.contents.setdefault(atom, (type_atom, text))

    def targets(self) -> list[int]:
        """Return every target this owner answers."""
        return [self.targets_atom, self.timestamp_atom, *self.contents]

    def handle_request(self, event: SelectionRequest) -> None:
        """Answer one SelectionRequest."""
        # Obsolete clients may leave property unset and expect target to be used
        prop = event.property if event.property != X.NONE else event.target
        logger.debug("SelectionRequest target=%s property=%s", event.target, prop)

        if event.target == self.targets_atom:
            event.requestor.change_property(prop, Xatom.ATOM, 32, self.targets())
        elif event.target == self.timestamp_atom:
            event.requestor.change_property(
                prop, Xatom.INTEGER, 32, [self.acquisition_time]
            )
        elif event.target in self.contents:
            type_atom, data = self.contents[event.target]
            if self.incr.needs_incr(data):
                self.incr.start(event, prop, type_atom, data)
            else:
                event.requestor.change_property(prop, type_atom, 8, data)
        else:
            logger.debug("Refusing unsupported target %s", event.target)
            prop = X.NONE

        send_selection_notify(self.display, event, prop)
