"""INCR transfers for serving large selections.

A property write is limited by the server's maximum request length. Larger
payloads are announced with an INCR property holding the total size, then
written in chunks: each time the requestor deletes the property, the next
chunk goes in, and a zero-length write marks the end.

IncrSender tracks every transfer in flight, keyed by (requestor window,
property atom), and routes PropertyNotify/DestroyNotify events to them.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

from Xlib import X

if TYPE_CHECKING:
    from Xlib.display import Display
    from Xlib.protocol.event import SelectionRequest
    from Xlib.protocol.rq import Event
    from Xlib.xobject.drawable import Window

logger = logging.getLogger(__name__)

# Fraction of the maximum request size a single write may use.
INCR_SAFETY_MARGIN: float = 0.9

# Chunk size for INCR transfers (65536 bytes, well below typical max_request)
INCR_CHUNK_SIZE: int = 65536

# Transfers idle for longer than this are abandoned (seconds).
INCR_SEND_TIMEOUT: float = 30.0


@dataclass
class IncrTransfer:
    """One chunked transfer in flight.

    Attributes:
        requestor: Window that asked for the content.
        property_atom: Property the chunks are written to.
        type_atom: Type of the content (the requested target).
        content: The full payload.
        offset: Bytes already written.
        last_activity: Time of the last chunk, for the stale timeout.
        completion_sent: True once the zero-length end marker is written.
    """

    requestor: Window
    property_atom: int
    type_atom: int
    content: bytes
    offset: int = 0
    last_activity: float = 0.0
    completion_sent: bool = False


def max_property_size(display: Display) -> int:
    """Return the largest payload that fits in one property write."""
    # max_request_length counts 4-byte units
    max_bytes = display.info.max_request_length * 4  # type: ignore[attr-defined]
    return int(max_bytes * INCR_SAFETY_MARGIN)


class IncrSender:
    """All INCR transfers served by one selection owner."""

    def __init__(self, display: Display) -> None:
        self.display = display
        self.transfers: dict[tuple[int, int], IncrTransfer] = {}

    def needs_incr(self, content: bytes) -> bool:
        return len(content) > max_property_size(self.display)

    def start(
        self, event: SelectionRequest, prop: int, type_atom: int, content: bytes
    ) -> None:
        """Announce an INCR transfer on prop to the requestor of event.

        The caller still sends the SelectionNotify reply.
        """
        incr_atom = self.display.intern_atom("INCR")
        event.requestor.change_attributes(
            event_mask=X.PropertyChangeMask | X.StructureNotifyMask
        )
        event.requestor.change_property(prop, incr_atom, 32, [len(content)])
        key = (event.requestor.id, prop)
        self.transfers[key] = IncrTransfer(
            requestor=event.requestor,
            property_atom=prop,
            type_atom=type_atom,
            content=content,
            last_activity=time.time(),
        )
        logger.debug("INCR send started: requestor=%s property=%s size=%s",
            key[0], key[1], len(content))

    def handle_event(self, event: Event) -> bool:
        """Advance the transfer an event belongs to.

        Returns:
            True if the event belonged to a transfer, False otherwise.
        """
        if not self.transfers:
            return False
        if event.type == X.PropertyNotify and event.state == X.PropertyDelete:
            key = (event.window.id, event.atom)
            transfer = self.transfers.get(key)
            if transfer is None:
                return False
            if transfer.completion_sent:
                logger.debug("INCR send: final ack received: %s", key)
                self.finish(key)
            else:
                self.send_chunk(transfer)
            return True
        if event.type == X.DestroyNotify:
            keys = [key for key in self.transfers if key[0] == event.window.id]
            for key in keys:
                logger.debug("INCR send: requestor window destroyed: %s", key)
                del self.transfers[key]
            return bool(keys)
        return False

    def send_chunk(self, transfer: IncrTransfer) -> None:
        """Write the next chunk, or the end marker once everything is sent."""
        chunk = transfer.content[transfer.offset:transfer.offset + INCR_CHUNK_SIZE]
        transfer.requestor.change_property(
            transfer.property_atom, transfer.type_atom, 8, chunk
        )
        self.display.flush()
        transfer.offset += len(chunk)
        transfer.last_activity = time.time()
        if not chunk:
            transfer.completion_sent = True

    def expire_stale(self) -> None:
        """Abandon transfers that saw no progress within INCR_SEND_TIMEOUT."""
        now = time.time()
        for key, transfer in list(self.transfers.items()):
            idle = now - transfer.last_activity
            if idle > INCR_SEND_TIMEOUT:
                logger.warning("INCR send: transfer timed out after %.1f seconds: %s",
                    idle, key)
                self.finish(key)

    def finish(self, key: tuple[int, int]) -> None:
        """Forget a transfer; stop listening on its window if it was the last."""
        transfer = self.transfers.pop(key, None)
        if transfer is None:
            return
        if not any(other[0] == key[0] for other in self.transfers):
            transfer.requestor.change_attributes(event_mask=0)
            self.display.flush()
