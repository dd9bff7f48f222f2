"""Reading X11 selection content.

Requests a selection conversion into a property on our hidden window and
reads the result, following the INCR protocol when the owner sends the
data in chunks. Every wait is bounded by FETCH_TIMEOUT so an unresponsive
owner cannot stall capture.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from Xlib import X

from clapboard.errors import CaptureError
from clapboard.listener_constants import FETCH_TIMEOUT

if TYPE_CHECKING:
    from Xlib.protocol.rq import Event

    from clapboard.x11_connection import X11Connection

logger = logging.getLogger(__name__)

# Property on our window that receives converted selections.
TRANSFER_PROPERTY: str = "CLAPBOARD_SEL"

# Targets describing the selection rather than holding content.
META_TARGETS: frozenset[str] = frozenset({
    "TARGETS",
    "TIMESTAMP",
    "MULTIPLE",
    "SAVE_TARGETS",
    "DELETE",
    "INCR",
    "INSERT_PROPERTY",
    "INSERT_SELECTION",
    "LENGTH",
    "HOST_NAME",
    "USER",
    "CLIENT_WINDOW",
    "OWNER_OS",
    "FILE_NAME",
    "PROCESS",
    "TASK",
    "_GTK_TEXT_BUFFER_CONTENTS",
    "_VIMENC_TEXT",
    "_VIM_TEXT",
})


@dataclass
class PropertyReadResult:
    """Result of reading the transfer property once.

    Attributes:
        content: Property bytes, or None if the property was missing.
        is_incr: True if the owner announced an INCR transfer.
        estimated_size: Size announced with INCR, 0 otherwise.
    """

    content: bytes | None
    is_incr: bool = False
    estimated_size: int = 0


def read_property(conn: X11Connection, prop_atom: int) -> PropertyReadResult:
    """Read and delete the transfer property.

    An INCR announcement is left in place: deleting it is what tells the
    owner to send the first chunk.
    """
    incr_atom = conn.display.intern_atom("INCR")
    prop = conn.window.get_full_property(prop_atom, X.AnyPropertyType)
    if prop is None:
        return PropertyReadResult(content=None)

    if prop.property_type == incr_atom:
        value = prop.value
        if isinstance(value, (bytes, bytearray)):
            size = int.from_bytes(bytes(value[:4]), byteorder="little")
        else:
            size = int(value[0]) if len(value) else 0
        return PropertyReadResult(content=None, is_incr=True, estimated_size=size)

    conn.window.delete_property(prop_atom)
    conn.display.flush()
    return PropertyReadResult(content=_property_bytes(prop))


def _property_bytes(prop: object) -> bytes:
    """Return the value of a property reply as bytes."""
    value = prop.value  # type: ignore[attr-defined]
    if isinstance(value, str):
        return value.encode("utf-8")
    if prop.format == 32:  # type: ignore[attr-defined]
        # Atom and integer lists are stored as 32-bit little-endian words
        return b"".join(int(item).to_bytes(4, byteorder="little") for item in value)
    return bytes(value)


async def convert(conn: X11Connection, selection: int, target: int) -> PropertyReadResult:
    """Ask the selection owner to convert selection into target.

    Raises:
        CaptureError: If the owner refuses or does not answer in time.
    """
    import asyncio

    prop_atom = conn.display.intern_atom(TRANSFER_PROPERTY)
    conn.window.convert_selection(selection, target, prop_atom, X.CurrentTime)
    conn.display.flush()

    def is_reply(event: Event) -> bool:
        return (
            event.type == X.SelectionNotify
            and event.selection == selection
            and event.target == target
        )

    try:
        event = await conn.wait_for(is_reply, FETCH_TIMEOUT)
    except asyncio.TimeoutError as e:
        raise CaptureError("timed out waiting for the selection owner") from e
    if event.property == X.NONE:
        raise CaptureError("selection owner refused the conversion")
    return read_property(conn, prop_atom)


async def read_incr(conn: X11Connection, prop_atom: int, estimated_size: int) -> bytes:
    """Receive an INCR transfer chunk by chunk.

    Raises:
        CaptureError: If a chunk does not arrive within FETCH_TIMEOUT.
    """
    import asyncio

    def is_new_chunk(event: Event) -> bool:
        return (
            event.type == X.PropertyNotify
            and event.state == X.PropertyNewValue
            and event.atom == prop_atom
        )

    chunks = bytearray()
    # Deleting the INCR announcement starts the transfer
    conn.window.delete_property(prop_atom)
    conn.display.flush()
    logger.debug("INCR receive started, announced size %s", estimated_size)
    while True:
        try:
            await conn.wait_for(is_new_chunk, FETCH_TIMEOUT)
        except asyncio.TimeoutError as e:
            raise CaptureError(f"INCR transfer stalled after {len(chunks)} bytes") from e
        prop = conn.window.get_full_property(prop_atom, X.AnyPropertyType)
        conn.window.delete_property(prop_atom)
        conn.display.flush()
        chunk = _property_bytes(prop) if prop is not None else b""
        if not chunk:
            logger.debug("INCR receive complete: %d bytes", len(chunks))
            return bytes(chunks)
        chunks.extend(chunk)


async def read_target(conn: X11Connection, selection: int, target_name: str) -> bytes:
    """Return the content of selection converted to target_name.

    Raises:
        CaptureError: If the conversion fails or returns nothing.
    """
    target = conn.display.intern_atom(target_name)
    result = await convert(conn, selection, target)
    if result.is_incr:
        prop_atom = conn.display.intern_atom(TRANSFER_PROPERTY)
        return await read_incr(conn, prop_atom, result.estimated_size)
    if result.content is None:
        raise CaptureError(f"no data for target {target_name}")
    return result.content


async def read_targets(conn: X11Connection, selection: int) -> list[str]:
    """Return the content targets the selection owner offers.

    Meta targets such as TARGETS or TIMESTAMP are left out.

    Raises:
        CaptureError: If the owner does not answer the TARGETS request.
    """
    targets_atom = conn.display.intern_atom("TARGETS")
    result = await convert(conn, selection, targets_atom)
    if result.content is None:
        raise CaptureError("selection owner sent no TARGETS")

    raw = result.content
    atoms = [
        int.from_bytes(raw[offset:offset + 4], byteorder="little")
        for offset in range(0, len(raw) - len(raw) % 4, 4)
    ]
    names = []
    for atom in atoms:
        if atom == X.NONE:
            continue
        name = conn.display.get_atom_name(atom)
        if name and name not in META_TARGETS and name not in names:
            names.append(name)
    return names
