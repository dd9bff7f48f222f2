#!/usr/bin/env python3
"""
Wayland wire protocol client.

Messages on the compositor socket are a header of two native-endian 32-bit
words (object id, then size << 16 | opcode) followed by the arguments:
32-bit integers, object and new ids, and strings as a length (including the
terminating NUL) plus the bytes padded to 4. File descriptors travel as
SCM_RIGHTS ancillary data alongside the message that names them.

Only what the clipboard sink needs is implemented: the registry, sync
round trips, binding globals, and dispatching events to per-object
handlers. Events for objects without a handler are dropped.
"""

from __future__ import annotations

import logging
import os
import socket
import struct
from collections import deque
from collections.abc import Callable, Mapping
from dataclasses import dataclass

from clapboard.errors import BackendUnavailable

logger = logging.getLogger(__name__)

DISPLAY_ID: int = 1

HEADER = struct.Struct("=II")
_UINT = struct.Struct("=I")

READ_SIZE: int = 4096
# Same cap libwayland uses per message.
MAX_FDS_PER_READ: int = 28

# wl_display requests and events.
DISPLAY_SYNC = 0
DISPLAY_GET_REGISTRY = 1
DISPLAY_ERROR = 0
DISPLAY_DELETE_ID = 1

# wl_registry.bind, wl_registry.global, wl_callback.done.
REGISTRY_BIND = 0
REGISTRY_GLOBAL = 0
CALLBACK_DONE = 0

EventHandler = Callable[[int, "ArgReader"], None]


def encode_uint(value: int) -> bytes:
    return _UINT.pack(value)


def encode_string(value: str | None) -> bytes:
    """Encode a (nullable) string argument."""
    if value is None:
        return _UINT.pack(0)
    data = value.encode("utf-8") + b"\0"
    return _UINT.pack(len(data)) + data + b"\0" * (-len(data) % 4)


def encode_message(object_id: int, opcode: int, payload: bytes) -> bytes:
    size = HEADER.size + len(payload)
    return HEADER.pack(object_id, (size << 16) | opcode) + payload


@dataclass
class Message:
    object_id: int
    opcode: int
    payload: bytes


def split_messages(buffer: bytearray) -> list[Message]:
    """Remove every complete message from the front of buffer.

    A trailing partial message is left in place for the next read.

    Raises:
        BackendUnavailable: If a header announces an impossible size.
    """
    messages = []
    while len(buffer) >= HEADER.size:
        object_id, word = HEADER.unpack_from(buffer)
        size = word >> 16
        if size < HEADER.size or size % 4:
            raise BackendUnavailable(f"Malformed Wayland message of size {size}")
        if len(buffer) < size:
            break
        messages.append(Message(object_id, word & 0xFFFF, bytes(buffer[HEADER.size:size])))
        del buffer[:size]
    return messages


class ArgReader:
    """Sequential reader over one message's arguments."""

    def __init__(self, payload: bytes) -> None:
        self._payload = payload
        self._offset = 0

    def uint(self) -> int:
        try:
            (value,) = _UINT.unpack_from(self._payload, self._offset)
        except struct.error as e:
            raise BackendUnavailable("Truncated Wayland message") from e
        self._offset += _UINT.size
        return value

    def string(self) -> str | None:
        length = self.uint()
        if length == 0:
            return None
        end = self._offset + length
        if end > len(self._payload):
            raise BackendUnavailable("Truncated Wayland message")
        value = self._payload[self._offset:end - 1].decode("utf-8", errors="replace")
        self._offset = end + (-length % 4)
        return value


def socket_path(environ: Mapping[str, str] | None = None) -> str:
    """Locate the compositor socket named by $WAYLAND_DISPLAY.

    Raises:
        BackendUnavailable: If a relative name has no XDG_RUNTIME_DIR.
    """
    environ = os.environ if environ is None else environ
    name = environ.get("WAYLAND_DISPLAY") or "wayland-0"
    if os.path.isabs(name):
        return name
    runtime_dir = environ.get("XDG_RUNTIME_DIR")
    if not runtime_dir:
        raise BackendUnavailable("XDG_RUNTIME_DIR is not set")
    return os.path.join(runtime_dir, name)


class WaylandConnection:
    """A client connection to the compositor.

    Attributes:
        globals: Advertised globals by interface name, as (name, version).
            The first advertisement of an interface wins.
    """

    def __init__(self, sock: socket.socket) -> None:
        self.sock = sock
        self.globals: dict[str, tuple[int, int]] = {}
        self._next_id = DISPLAY_ID + 1
        self._registry_id: int | None = None
        self._handlers: dict[int, EventHandler] = {DISPLAY_ID: self._handle_display}
        self._outgoing = bytearray()
        self._incoming = bytearray()
        self._messages: deque[Message] = deque()
        self._fds: deque[int] = deque()

    @classmethod
    def connect(cls, environ: Mapping[str, str] | None = None) -> WaylandConnection:
        """Open a connection to the session's compositor.

        Raises:
            BackendUnavailable: If the socket cannot be reached.
        """
        path = socket_path(environ)
        sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        try:
            sock.connect(path)
        except OSError as e:
            sock.close()
            raise BackendUnavailable(f"Failed to connect to Wayland display {path}: {e}") from e
        return cls(sock)

    def close(self) -> None:
        while self._fds:
            os.close(self._fds.popleft())
        self.sock.close()

    def new_id(self, handler: EventHandler | None = None) -> int:
        """Allocate a client object id, routing its events to handler."""
        object_id = self._next_id
        self._next_id += 1
        if handler is not None:
            self._handlers[object_id] = handler
        return object_id

    def request(self, object_id: int, opcode: int, *args: bytes) -> None:
        """Queue a request; it is sent on the next flush or dispatch."""
        self._outgoing += encode_message(object_id, opcode, b"".join(args))

    def flush(self) -> None:
        if self._outgoing:
            self.sock.sendall(self._outgoing)
            self._outgoing.clear()

    def take_fd(self) -> int:
        """Take the next received file descriptor; the caller closes it.

        Raises:
            BackendUnavailable: If the message's descriptor did not arrive.
        """
        if not self._fds:
            raise BackendUnavailable("Wayland message is missing its file descriptor")
        return self._fds.popleft()

    def dispatch_one(self) -> None:
        """Flush pending requests, then handle exactly one event.

        Raises:
            BackendUnavailable: If the compositor hangs up or reports a
                protocol error.
        """
        self.flush()
        while not self._messages:
            self._read()
        message = self._messages.popleft()
        handler = self._handlers.get(message.object_id)
        if handler is None:
            logger.debug(
                "Ignoring event %d for object %d", message.opcode, message.object_id
            )
            return
        handler(message.opcode, ArgReader(message.payload))

    def roundtrip(self) -> None:
        """Block until the compositor has processed every queued request."""
        done: list[int] = []
        callback_id = self.new_id(lambda opcode, args: done.append(opcode))
        self.request(DISPLAY_ID, DISPLAY_SYNC, encode_uint(callback_id))
        while CALLBACK_DONE not in done:
            self.dispatch_one()

    def get_registry(self) -> None:
        """Create the registry and collect the advertised globals."""
        self._registry_id = self.new_id(self._handle_registry)
        self.request(DISPLAY_ID, DISPLAY_GET_REGISTRY, encode_uint(self._registry_id))
        self.roundtrip()

    def bind(self, interface: str, version: int, handler: EventHandler | None = None) -> int:
        """Bind a global at no more than version.

        Raises:
            BackendUnavailable: If the compositor does not offer interface.
        """
        if self._registry_id is None or interface not in self.globals:
            raise BackendUnavailable(f"Wayland compositor does not offer {interface}")
        name, advertised = self.globals[interface]
        object_id = self.new_id(handler)
        self.request(
            self._registry_id,
            REGISTRY_BIND,
            encode_uint(name),
            encode_string(interface),
            encode_uint(min(version, advertised)),
            encode_uint(object_id),
        )
        return object_id

    def _read(self) -> None:
        data, fds, _flags, _addr = socket.recv_fds(self.sock, READ_SIZE, MAX_FDS_PER_READ)
        self._fds.extend(fds)
        if not data:
            raise BackendUnavailable("Wayland compositor closed the connection")
        self._incoming += data
        self._messages.extend(split_messages(self._incoming))

    def _handle_display(self, opcode: int, args: ArgReader) -> None:
        if opcode == DISPLAY_ERROR:
            object_id = args.uint()
            code = args.uint()
            message = args.string()
            raise BackendUnavailable(
                f"Wayland protocol error on object {object_id} (code {code}): {message}"
            )
        if opcode == DISPLAY_DELETE_ID:
            self._handlers.pop(args.uint(), None)

    def _handle_registry(self, opcode: int, args: ArgReader) -> None:
        if opcode == REGISTRY_GLOBAL:
            name = args.uint()
            interface = args.string()
            version = args.uint()
            if interface is not None:
                self.globals.setdefault(interface, (name, version))
