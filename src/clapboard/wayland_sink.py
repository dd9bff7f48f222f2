#!/usr/bin/env python3
"""Wayland clipboard sink.

Restores go through the data-control protocol (ext_data_control_v1, or the
older zwlr_data_control_v1 that wlroots compositors ship). One data source
offers every MIME type of the plan, and each paste is answered with the
matching bytes. Like X11, there is no clipboard daemon: copy() keeps
serving until the compositor cancels the source because something else
took the clipboard.

Compositors without data-control get wl-copy instead. wl-copy offers a
single MIME type per invocation, so that path restores only the plan's
preferred format (see sink.preferred_format).
"""

from __future__ import annotations

import logging
import os
import subprocess
from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING

from clapboard.errors import ExternalToolError
from clapboard.resolver import PLAIN_TEXT
from clapboard.sink import preferred_format
from clapboard.wayland_wire import WaylandConnection, encode_string, encode_uint

if TYPE_CHECKING:
    from clapboard.resolver import RestorePlan
    from clapboard.wayland_wire import ArgReader

logger = logging.getLogger(__name__)

WL_COPY: str = "wl-copy"

# Preferred first. Both protocols share every opcode used below.
DATA_CONTROL_MANAGERS = ("ext_data_control_manager_v1", "zwlr_data_control_manager_v1")
SEAT: str = "wl_seat"

MANAGER_CREATE_DATA_SOURCE = 0
MANAGER_GET_DATA_DEVICE = 1
DEVICE_SET_SELECTION = 0
DEVICE_FINISHED = 2
SOURCE_OFFER = 0
SOURCE_SEND = 0
SOURCE_CANCELLED = 1

# Names plain text goes by; wl-copy detects these by itself.
TEXT_TYPES = (PLAIN_TEXT, "text/plain", "UTF8_STRING", "STRING", "TEXT")


def offered_types(representations: Mapping[str, bytes]) -> dict[str, bytes]:
    """Map every MIME type to offer to the bytes served for it.

    Stored text is also offered under the other plain-text names, since
    applications ask for different ones.
    """
    offers = dict(representations)
    text = next(
        (representations[tag] for tag in TEXT_TYPES if tag in representations), None
    )
    if text is not None:
        for tag in TEXT_TYPES:
            offers.setdefault(tag, text)
    return offers


def write_all(fd: int, data: bytes) -> None:
    view = memoryview(data)
    while view:
        written = os.write(fd, view)
        view = view[written:]


class DataSourceServer:
    """Answers the compositor's events for one data source and device."""

    def __init__(self, connection: WaylandConnection, offers: Mapping[str, bytes]) -> None:
        self.connection = connection
        self.offers = offers
        self.finished = False

    def handle_source_event(self, opcode: int, args: ArgReader) -> None:
        if opcode == SOURCE_SEND:
            mime_type = args.string()
            self.send(mime_type, self.connection.take_fd())
        elif opcode == SOURCE_CANCELLED:
            logger.debug("Data source cancelled, restore finished")
            self.finished = True

    def handle_device_event(self, opcode: int, args: ArgReader) -> None:
        if opcode == DEVICE_FINISHED:
            logger.debug("Data device finished, restore finished")
            self.finished = True

    def send(self, mime_type: str | None, fd: int) -> None:
        """Write the bytes for mime_type to a paste's pipe and close it.

        A reader that goes away mid-paste only aborts that paste.
        """
        try:
            data = self.offers.get(mime_type) if mime_type is not None else None
            if data is None:
                logger.debug("Paste asked for %s, which is not offered", mime_type)
                return
            os.set_blocking(fd, True)
            write_all(fd, data)
        except OSError as e:
            logger.debug("Paste of %s aborted: %s", mime_type, e)
        finally:
            os.close(fd)


def wl_copy_command(format_tag: str, foreground: bool) -> list[str]:
    """Build the wl-copy command line for one format."""
    command = [WL_COPY]
    if foreground:
        command.append("--foreground")
    if format_tag not in TEXT_TYPES:
        command.extend(["--type", format_tag])
    return command


class WlCopySink:
    """Restore plans through wl-copy, one format only.

    Without --foreground wl-copy forks a server and returns at once; with
    it, wl-copy (and this process) stays until the clipboard is replaced.
    """

    def copy(self, plan: RestorePlan) -> None:
        """Offer the plan's preferred format on the Wayland clipboard.

        Raises:
            ExternalToolError: If wl-copy cannot be run or exits non-zero.
        """
        format_tag = preferred_format(plan.representations)
        dropped = sorted(set(plan.representations) - {format_tag})
        if dropped:
            logger.warning("wl-copy offers one type, not restoring %s", dropped)

        command = wl_copy_command(format_tag, plan.foreground)
        logger.debug("Running %s", command)
        try:
            result = subprocess.run(
                command,
                input=plan.representations[format_tag],
                stdout=subprocess.DEVNULL,
                stderr=subprocess.PIPE,
                check=False,
            )
        except FileNotFoundError as e:
            raise ExternalToolError(WL_COPY, "not found, is wl-clipboard installed?") from e
        except OSError as e:
            raise ExternalToolError(WL_COPY, f"cannot be run: {e}") from e
        if result.returncode != 0:
            message = result.stderr.decode("utf-8", errors="replace").strip()
            raise ExternalToolError(
                WL_COPY, f"exited with status {result.returncode}: {message}"
            )


class WaylandClipboardSink:
    """Restore plans by serving a data-control source."""

    def __init__(
        self,
        connect: Callable[[], WaylandConnection] = WaylandConnection.connect,
        fallback: WlCopySink | None = None,
    ) -> None:
        self._connect = connect
        self._fallback = fallback if fallback is not None else WlCopySink()

    def copy(self, plan: RestorePlan) -> None:
        """Offer every format of the plan until the clipboard changes.

        Raises:
            BackendUnavailable: If the compositor cannot be reached, has no
                seat, or reports a protocol error.
            ExternalToolError: If the wl-copy fallback fails.
        """
        connection = self._connect()
        try:
            connection.get_registry()
            manager = next(
                (name for name in DATA_CONTROL_MANAGERS if name in connection.globals),
                None,
            )
            if manager is None:
                logger.warning("Compositor has no data-control protocol, using wl-copy")
            else:
                self._serve(connection, manager, plan)
                return
        finally:
            connection.close()
        self._fallback.copy(plan)

    def _serve(self, connection: WaylandConnection, manager: str, plan: RestorePlan) -> None:
        manager_id = connection.bind(manager, 1)
        seat_id = connection.bind(SEAT, 1)
        server = DataSourceServer(connection, offered_types(plan.representations))

        source_id = connection.new_id(server.handle_source_event)
        connection.request(manager_id, MANAGER_CREATE_DATA_SOURCE, encode_uint(source_id))
        for mime_type in server.offers:
            connection.request(source_id, SOURCE_OFFER, encode_string(mime_type))
        device_id = connection.new_id(server.handle_device_event)
        connection.request(
            manager_id, MANAGER_GET_DATA_DEVICE, encode_uint(device_id), encode_uint(seat_id)
        )
        connection.request(device_id, DEVICE_SET_SELECTION, encode_uint(source_id))
        logger.debug("Offering %d types through %s", len(server.offers), manager)

        while not server.finished:
            connection.dispatch_one()
