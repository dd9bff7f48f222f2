#!/usr/bin/env python3
"""Tests for watching an X11 selection with XFixes."""
import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from Xlib import X

from clapboard.errors import CaptureError
from clapboard.x11_source import X11ClipboardEvent, X11ClipboardSource, owner_id


def _owner_change(owner: int) -> MagicMock:
    event = MagicMock()
    event.owner = owner
    return event


@pytest.fixture
def conn() -> MagicMock:
    conn = MagicMock()
    conn.window.id = 9
    return conn


def test_owner_id_accepts_window_or_id() -> None:
    window = MagicMock()
    window.id = 42
    assert owner_id(_owner_change(window)) == 42
    assert owner_id(_owner_change(7)) == 7


@pytest.mark.asyncio
async def test_watch_reports_changes_by_other_clients(conn: MagicMock) -> None:
    """Test that cleared selections and our own ownership are skipped."""
    conn.next_event = AsyncMock(side_effect=[
        _owner_change(X.NONE),
        _owner_change(9),
        _owner_change(1234),
        asyncio.CancelledError(),
    ])
    handler = AsyncMock()
    source = X11ClipboardSource("clipboard")
    with patch("clapboard.x11_source.read_targets", new_callable=AsyncMock) as mock_targets:
        mock_targets.return_value = ["UTF8_STRING"]
        with pytest.raises(asyncio.CancelledError):
            await source._watch(conn, 300, handler)

    mock_targets.assert_awaited_once_with(conn, 300)
    handler.assert_awaited_once()
    event = handler.call_args.args[0]
    assert isinstance(event, X11ClipboardEvent)
    assert event.formats == ["UTF8_STRING"]
    assert event.selection == 300


@pytest.mark.asyncio
async def test_watch_survives_unanswered_targets(conn: MagicMock) -> None:
    conn.next_event = AsyncMock(side_effect=[
        _owner_change(1234),
        _owner_change(1234),
        asyncio.CancelledError(),
    ])
    handler = AsyncMock()
    source = X11ClipboardSource("primary")
    with patch("clapboard.x11_source.read_targets", new_callable=AsyncMock) as mock_targets:
        mock_targets.side_effect = [CaptureError("timed out"), ["STRING"]]
        with pytest.raises(asyncio.CancelledError):
            await source._watch(conn, 1, handler)
    handler.assert_awaited_once()


@pytest.mark.asyncio
async def test_event_fetch_reads_target(conn: MagicMock) -> None:
    event = X11ClipboardEvent(formats=["image/png"], conn=conn, selection=300)
    with patch("clapboard.x11_source.read_target", new_callable=AsyncMock) as mock_read:
        mock_read.return_value = b"\x89PNG"
        assert await event.fetch("image/png") == b"\x89PNG"
    mock_read.assert_awaited_once_with(conn, 300, "image/png")
