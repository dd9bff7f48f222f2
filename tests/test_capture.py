#!/usr/bin/env python3
"""Tests for the capture session."""
from unittest.mock import patch

import pytest

from clapboard.capture import MAX_CONTENT_SIZE, CaptureSession, validate_content_size
from clapboard.errors import StorageError
from clapboard.repository import EntryRepository
from conftest_fakes import FakeEvent, FakeSource, text_event


def _texts(repository: EntryRepository) -> list[bytes]:
    return [
        repository.read(entry.entry_id, "text/plain;charset=utf-8")
        for entry in repository.list()
    ]


def test_validate_content_size() -> None:
    assert validate_content_size(b"x" * MAX_CONTENT_SIZE) is True
    assert validate_content_size(b"x" * (MAX_CONTENT_SIZE + 1)) is False


@pytest.mark.asyncio
async def test_capture_event_stores_every_format(repository: EntryRepository) -> None:
    """Test that all fetched formats land in one entry."""
    session = CaptureSession(repository, history_size=10)
    event = FakeEvent({"text/plain": b"x", "text/html": b"<b>x</b>"})
    entry_id = await session.capture_event(event)
    assert entry_id is not None
    assert repository.read_all(entry_id) == {"text/plain": b"x", "text/html": b"<b>x</b>"}


@pytest.mark.asyncio
async def test_capture_event_skips_failed_and_empty_formats(
    repository: EntryRepository,
) -> None:
    """Test that one bad format does not lose the others."""
    session = CaptureSession(repository, history_size=10)
    event = FakeEvent({"text/plain": b"x", "image/png": b""}, failing=["text/html"])
    entry_id = await session.capture_event(event)
    assert repository.read_all(entry_id) == {"text/plain": b"x"}


@pytest.mark.asyncio
async def test_capture_event_skips_oversized_formats(repository: EntryRepository) -> None:
    session = CaptureSession(repository, history_size=10)
    event = FakeEvent({"text/plain": b"x", "image/png": b"\0" * (MAX_CONTENT_SIZE + 1)})
    entry_id = await session.capture_event(event)
    assert repository.read_all(entry_id) == {"text/plain": b"x"}


@pytest.mark.asyncio
async def test_capture_event_with_nothing_usable_records_nothing(
    repository: EntryRepository,
) -> None:
    session = CaptureSession(repository, history_size=10)
    assert await session.capture_event(FakeEvent({}, failing=["text/plain"])) is None
    assert repository.list() == []


@pytest.mark.asyncio
async def test_history_bound_holds_after_every_capture(repository: EntryRepository) -> None:
    """Test that capturing a, b, c with a bound of 2 keeps c and b."""
    session = CaptureSession(repository, history_size=2)
    for text in ("a", "b", "c"):
        await session.capture_event(text_event(text))
        assert len(repository.list()) <= 2
    assert _texts(repository) == [b"c", b"b"]


@pytest.mark.asyncio
async def test_consecutive_duplicates_are_recorded_once(repository: EntryRepository) -> None:
    session = CaptureSession(repository, history_size=10)
    assert await session.capture_event(text_event("a")) is not None
    assert await session.capture_event(text_event("a")) is None
    assert await session.capture_event(text_event("b")) is not None
    assert await session.capture_event(text_event("a")) is not None
    assert _texts(repository) == [b"a", b"b", b"a"]


@pytest.mark.asyncio
async def test_duplicates_kept_when_deduplication_is_off(
    repository: EntryRepository,
) -> None:
    session = CaptureSession(repository, history_size=10, deduplicate=False)
    await session.capture_event(text_event("a"))
    await session.capture_event(text_event("a"))
    assert len(repository.list()) == 2


def test_prime_skips_content_already_stored(repository: EntryRepository) -> None:
    """Test that a restarted session does not record the newest entry again."""
    repository.put(5, "text/plain;charset=utf-8", b"a")
    session = CaptureSession(repository, history_size=10)
    session.prime()
    assert session.record({"text/plain;charset=utf-8": b"a"}) is None
    assert session.record({"text/plain;charset=utf-8": b"b"}) is not None


def test_prime_on_empty_history(repository: EntryRepository) -> None:
    session = CaptureSession(repository, history_size=10)
    session.prime()
    assert session.hash_state.last_recorded_hash is None


def test_record_uses_increasing_ids_in_same_millisecond(
    repository: EntryRepository,
) -> None:
    session = CaptureSession(repository, history_size=10)
    with patch("clapboard.entry_ids.now_ms", return_value=1000):
        assert session.record({"text/plain": b"a"}) == 1000
        assert session.record({"text/plain": b"b"}) == 1001


def test_record_releases_id_when_nothing_is_stored(repository: EntryRepository) -> None:
    """Test that a capture whose writes all fail leaves no empty entry."""
    session = CaptureSession(repository, history_size=10)
    with patch.object(repository, "put", side_effect=StorageError("disk full")):
        assert session.record({"text/plain": b"a"}) is None
    assert repository.store.buckets() == []


def test_record_keeps_formats_that_were_written(repository: EntryRepository) -> None:
    session = CaptureSession(repository, history_size=10)
    real_put = repository.put

    def put(entry_id: int, format_tag: str, data: bytes) -> None:
        if format_tag == "image/png":
            raise StorageError("disk full")
        real_put(entry_id, format_tag, data)

    with patch.object(repository, "put", side_effect=put):
        entry_id = session.record({"text/plain": b"a", "image/png": b"\x89"})
    assert repository.read_all(entry_id) == {"text/plain": b"a"}


def test_record_with_bad_format_tag_keeps_the_rest(repository: EntryRepository) -> None:
    session = CaptureSession(repository, history_size=10)
    entry_id = session.record({"/": b"junk", "text/plain": b"a"})
    assert repository.read_all(entry_id) == {"text/plain": b"a"}


@pytest.mark.asyncio
async def test_run_listens_on_every_source(repository: EntryRepository) -> None:
    """Test that events from both selections share one history."""
    session = CaptureSession(repository, history_size=10)
    await session.run([
        FakeSource("primary", [text_event("selected")]),
        FakeSource("clipboard", [text_event("copied")]),
    ])
    assert sorted(_texts(repository)) == [b"copied", b"selected"]


@pytest.mark.asyncio
async def test_run_shares_deduplication_between_sources(
    repository: EntryRepository,
) -> None:
    """Test that text selected and then copied is recorded once."""
    session = CaptureSession(repository, history_size=10)
    await session.run([
        FakeSource("primary", [text_event("same")]),
        FakeSource("clipboard", [text_event("same")]),
    ])
    assert _texts(repository) == [b"same"]


@pytest.mark.asyncio
async def test_run_reraises_listener_failure(repository: EntryRepository) -> None:
    class BrokenSource:
        name = "clipboard"

        async def listen(self, handler) -> None:
            raise RuntimeError("backend gone")

    session = CaptureSession(repository, history_size=10)
    with pytest.raises(RuntimeError, match="backend gone"):
        await session.run([BrokenSource()])
