#!/usr/bin/env python3
"""Tests for resolving a chosen label into a restore plan."""
from unittest.mock import MagicMock

import pytest

from clapboard.errors import EntryNotFound, ResolutionError, SelectionNotFound
from clapboard.repository import EntryRepository
from clapboard.resolver import PLAIN_TEXT, RestorePlan, resolve
from clapboard.summary import EntrySource, FavoriteSource, SummaryIndex


@pytest.fixture
def index() -> SummaryIndex:
    index = SummaryIndex()
    index.add("hello", EntrySource(1))
    index.add("todo", FavoriteSource("todo", "buy milk"))
    return index


@pytest.mark.parametrize("chosen", ["", "\n", "   "])
def test_empty_choice_resolves_to_nothing(index: SummaryIndex, chosen: str) -> None:
    """Test that a cancelled chooser is not an error."""
    assert resolve(chosen, index, MagicMock()) is None


def test_unknown_label_raises_selection_not_found(index: SummaryIndex) -> None:
    with pytest.raises(SelectionNotFound) as exc_info:
        resolve("nope", index, MagicMock())
    assert exc_info.value.label == "nope"


def test_favorite_does_not_touch_repository(index: SummaryIndex) -> None:
    """Test that a favorite resolves to its fixed text only."""
    repository = MagicMock()
    plan = resolve("todo", index, repository)
    assert plan == RestorePlan(
        representations={PLAIN_TEXT: b"buy milk"},
        source=FavoriteSource("todo", "buy milk"),
        foreground=True,
    )
    assert repository.mock_calls == []


def test_entry_resolves_to_all_formats(
    index: SummaryIndex, repository: EntryRepository
) -> None:
    repository.put(1, "text/plain", b"hello")
    repository.put(1, "text/html", b"<p>hello</p>")
    plan = resolve("hello\n", index, repository)
    assert plan is not None
    assert plan.representations == {"text/plain": b"hello", "text/html": b"<p>hello</p>"}
    assert plan.source == EntrySource(1)
    assert plan.foreground is False


def test_vanished_entry_raises_entry_not_found(
    index: SummaryIndex, repository: EntryRepository
) -> None:
    """Test that an entry deleted after listing is a resolution fault."""
    with pytest.raises(EntryNotFound):
        resolve("hello", index, repository)


def test_label_ending_in_blank_resolves(repository: EntryRepository) -> None:
    """Test that a label cut right after a space still finds its entry."""
    index = SummaryIndex()
    index.add("abc ", EntrySource(3))
    repository.put(3, "text/plain", b"abc def")
    plan = resolve("abc \n", index, repository)
    assert plan is not None
    assert plan.source == EntrySource(3)


def test_unrestorable_source_raises_resolution_error() -> None:
    """Test that a label backed by neither an entry nor a favorite is refused."""
    index = SummaryIndex()
    index.add("odd", object())
    repository = MagicMock()
    with pytest.raises(ResolutionError):
        resolve("odd", index, repository)
    assert repository.mock_calls == []
