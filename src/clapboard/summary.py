#!/usr/bin/env python3
"""Chooser labels for history entries and favorites.

Every entry gets a one-line label: a cleaned-up preview of its text, or its
id when it has no text (images and other binary formats). Favorites are
listed after all history entries under their configured names.

Labels are unique within one listing. The first source to claim a label
keeps it: a newer entry beats an older one with the same text, and any
history entry beats a favorite of the same name. The losing entry is still
stored (and still counts toward the history size); it just cannot be
picked by that label.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Union

from clapboard.errors import EntryNotFound, StorageError

if TYPE_CHECKING:
    from clapboard.repository import EntryInfo, EntryRepository

logger = logging.getLogger(__name__)

# Text formats checked for a preview, in order of preference.
TEXT_FORMATS: tuple[str, ...] = (
    "text/plain;charset=utf-8",
    "UTF8_STRING",
    "text/plain",
    "TEXT",
    "text/html",
    "STRING",
)

DEFAULT_PREVIEW_LENGTH: int = 50

# Only this much of a stored text is decoded for its preview.
PREVIEW_BYTES: int = 65536

_LINE_BREAKS = re.compile(r"[\r\n]+")


@dataclass(frozen=True)
class EntrySource:
    """Label target: a stored history entry."""

    entry_id: int


@dataclass(frozen=True)
class FavoriteSource:
    """Label target: a configured favorite with a fixed text value."""

    label: str
    value: str


Source = Union[EntrySource, FavoriteSource]


@dataclass
class SummaryIndex:
    """Insertion-ordered mapping from label to the source it restores.

    Built once per recall and discarded afterwards.
    """

    sources: dict[str, Source] = field(default_factory=dict)

    def add(self, label: str, source: Source) -> bool:
        """Claim label for source unless another source already has it.

        Returns:
            True if the label was added, False if it was already taken.
        """
        if label in self.sources:
            logger.debug("Label %r already taken, dropping %s", label, source)
            return False
        self.sources[label] = source
        return True

    def get(self, label: str) -> Source | None:
        return self.sources.get(label)

    def menu(self) -> str:
        """Return the chooser input: one label per line."""
        return "\n".join(self.sources)

    def __len__(self) -> int:
        return len(self.sources)


def clean_text(text: str) -> str:
    """Collapse text onto one line: no NULs, no line breaks, no outer blanks."""
    text = text.replace("\x00", "")
    return _LINE_BREAKS.sub(" ", text.strip())


def make_label(text: str, max_length: int = DEFAULT_PREVIEW_LENGTH) -> str:
    """Turn clipboard text into a chooser label.

    Args:
        text: The captured text.
        max_length: Maximum number of characters in the label.

    Returns:
        The cleaned, truncated label. May be empty for blank input.
    """
    return clean_text(text)[:max_length]


def preview_format(formats: Iterable[str]) -> str | None:
    """Return the preferred text format among formats, if any."""
    available = set(formats)
    for format_tag in TEXT_FORMATS:
        if format_tag in available:
            return format_tag
    return None


def entry_label(
    repository: EntryRepository,
    entry: EntryInfo,
    max_length: int = DEFAULT_PREVIEW_LENGTH,
) -> str:
    """Return the label for one entry, falling back to its id.

    An entry whose text cannot be read (removed since the listing, or an
    I/O error) also falls back to its id.
    """
    format_tag = preview_format(entry.formats)
    if format_tag is not None:
        try:
            data = repository.read(entry.entry_id, format_tag)
        except (EntryNotFound, StorageError) as e:
            logger.debug("No preview for entry %s: %s", entry.entry_id, e)
        else:
            label = make_label(
                data[:PREVIEW_BYTES].decode("utf-8", errors="replace"), max_length
            )
            if label:
                return label
    return str(entry.entry_id)


def build_summaries(
    repository: EntryRepository,
    entries: Iterable[EntryInfo],
    favorites: Mapping[str, str],
    max_length: int = DEFAULT_PREVIEW_LENGTH,
) -> SummaryIndex:
    """Build the label index for one recall.

    Args:
        repository: Repository the entries were listed from.
        entries: Entries, most recent first.
        favorites: Favorite label -> value, in configuration order.
        max_length: Maximum label length for history entries.

    Returns:
        The index, history entries first, favorites after them.
    """
    index = SummaryIndex()
    for entry in entries:
        index.add(entry_label(repository, entry, max_length), EntrySource(entry.entry_id))
    for name, value in favorites.items():
        label = clean_text(name)
        if not label:
            logger.warning("Ignoring favorite with an empty name")
            continue
        index.add(label, FavoriteSource(label, value))
    return index
