#!/usr/bin/env python3
"""Selection resolution.

Maps the line picked in the chooser back to what must be placed on the
clipboard. A favorite resolves to its fixed text without touching the
store; a history entry resolves to every representation it has, so the
sink can offer all formats at once.

Restoring stale or wrong content is worse than restoring nothing, so any
label that does not resolve cleanly raises instead of degrading.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from clapboard.errors import ResolutionError, SelectionNotFound
from clapboard.summary import EntrySource, FavoriteSource

if TYPE_CHECKING:
    from clapboard.repository import EntryRepository
    from clapboard.summary import Source, SummaryIndex

logger = logging.getLogger(__name__)

PLAIN_TEXT: str = "text/plain;charset=utf-8"


@dataclass(frozen=True)
class RestorePlan:
    """Content to hand to the clipboard sink in one go.

    Attributes:
        representations: Format tag -> bytes, all offered together.
        source: The label target the plan was built from.
        foreground: True if the caller must stay alive while the content
            may still be pasted (favorites have no stored copy to serve
            from).
    """

    representations: dict[str, bytes]
    source: Source
    foreground: bool = False

    @classmethod
    def for_favorite(cls, favorite: FavoriteSource) -> RestorePlan:
        return cls(
            representations={PLAIN_TEXT: favorite.value.encode("utf-8")},
            source=favorite,
            foreground=True,
        )


def resolve(
    chosen: str, index: SummaryIndex, repository: EntryRepository
) -> RestorePlan | None:
    """Resolve a chosen label into a restore plan.

    Args:
        chosen: The line returned by the chooser.
        index: The label index the chooser was fed from.
        repository: Repository holding the history entries.

    Returns:
        The plan, or None if nothing was chosen.

    Raises:
        SelectionNotFound: If the label is not in the index.
        ResolutionError: If the label maps to something not restorable.
        EntryNotFound: If the entry behind the label has disappeared.
        StorageError: If the entry cannot be read.
    """
    label = chosen.strip()
    if not label:
        logger.debug("Nothing selected")
        return None

    # Labels may end in a blank where truncation cut them.
    source = index.get(chosen.rstrip("\r\n"))
    if source is None:
        source = index.get(label)
    if source is None:
        raise SelectionNotFound(label)

    if isinstance(source, FavoriteSource):
        logger.debug("Selected favorite %r", source.label)
        return RestorePlan.for_favorite(source)

    if not isinstance(source, EntrySource):
        raise ResolutionError(f"Cannot restore {source!r}")
    representations = repository.read_all(source.entry_id)
    logger.debug(
        "Selected entry %s with formats %s", source.entry_id, sorted(representations)
    )
    return RestorePlan(representations=representations, source=source)
