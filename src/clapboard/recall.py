#!/usr/bin/env python3
"""Recall: pick a history entry or favorite and put it back.

List the history, label it, let the chooser pick, resolve the pick and
hand the result to the sink. Any resolution fault aborts before the sink
is touched.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING

from clapboard.chooser import run_chooser
from clapboard.resolver import resolve
from clapboard.summary import build_summaries

if TYPE_CHECKING:
    from clapboard.config import Config
    from clapboard.repository import EntryRepository
    from clapboard.resolver import RestorePlan
    from clapboard.sink import ClipboardSink

logger = logging.getLogger(__name__)

Chooser = Callable[[Sequence[str], str], str]


def run_recall(
    config: Config,
    repository: EntryRepository,
    sink: ClipboardSink,
    chooser: Chooser = run_chooser,
) -> RestorePlan | None:
    """Run one recall.

    Args:
        config: The loaded configuration.
        repository: Repository holding the history.
        sink: Where the chosen content goes.
        chooser: Function showing the menu and returning the picked line.

    Returns:
        The plan that was restored, or None if nothing was picked.

    Raises:
        ResolutionError: If the pick cannot be restored faithfully.
        ExternalToolError: If the chooser or the sink fails.
        StorageError: If the history cannot be read.
    """
    entries = repository.list()
    index = build_summaries(repository, entries, config.favorites, config.preview_length)
    logger.debug("Offering %d labels for %d entries", len(index), len(entries))

    chosen = chooser(config.launcher, index.menu())
    plan = resolve(chosen, index, repository)
    if plan is None:
        return None
    sink.copy(plan)
    return plan
