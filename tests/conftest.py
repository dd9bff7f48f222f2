#!/usr/bin/env python3
"""Pytest fixtures for clapboard tests.

Provides a repository on a temporary cache root, a default configuration,
and fake clipboard sources and sinks.
"""

from pathlib import Path

import pytest

from clapboard.config import Config
from clapboard.repository import EntryRepository
from conftest_fakes import FakeChooser, RecordingSink


@pytest.fixture
def cache_root(tmp_path: Path) -> Path:
    """Provide a history directory that does not exist yet."""
    return tmp_path / "cache" / "history"


@pytest.fixture
def repository(cache_root: Path) -> EntryRepository:
    """Create an empty repository on a temporary cache root."""
    return EntryRepository.at(cache_root)


@pytest.fixture
def config() -> Config:
    """Default configuration."""
    return Config()


@pytest.fixture
def sink() -> RecordingSink:
    """Sink that records the plans it was given."""
    return RecordingSink()


@pytest.fixture
def chooser() -> FakeChooser:
    """Chooser that answers with a preset line."""
    return FakeChooser()
