#!/usr/bin/env python3
"""Configuration loading.

config.toml is read once at startup into an immutable Config that is
passed to every component. A missing or malformed file means defaults; a
malformed value means the default for that key. Neither stops clapboard
from starting.

Example:

    launcher = ["fuzzel", "--dmenu"]
    history_size = 100
    backend = "wayland"

    [favorites]
    email = "me@example.org"
"""

from __future__ import annotations

import logging
import tomllib
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, TypeVar

from clapboard.errors import ConfigError
from clapboard.paths import config_path

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_LAUNCHER: tuple[str, ...] = ("tofi", "--fuzzy-match=true", "--prompt-text=clapboard: ")
DEFAULT_HISTORY_SIZE: int = 50
DEFAULT_PREVIEW_LENGTH: int = 50
BACKENDS: tuple[str, ...] = ("auto", "wayland", "x11")


@dataclass(frozen=True)
class Config:
    """Settings consumed by clapboard.

    Attributes:
        launcher: Chooser executable plus arguments.
        history_size: Number of history entries kept.
        favorites: Favorite label -> fixed text, in file order.
        backend: "auto", "wayland" or "x11".
        preview_length: Maximum label length in the chooser.
        deduplicate: Skip captures identical to the last recorded one.
    """

    launcher: tuple[str, ...] = DEFAULT_LAUNCHER
    history_size: int = DEFAULT_HISTORY_SIZE
    favorites: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    backend: str = "auto"
    preview_length: int = DEFAULT_PREVIEW_LENGTH
    deduplicate: bool = True


def parse_launcher(value: Any) -> tuple[str, ...]:
    if (
        not isinstance(value, list)
        or not value
        or not all(isinstance(item, str) for item in value)
        or not value[0]
    ):
        raise ConfigError("must be a non-empty list of strings")
    return tuple(value)


def parse_positive_int(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ConfigError("must be a positive integer")
    return value


def parse_favorites(value: Any) -> Mapping[str, str]:
    if not isinstance(value, dict):
        raise ConfigError("must be a table of strings")
    favorites = {}
    for name, text in value.items():
        if not isinstance(text, str):
            raise ConfigError(f"value of {name!r} must be a string")
        favorites[name] = text
    return MappingProxyType(favorites)


def parse_backend(value: Any) -> str:
    if value not in BACKENDS:
        raise ConfigError(f"must be one of {', '.join(BACKENDS)}")
    return value


def parse_bool(value: Any) -> bool:
    if not isinstance(value, bool):
        raise ConfigError("must be true or false")
    return value


def _setting(
    data: Mapping[str, Any], key: str, parse: Callable[[Any], T], default: T
) -> T:
    """Parse one key, falling back to default if absent or invalid."""
    if key not in data:
        return default
    try:
        return parse(data[key])
    except ConfigError as e:
        logger.warning("Ignoring config key %s: %s", key, e)
        return default


def config_from_mapping(data: Mapping[str, Any]) -> Config:
    """Build a Config from parsed TOML data."""
    return Config(
        launcher=_setting(data, "launcher", parse_launcher, DEFAULT_LAUNCHER),
        history_size=_setting(data, "history_size", parse_positive_int, DEFAULT_HISTORY_SIZE),
        favorites=_setting(data, "favorites", parse_favorites, MappingProxyType({})),
        backend=_setting(data, "backend", parse_backend, "auto"),
        preview_length=_setting(data, "preview_length", parse_positive_int, DEFAULT_PREVIEW_LENGTH),
        deduplicate=_setting(data, "deduplicate", parse_bool, True),
    )


def load_config(path: Path | None = None) -> Config:
    """Load the configuration file.

    Args:
        path: File to read; the XDG config location if None.

    Returns:
        The configuration; defaults if the file is missing or unreadable.
    """
    path = path if path is not None else config_path()
    try:
        with path.open("rb") as f:
            data = tomllib.load(f)
    except FileNotFoundError:
        logger.debug("No config file at %s, using defaults", path)
        return Config()
    except (OSError, tomllib.TOMLDecodeError, UnicodeDecodeError) as e:
        logger.warning("Cannot read config %s, using defaults: %s", path, e)
        return Config()
    return config_from_mapping(data)
