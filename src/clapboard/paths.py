"""
XDG locations for clapboard.

- Config: $XDG_CONFIG_HOME/clapboard/config.toml
- History: $XDG_CACHE_HOME/clapboard/history/<id>/<format>
"""

from __future__ import annotations

import os
from pathlib import Path


APP_NAME = "clapboard"
CONFIG_FILENAME = "config.toml"
HISTORY_DIRNAME = "history"


def xdg_config_dir() -> Path:
    base = os.environ.get("XDG_CONFIG_HOME")
    if base:
        return Path(base) / APP_NAME
    return Path.home() / ".config" / APP_NAME


def xdg_cache_dir() -> Path:
    base = os.environ.get("XDG_CACHE_HOME")
    if base:
        return Path(base) / APP_NAME
    return Path.home() / ".cache" / APP_NAME


def config_path() -> Path:
    return xdg_config_dir() / CONFIG_FILENAME


def history_dir() -> Path:
    return xdg_cache_dir() / HISTORY_DIRNAME
