#!/usr/bin/env python3
"""Tests for configuration loading."""
import logging
from pathlib import Path

import pytest

from clapboard.config import (
    DEFAULT_HISTORY_SIZE,
    DEFAULT_LAUNCHER,
    Config,
    config_from_mapping,
    load_config,
)
from clapboard.paths import config_path, history_dir


def test_missing_file_gives_defaults(tmp_path: Path) -> None:
    config = load_config(tmp_path / "missing.toml")
    assert config == Config()
    assert config.launcher == DEFAULT_LAUNCHER
    assert config.history_size == DEFAULT_HISTORY_SIZE
    assert dict(config.favorites) == {}
    assert config.backend == "auto"
    assert config.deduplicate is True


def test_full_file(tmp_path: Path) -> None:
    path = tmp_path / "config.toml"
    path.write_text(
        'launcher = ["fuzzel", "--dmenu"]\n'
        "history_size = 100\n"
        'backend = "x11"\n'
        "preview_length = 30\n"
        "deduplicate = false\n"
        "\n"
        "[favorites]\n"
        'todo = "buy milk"\n'
        'email = "me@example.org"\n'
    )
    config = load_config(path)
    assert config.launcher == ("fuzzel", "--dmenu")
    assert config.history_size == 100
    assert config.backend == "x11"
    assert config.preview_length == 30
    assert config.deduplicate is False
    assert list(config.favorites.items()) == [
        ("todo", "buy milk"), ("email", "me@example.org"),
    ]


def test_malformed_file_gives_defaults(tmp_path: Path, caplog) -> None:
    path = tmp_path / "config.toml"
    path.write_text("launcher = [\n")
    with caplog.at_level(logging.WARNING):
        assert load_config(path) == Config()
    assert "Cannot read config" in caplog.text


@pytest.mark.parametrize(
    ("key", "value"),
    [
        ("launcher", []),
        ("launcher", "tofi"),
        ("launcher", ["tofi", 1]),
        ("launcher", [""]),
        ("history_size", 0),
        ("history_size", -3),
        ("history_size", "50"),
        ("history_size", True),
        ("preview_length", 0),
        ("backend", "mir"),
        ("deduplicate", "yes"),
        ("favorites", ["todo"]),
        ("favorites", {"todo": 1}),
    ],
)
def test_invalid_value_falls_back_per_key(key: str, value, caplog) -> None:
    """Test that one bad key does not discard the others."""
    with caplog.at_level(logging.WARNING):
        config = config_from_mapping({"backend": "wayland", key: value})
    assert getattr(config, key) == getattr(Config(), key)
    assert config.backend == ("auto" if key == "backend" else "wayland")
    assert key in caplog.text


def test_unknown_keys_are_ignored() -> None:
    assert config_from_mapping({"colour": "blue"}) == Config()


def test_config_is_immutable() -> None:
    config = Config()
    with pytest.raises(AttributeError):
        config.history_size = 1
    with pytest.raises(TypeError):
        config.favorites["x"] = "y"


def test_xdg_paths(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "conf"))
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "cache"))
    assert config_path() == tmp_path / "conf" / "clapboard" / "config.toml"
    assert history_dir() == tmp_path / "cache" / "clapboard" / "history"


def test_xdg_paths_default_to_home(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
    monkeypatch.delenv("XDG_CACHE_HOME", raising=False)
    monkeypatch.setenv("HOME", str(tmp_path))
    assert config_path() == tmp_path / ".config" / "clapboard" / "config.toml"
    assert history_dir() == tmp_path / ".cache" / "clapboard" / "history"
