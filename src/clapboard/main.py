"""CLI handling for clapboard.

This module provides the command-line interface for clapboard, handling
argument parsing via click, logging configuration, and dispatching to
capture, store or recall mode based on user-specified options.

Usage:
    clapboard --capture [primary|clipboard|both] [--verbose]
    clapboard --store [--type FORMAT] < data
    clapboard [--config PATH] [--cache-dir PATH]
"""

import click
import sys
from pathlib import Path

from clapboard.errors import ClapboardError
from clapboard.main_logging import configure_logging
from clapboard.main_options import ModeOption
from clapboard.source import CLIPBOARD, PRIMARY


@click.command()
@click.option(
    "--capture",
    type=click.Choice([PRIMARY, CLIPBOARD, "both"]),
    is_flag=False,
    flag_value="both",
    default=None,
    cls=ModeOption,
    conflicts=["store"],
    help="Record clipboard changes until terminated (default: both selections)",
)
@click.option(
    "--store",
    is_flag=True,
    cls=ModeOption,
    conflicts=["capture"],
    help="Record one entry read from stdin",
)
@click.option(
    "--type",
    "format_tag",
    metavar="FORMAT",
    help="Format of the data given to --store (default: guessed)",
)
@click.option(
    "--config",
    "config_file",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Configuration file (default: $XDG_CONFIG_HOME/clapboard/config.toml)",
)
@click.option(
    "--cache-dir",
    type=click.Path(file_okay=False, path_type=Path),
    help="History directory (default: $XDG_CACHE_HOME/clapboard/history)",
)
@click.option(
    "--verbose",
    is_flag=True,
    help="Enable DEBUG-level logging",
)
def main(
    capture: str | None,
    store: bool,
    format_tag: str | None,
    config_file: Path | None,
    cache_dir: Path | None,
    verbose: bool,
) -> None:
    """Clipboard history: capture, store, or pick an entry to restore."""
    if format_tag is not None and not store:
        raise click.UsageError("--type can only be used with --store")

    configure_logging(verbose, timestamps=capture is not None)

    try:
        _run_mode(capture, store, format_tag, config_file, cache_dir)
    except ClapboardError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


def _run_mode(
    capture: str | None,
    store: bool,
    format_tag: str | None,
    config_file: Path | None,
    cache_dir: Path | None,
) -> None:
    """Run the selected mode.

    Args:
        capture: Selections to capture, or None when not capturing.
        store: True for store mode.
        format_tag: Format of the stored data, or None to guess.
        config_file: Configuration file override.
        cache_dir: History directory override.
    """
    from clapboard.config import load_config
    from clapboard.paths import history_dir
    from clapboard.repository import EntryRepository

    config = load_config(config_file)
    repository = EntryRepository.at(cache_dir if cache_dir is not None else history_dir())

    if store:
        _run_store(config, repository, format_tag)
    elif capture is not None:
        _run_capture(config, repository, capture)
    else:
        _run_recall(config, repository)


def _run_store(config, repository, format_tag: str | None) -> None:
    """Read stdin and record it as one entry."""
    from clapboard.store_mode import run_store

    stdin = click.get_binary_stream("stdin")
    if stdin.isatty():
        raise click.UsageError("--store reads the entry from stdin")
    run_store(config, repository, stdin.read(), format_tag)


def _run_capture(config, repository, capture: str) -> None:
    """Capture the chosen selections until SIGINT or SIGTERM."""
    import asyncio
    from clapboard.backends import detect_backend, make_sources
    from clapboard.capture_mode import run_capture
    from clapboard.source import selections_for

    backend = detect_backend(config.backend)
    sources = make_sources(backend, selections_for(capture))
    asyncio.run(run_capture(config, repository, sources))


def _run_recall(config, repository) -> None:
    """Pick an entry or favorite and restore it to the clipboard."""
    from clapboard.backends import detect_backend, make_sink
    from clapboard.recall import run_recall

    sink = make_sink(detect_backend(config.backend))
    run_recall(config, repository, sink)
