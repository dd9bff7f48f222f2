#!/usr/bin/env python3
"""External chooser invocation.

The chooser (tofi, fuzzel, dmenu, rofi -dmenu, fzf, ...) reads one label
per line on stdin and prints the picked line on stdout.
"""

from __future__ import annotations

import logging
import subprocess
from collections.abc import Sequence

from clapboard.errors import ExternalToolError

logger = logging.getLogger(__name__)


def strip_line_terminator(text: str) -> str:
    """Remove one trailing "\\r\\n" or "\\n" from text."""
    if text.endswith("\r\n"):
        return text[:-2]
    if text.endswith("\n"):
        return text[:-1]
    return text


def run_chooser(launcher: Sequence[str], menu: str) -> str:
    """Show menu in the chooser and return the picked line.

    A chooser that exits non-zero without printing anything was cancelled,
    which counts as picking nothing.

    Args:
        launcher: Executable plus arguments.
        menu: Newline separated labels.

    Returns:
        The picked line without its line terminator; empty if nothing
        was picked.

    Raises:
        ExternalToolError: If the chooser cannot be started, or fails while
            producing output.
    """
    executable = launcher[0]
    logger.debug("Running chooser %s", list(launcher))
    try:
        result = subprocess.run(
            list(launcher),
            input=menu.encode("utf-8"),
            stdout=subprocess.PIPE,
            check=False,
        )
    except FileNotFoundError as e:
        raise ExternalToolError(executable, "not found, check 'launcher' in the config") from e
    except PermissionError as e:
        raise ExternalToolError(executable, "is not executable") from e
    except OSError as e:
        raise ExternalToolError(executable, f"cannot be run: {e}") from e

    output = result.stdout.decode("utf-8", errors="replace")
    if result.returncode != 0:
        if not output.strip():
            logger.debug("%s exited with status %s, treating as cancelled",
                executable, result.returncode)
            return ""
        raise ExternalToolError(executable, f"exited with status {result.returncode}")
    return strip_line_terminator(output)
