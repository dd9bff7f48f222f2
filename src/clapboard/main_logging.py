"""Logging configuration for the clapboard CLI."""
import logging

# One-shot commands print bare messages; the capture daemon's output is
# usually read from a journal, so it carries time and origin.
COMMAND_FORMAT = "%(levelname)s: %(message)s"
DAEMON_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(verbose: bool, timestamps: bool = False) -> None:
    """Configure the root logger on stderr.

    Args:
        verbose: If True, set DEBUG level; otherwise WARNING level, which
            still shows skipped formats and config problems.
        timestamps: Use the daemon format, for capture mode.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format=DAEMON_FORMAT if timestamps else COMMAND_FORMAT,
        handlers=[logging.StreamHandler()],
    )
