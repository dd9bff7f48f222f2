#!/usr/bin/env python3
"""
Exception hierarchy for clapboard.

Faults are split by who has to deal with them:
- StorageError / InvalidFormatTag: local to one entry or format. Capture and
  eviction log them and keep going.
- ResolutionError: a recall that would restore the wrong thing. The recall
  aborts without touching the clipboard.
- ExternalToolError / BackendUnavailable: the chooser, the sink, or the
  clipboard backend cannot be used. Fatal for the invocation.
"""


class ClapboardError(Exception):
    """
    Base class for all clapboard errors.
    """

    pass


class ConfigError(ClapboardError):
    """
    Raised when a configuration value cannot be used.

    Never escapes load_config(); the offending key falls back to its default.
    """

    pass


class StorageError(ClapboardError):
    """
    Raised when the history store cannot be read or written.
    """

    pass


class InvalidFormatTag(StorageError):
    """
    Raised when a format tag cannot be turned into a safe storage key.
    """

    pass


class ResolutionError(ClapboardError):
    """
    Raised when a chosen label cannot be turned into restorable content.
    """

    pass


class SelectionNotFound(ResolutionError):
    """
    Raised when the chosen label is not part of the listing.
    """

    def __init__(self, label: str) -> None:
        super().__init__(f"No history entry or favorite matches {label!r}")
        self.label = label


class EntryNotFound(ResolutionError):
    """
    Raised when an entry (or one of its representations) is missing.
    """

    def __init__(self, entry_id: int, format_tag: str | None = None) -> None:
        if format_tag is None:
            message = f"History entry {entry_id} no longer exists"
        else:
            message = f"History entry {entry_id} has no {format_tag!r} data"
        super().__init__(message)
        self.entry_id = entry_id
        self.format_tag = format_tag


class ExternalToolError(ClapboardError):
    """
    Raised when an external executable is missing or fails.

    Attributes:
        executable: Name of the offending executable, so the user can fix
            their configuration.
    """

    def __init__(self, executable: str, reason: str) -> None:
        super().__init__(f"{executable}: {reason}")
        self.executable = executable
        self.reason = reason


class BackendUnavailable(ClapboardError):
    """
    Raised when no clipboard backend can be used in this session.
    """

    pass


class CaptureError(ClapboardError):
    """
    Raised when one format of a clipboard event cannot be fetched.

    Capture logs it and carries on with the other formats.
    """

    pass


class ListenerLost(ClapboardError):
    """
    Raised when a clipboard listener loses its backend and must restart.
    """

    pass
