#!/usr/bin/env python3
"""
Last-recorded digest tracking.

One HashState is shared by every listener of a capture session, so a text
selected (PRIMARY) and then copied (CLIPBOARD) is only recorded once.
"""
from dataclasses import dataclass


@dataclass
class HashState:
    """
    Track the digest of the most recently recorded event.

    Attributes:
        last_recorded_hash: SHA-256 hex digest of the last recorded event,
            or None before anything was recorded.
    """

    last_recorded_hash: str | None = None

    def should_record(self, current_hash: str) -> bool:
        """
        Check whether an event with this digest is new.

        Args:
            current_hash: Digest of the incoming event.

        Returns:
            False if it repeats the last recorded event, True otherwise.
        """
        return current_hash != self.last_recorded_hash

    def record(self, hash_value: str) -> None:
        """
        Remember the digest of an event that was just written.

        Args:
            hash_value: Digest of the recorded event.
        """
        self.last_recorded_hash = hash_value
