#!/usr/bin/env python3
"""
Content digests for capture deduplication.

A clipboard owner that re-announces its selection, or a restore that puts
the newest entry back on the clipboard, would otherwise record the same
content twice in a row. Capture compares a digest of the whole event (all
formats) with the digest of the last recorded one and skips repeats.

This module provides:
- compute_hash(): SHA-256 hex digest over every (format, bytes) pair
- HashState: tracks the digest of the last recorded event
"""
import hashlib
from collections.abc import Mapping

from clapboard.hash_state import HashState

__all__ = ["compute_hash", "HashState"]


def compute_hash(representations: Mapping[str, bytes]) -> str:
    """
    Compute a SHA-256 digest of an event's representations.

    Formats are hashed in sorted order with length prefixes, so the digest
    does not depend on the order the source offered them in, and two
    different splits of the same bytes never collide.

    Args:
        representations: Format tag -> content bytes.

    Returns:
        Hexadecimal string representation of the SHA-256 digest.
    """
    digest = hashlib.sha256()
    for format_tag in sorted(representations):
        tag = format_tag.encode("utf-8")
        data = representations[format_tag]
        digest.update(len(tag).to_bytes(8, "big") + tag)
        digest.update(len(data).to_bytes(8, "big") + data)
    return digest.hexdigest()
