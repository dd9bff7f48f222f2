#!/usr/bin/env python3
"""
Unit tests for event digests and HashState.
"""
from clapboard.hashing import HashState, compute_hash


def test_compute_hash_produces_sha256_hex() -> None:
    """Test compute_hash returns 64-character hex SHA-256 digest."""
    result = compute_hash({"text/plain": b"test content"})
    assert len(result) == 64
    assert all(c in "0123456789abcdef" for c in result)


def test_compute_hash_ignores_format_order() -> None:
    """Test the digest does not depend on the order formats were offered in."""
    a = compute_hash({"text/plain": b"x", "text/html": b"<p>x</p>"})
    b = compute_hash({"text/html": b"<p>x</p>", "text/plain": b"x"})
    assert a == b


def test_compute_hash_depends_on_format_and_content() -> None:
    base = compute_hash({"text/plain": b"x"})
    assert compute_hash({"text/plain": b"y"}) != base
    assert compute_hash({"text/html": b"x"}) != base


def test_compute_hash_length_prefixes_prevent_ambiguity() -> None:
    """Test that moving bytes between tag and data changes the digest."""
    assert compute_hash({"ab": b"c"}) != compute_hash({"a": b"bc"})


def test_hash_state_tracks_last_recorded() -> None:
    state = HashState()
    assert state.should_record("abc") is True
    state.record("abc")
    assert state.should_record("abc") is False
    assert state.should_record("def") is True
