#!/usr/bin/env python3
"""
Format tag <-> storage key mapping.

Every representation of an entry is stored as one file whose name is
derived from its format tag. MIME types contain a "/", which cannot appear
in a file name, so it is stored as "." instead:

    text/plain;charset=utf-8  <->  text.plain;charset=utf-8
    image/png                 <->  image.png
    UTF8_STRING               <->  UTF8_STRING

Characters that would make the mapping ambiguous or the name unsafe are
percent-escaped first: a literal "." becomes "%2E" (so "text.plain" and
"text/plain" get different keys), "%" becomes "%25", and backslash and NUL
are escaped too. A leading "/" is escaped as "%2F" so no key is hidden.
unsanitize() is therefore an exact inverse of sanitize().
"""

import re

from clapboard.errors import InvalidFormatTag

__all__ = ["sanitize", "unsanitize"]

_ESCAPES = {"%": "%25", ".": "%2E", "\\": "%5C", "\x00": "%00"}
_ESCAPED = re.compile(r"%([0-9A-F]{2})")


def sanitize(tag: str) -> str:
    """
    Turn a format tag into a file name confined to its entry directory.

    Args:
        tag: Format tag as offered by the clipboard (MIME type or X11 target).

    Returns:
        Storage key with "/" replaced by "." and every other
        path-hostile or ambiguous character escaped.

    Raises:
        InvalidFormatTag: If the tag is empty or blank.
    """
    if not tag.strip():
        raise InvalidFormatTag(f"Format tag {tag!r} has no usable storage key")
    key = "".join(_ESCAPES.get(char, char) for char in tag).replace("/", ".")
    if key.startswith("."):
        key = "%2F" + key[1:]
    return key


def unsanitize(key: str) -> str:
    """
    Reverse sanitize() for a stored file name.

    Args:
        key: Storage key as found on disk.

    Returns:
        The format tag the key was stored under.
    """
    return _ESCAPED.sub(lambda match: chr(int(match.group(1), 16)), key.replace(".", "/"))
