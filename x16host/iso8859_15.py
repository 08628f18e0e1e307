"""Conversion between Unicode code points and ISO 8859-15 (Latin-9)."""

from __future__ import annotations

import sys
from typing import TextIO

# Latin-9 positions whose meaning differs from Latin-1.
_UNICODE_TO_LATIN9 = {
    0x20AC: 0xA4,  # euro sign
    0x160: 0xA6,  # S with caron
    0x161: 0xA8,  # s with caron
    0x17D: 0xB4,  # Z with caron
    0x17E: 0xB8,  # z with caron
    0x152: 0xBC,  # OE ligature
    0x153: 0xBD,  # oe ligature
    0x178: 0xBE,  # Y with diaeresis
}
_LATIN9_TO_UNICODE = {byte: cp for cp, byte in _UNICODE_TO_LATIN9.items()}

# Latin-1 characters that Latin-9 replaced.
_LATIN1_ONLY = frozenset(_LATIN9_TO_UNICODE)

_REPLACEMENT = ord("?")


def iso8859_15_from_unicode(c: int) -> int:
    """Map a Unicode code point to a Latin-9 byte, '?' where there is none.

    A line feed becomes a carriage return.
    """
    if c == ord("\n"):
        return ord("\r")
    if c in _UNICODE_TO_LATIN9:
        return _UNICODE_TO_LATIN9[c]
    if c in _LATIN1_ONLY or c >= 256:
        return _REPLACEMENT
    return c


def unicode_from_iso8859_15(c: int) -> int:
    """Map a Latin-9 byte to its Unicode code point."""
    return _LATIN9_TO_UNICODE.get(c, c)


def print_iso8859_15_char(c: int | str, file: TextIO | None = None) -> None:
    """Write one Latin-9 character to ``file`` (standard output by default)."""
    if isinstance(c, str):
        c = ord(c)
    code_point = unicode_from_iso8859_15(c & 0xFF)
    if code_point == 0:
        return
    print(chr(code_point), end="", file=file if file is not None else sys.stdout)