import io

import pytest

from x16host.iso8859_15 import (
    iso8859_15_from_unicode,
    print_iso8859_15_char,
    unicode_from_iso8859_15,
)

LATIN9_PAIRS = [
    (0x20AC, 0xA4),
    (0x160, 0xA6),
    (0x161, 0xA8),
    (0x17D, 0xB4),
    (0x17E, 0xB8),
    (0x152, 0xBC),
    (0x153, 0xBD),
    (0x178, 0xBE),
]


@pytest.mark.parametrize("code_point, byte", LATIN9_PAIRS)
def test_latin9_specials_both_ways(code_point, byte):
    assert iso8859_15_from_unicode(code_point) == byte
    assert unicode_from_iso8859_15(byte) == code_point


@pytest.mark.parametrize("code_point", [0xA4, 0xA6, 0xA8, 0xB4, 0xB8, 0xBC, 0xBD, 0xBE])
def test_latin1_only_characters_become_question_mark(code_point):
    assert iso8859_15_from_unicode(code_point) == ord("?")


@pytest.mark.parametrize("code_point", [0x100, 0x4E2D, 0x1F600])
def test_characters_outside_latin9_become_question_mark(code_point):
    assert iso8859_15_from_unicode(code_point) == ord("?")


def test_line_feed_becomes_carriage_return():
    assert iso8859_15_from_unicode(ord("\n")) == ord("\r")


def test_ascii_passes_through():
    assert iso8859_15_from_unicode(ord("A")) == ord("A")
    assert unicode_from_iso8859_15(ord("z")) == ord("z")


def test_round_trip_every_byte_except_line_feed():
    for byte in range(256):
        if byte == ord("\n"):
            continue
        assert iso8859_15_from_unicode(unicode_from_iso8859_15(byte)) == byte


def test_agrees_with_standard_codec():
    for byte in range(256):
        expected = bytes([byte]).decode("iso8859_15")
        assert chr(unicode_from_iso8859_15(byte)) == expected


def test_print_euro_sign():
    out = io.StringIO()
    print_iso8859_15_char(0xA4, out)
    assert out.getvalue() == "\u20ac"


def test_print_accepts_characters():
    out = io.StringIO()
    print_iso8859_15_char("A", out)
    print_iso8859_15_char("b", out)
    assert out.getvalue() == "Ab"


def test_print_defaults_to_stdout(capsys):
    print_iso8859_15_char(ord("Q"))
    assert capsys.readouterr().out == "Q"