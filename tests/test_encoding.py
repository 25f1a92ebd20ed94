"""Tests for the text and position codecs."""

import pytest

from outliner.exceptions import InvalidPosition, MalformedEncoding
from outliner.facts.encoding import (
    check_title,
    decode_position,
    decode_text,
    decode_title,
    encode_position,
    encode_text,
    has_line_break,
)


class TestTextCodec:
    """Tests for quoted-string encoding."""

    @pytest.mark.parametrize(
        "text",
        [
            "",
            "Hello",
            '"Hello"',
            "back\\slash",
            "multi\nline\nnote",
            "tab\there",
            "ünïcødé ✓",
        ],
    )
    def test_round_trip(self, text):
        """Encoding then decoding returns the original string."""
        assert decode_text(encode_text(text)) == text

    def test_encode_escapes_quotes(self):
        assert encode_text('say "hi"') == '"say \\"hi\\""'

    def test_encode_keeps_non_ascii(self):
        assert encode_text("café") == '"café"'

    def test_encode_rejects_non_string(self):
        with pytest.raises(MalformedEncoding):
            encode_text(42)

    def test_decode_escaped_quotes(self):
        assert decode_text('"\\"Hello\\""') == '"Hello"'

    @pytest.mark.parametrize(
        "token",
        [
            "Hello",  # unquoted
            '"unterminated',
            '"bad \\q escape"',
            '"a" "b"',  # two literals
            "42",
            "null",
            '["list"]',
            '"raw\nnewline"',  # control characters must be escaped
        ],
    )
    def test_decode_rejects_malformed(self, token):
        with pytest.raises(MalformedEncoding):
            decode_text(token)


class TestTitle:
    """Tests for single-line title checks."""

    def test_decode_title(self):
        assert decode_title('"Groceries"') == "Groceries"

    @pytest.mark.parametrize("token", ['"two\\nlines"', '"carriage\\rreturn"'])
    def test_decode_title_rejects_line_breaks(self, token):
        with pytest.raises(MalformedEncoding, match="line break"):
            decode_title(token)

    def test_check_title_rejects_non_string(self):
        with pytest.raises(MalformedEncoding):
            check_title(None)

    def test_has_line_break(self):
        assert has_line_break("a\nb")
        assert has_line_break("a\rb")
        assert not has_line_break("a b")


class TestPositionCodec:
    """Tests for canonical position tokens."""

    @pytest.mark.parametrize("token", ["0", "1", "9", "10", "12345678901234567890"])
    def test_round_trip(self, token):
        """Decoding then re-encoding returns the original token."""
        assert encode_position(decode_position(token)) == token

    @pytest.mark.parametrize(
        "token",
        ["", "-1", "+1", "01", "00", " 1", "1 ", "1_000", "1.0", "one", "0x1", "١"],
    )
    def test_decode_rejects_non_canonical(self, token):
        with pytest.raises(InvalidPosition):
            decode_position(token)

    @pytest.mark.parametrize("value", [-1, 1.0, "1", True, None])
    def test_encode_rejects_invalid(self, value):
        with pytest.raises(InvalidPosition):
            encode_position(value)
