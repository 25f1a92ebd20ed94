"""Codecs for the payload tokens inside fact lines.

TEXT:
- Titles, notes and ids travel as JSON string literals ("Hello \\"world\\"")
- decode_text() accepts exactly one literal that decodes to a str
- decode_title() also rejects line breaks, since titles are single-line

POSITIONS:
- Canonical non-negative decimal integers only: "0", "7", "42"
- Signs, leading zeros, whitespace, underscores and non-ASCII digits are rejected
- Rule: str(int(token)) == token, checked on an ASCII-digit token
"""

import json
import re

from ..exceptions import InvalidPosition, MalformedEncoding

LINE_BREAKS = ("\n", "\r")

_CANONICAL_POSITION = re.compile(r"0|[1-9][0-9]*")


def encode_text(text: str) -> str:
    """Encode text as a quoted string literal.

    Non-ASCII characters are kept as-is; only quotes, backslashes and
    control characters are escaped.
    """
    if not isinstance(text, str):
        raise MalformedEncoding(
            f"Only strings can be encoded, got {type(text).__name__}",
            details={"value": repr(text)},
        )
    return json.dumps(text, ensure_ascii=False)


def decode_text(token: str) -> str:
    """Decode a quoted string literal.

    Args:
        token: Quoted payload, e.g. '"Hello"'

    Returns:
        The decoded string

    Raises:
        MalformedEncoding: If token is not a single quoted string literal
    """
    if not token.startswith('"'):
        raise MalformedEncoding(
            f"Expected a quoted string, got {token!r}",
            details={"token": token},
        )
    try:
        value = json.loads(token)
    except json.JSONDecodeError as e:
        raise MalformedEncoding(
            f"Invalid quoted string {token!r}: {e.msg}",
            details={"token": token},
        ) from e
    if not isinstance(value, str):
        raise MalformedEncoding(
            f"Quoted payload did not decode to a string: {token!r}",
            details={"token": token},
        )
    return value


def has_line_break(text: str) -> bool:
    return any(brk in text for brk in LINE_BREAKS)


def check_title(title: str) -> str:
    """Return title unchanged, or raise MalformedEncoding if it spans lines."""
    if not isinstance(title, str):
        raise MalformedEncoding(
            f"Title must be a string, got {type(title).__name__}",
            details={"value": repr(title)},
        )
    if has_line_break(title):
        raise MalformedEncoding(
            "Title must not contain a line break",
            details={"title": title},
        )
    return title


def decode_title(token: str) -> str:
    return check_title(decode_text(token))


def decode_position(token: str) -> int:
    """Decode a canonical position token.

    Raises:
        InvalidPosition: If token is not a canonical non-negative integer
    """
    if not isinstance(token, str) or not _CANONICAL_POSITION.fullmatch(token):
        raise InvalidPosition(
            f"Position must be a canonical non-negative integer, got {token!r}",
            details={"token": token},
        )
    position = int(token)
    # Guard the round-trip rule explicitly
    if str(position) != token:
        raise InvalidPosition(
            f"Position {token!r} does not round-trip",
            details={"token": token},
        )
    return position


def encode_position(position: int) -> str:
    """Encode a position as its canonical token.

    Raises:
        InvalidPosition: If position is not a non-negative int
    """
    # bool is an int subclass but never a meaningful position
    if isinstance(position, bool) or not isinstance(position, int) or position < 0:
        raise InvalidPosition(
            f"Position must be a non-negative integer, got {position!r}",
            details={"position": repr(position)},
        )
    return str(position)
