"""Fact line parser.

Turns one line of text into a typed fact in two steps:

1. match(): try the registered patterns in order; the first full match
   gives the fact kind plus the raw captured fields (all strings)
2. parse(): decode those fields into the typed dataclass for the kind
   (quoted ids and payloads via decode_text, positions via decode_position)

FACT LINES:
- Outline "<id>" was created
- Item "<id>" was created inside item "<parent>" at position "<pos>"
- Item "<id>"'s title was changed to "<title>"
- Item "<id>"'s note was changed to "<note>"
- Outline "<id>" was deleted
- Item "<id>" was deleted
- Item "<id>" was moved inside item "<parent>" at position "<pos>"

Quoted tokens use JSON string syntax, so ids and payloads may contain
escaped quotes.
"""

import re
from typing import Callable, Iterable, Iterator, NamedTuple

from ..exceptions import NoMatchingPattern, UnknownFactKind
from .encoding import decode_position, decode_text, decode_title
from .fact import (
    Fact,
    FactKind,
    ItemCreated,
    ItemDeleted,
    ItemMoved,
    NoteChanged,
    OutlineCreated,
    OutlineDeleted,
    TitleChanged,
)

# One JSON string literal: a quote, then escapes or non-quote characters, then a quote
QUOTED = r'"(?:[^"\\]|\\.)*"'


def _q(name: str) -> str:
    return f"(?P<{name}>{QUOTED})"


DEFAULT_PATTERNS: list[tuple[FactKind, str]] = [
    (FactKind.OUTLINE_CREATED, rf"Outline {_q('item_id')} was created"),
    (
        FactKind.ITEM_CREATED,
        rf"Item {_q('item_id')} was created inside item {_q('parent_id')} at position {_q('position')}",
    ),
    (FactKind.TITLE_CHANGED, rf"Item {_q('item_id')}'s title was changed to {_q('title')}"),
    (FactKind.NOTE_CHANGED, rf"Item {_q('item_id')}'s note was changed to {_q('note')}"),
    (FactKind.OUTLINE_DELETED, rf"Outline {_q('item_id')} was deleted"),
    (FactKind.ITEM_DELETED, rf"Item {_q('item_id')} was deleted"),
    (
        FactKind.ITEM_MOVED,
        rf"Item {_q('item_id')} was moved inside item {_q('parent_id')} at position {_q('position')}",
    ),
]


class RawFact(NamedTuple):
    """A classified but undecoded fact line."""

    kind: FactKind
    fields: dict[str, str]  # Field name -> raw captured token (still quoted)
    line: str


def _position(token: str) -> int:
    return decode_position(decode_text(token))


_DECODERS: dict[FactKind, Callable[[dict[str, str]], Fact]] = {
    FactKind.OUTLINE_CREATED: lambda f: OutlineCreated(item_id=decode_text(f["item_id"])),
    FactKind.ITEM_CREATED: lambda f: ItemCreated(
        item_id=decode_text(f["item_id"]),
        parent_id=decode_text(f["parent_id"]),
        position=_position(f["position"]),
    ),
    FactKind.TITLE_CHANGED: lambda f: TitleChanged(
        item_id=decode_text(f["item_id"]),
        title=decode_title(f["title"]),
    ),
    FactKind.NOTE_CHANGED: lambda f: NoteChanged(
        item_id=decode_text(f["item_id"]),
        note=decode_text(f["note"]),
    ),
    FactKind.OUTLINE_DELETED: lambda f: OutlineDeleted(item_id=decode_text(f["item_id"])),
    FactKind.ITEM_DELETED: lambda f: ItemDeleted(item_id=decode_text(f["item_id"])),
    FactKind.ITEM_MOVED: lambda f: ItemMoved(
        item_id=decode_text(f["item_id"]),
        parent_id=decode_text(f["parent_id"]),
        position=_position(f["position"]),
    ),
}


class FactParser:
    """Ordered table of (kind, pattern) registrations.

    Patterns are tried in registration order and must match the whole line.
    """

    def __init__(self, patterns: Iterable[tuple[FactKind, str]] | None = None):
        self._patterns: list[tuple[FactKind, re.Pattern]] = []
        for kind, pattern in DEFAULT_PATTERNS if patterns is None else patterns:
            self.register(kind, pattern)

    def register(self, kind: FactKind, pattern: str | re.Pattern) -> None:
        """Append a pattern for kind. Named groups become the fact's fields."""
        if kind not in _DECODERS:
            raise UnknownFactKind(f"No decoder for fact kind: {kind!r}")
        compiled = re.compile(pattern) if isinstance(pattern, str) else pattern
        self._patterns.append((kind, compiled))

    @property
    def patterns(self) -> list[tuple[FactKind, re.Pattern]]:
        return list(self._patterns)

    def match(self, line: str) -> RawFact:
        """Classify a fact line and capture its raw fields.

        Raises:
            NoMatchingPattern: If no registered pattern matches the whole line
        """
        for kind, pattern in self._patterns:
            m = pattern.fullmatch(line)
            if m:
                return RawFact(kind, m.groupdict(), line)
        raise NoMatchingPattern(line)

    def decode(self, raw: RawFact) -> Fact:
        """Decode raw captured fields into the typed fact for raw.kind.

        Raises:
            MalformedEncoding: If a quoted token is invalid, or a title spans lines
            InvalidPosition: If a position token is not canonical
        """
        return _DECODERS[raw.kind](raw.fields)

    def parse(self, line: str) -> Fact:
        return self.decode(self.match(line))

    def parse_many(self, lines: Iterable[str]) -> Iterator[Fact]:
        """Parse every non-blank line, stopping at the first error."""
        for line in lines:
            line = line.rstrip("\r\n")
            if not line.strip():
                continue
            yield self.parse(line)


def parse_fact(line: str) -> Fact:
    """Parse one fact line with the default pattern table."""
    return FactParser().parse(line)
