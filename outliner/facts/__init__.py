"""Outliner facts - typed facts, their text codecs, and the line parser.

A fact is an immutable statement about something that happened to an
outline. Facts are the unit of the replay log; state is whatever the
reducer derives from them.
"""

from .encoding import (
    check_title,
    decode_position,
    decode_text,
    decode_title,
    encode_position,
    encode_text,
)
from .fact import (
    FACT_TYPES,
    Fact,
    FactKind,
    ItemCreated,
    ItemDeleted,
    ItemMoved,
    NoteChanged,
    OutlineCreated,
    OutlineDeleted,
    TitleChanged,
    format_fact,
)
from .parser import DEFAULT_PATTERNS, FactParser, RawFact, parse_fact

__all__ = [
    # Facts
    "Fact",
    "FactKind",
    "FACT_TYPES",
    "OutlineCreated",
    "ItemCreated",
    "TitleChanged",
    "NoteChanged",
    "OutlineDeleted",
    "ItemDeleted",
    "ItemMoved",
    "format_fact",
    # Parser
    "FactParser",
    "RawFact",
    "DEFAULT_PATTERNS",
    "parse_fact",
    # Codecs
    "encode_text",
    "decode_text",
    "decode_title",
    "check_title",
    "encode_position",
    "decode_position",
]
