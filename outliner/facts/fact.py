"""Fact dataclasses for Outliner."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Union

from .encoding import check_title, encode_position, encode_text


class FactKind(Enum):
    """The seven things that can happen to an outline."""

    OUTLINE_CREATED = "outline_created"
    ITEM_CREATED = "item_created"
    TITLE_CHANGED = "title_changed"
    NOTE_CHANGED = "note_changed"
    OUTLINE_DELETED = "outline_deleted"
    ITEM_DELETED = "item_deleted"
    ITEM_MOVED = "item_moved"


@dataclass(frozen=True)
class OutlineCreated:
    """Fact line: Outline "<id>" was created."""
    kind: ClassVar[FactKind] = FactKind.OUTLINE_CREATED
    item_id: str

    def to_line(self) -> str:
        return f"Outline {encode_text(self.item_id)} was created"


@dataclass(frozen=True)
class ItemCreated:
    """Fact line: Item "<id>" was created inside item "<parent>" at position "<pos>"."""
    kind: ClassVar[FactKind] = FactKind.ITEM_CREATED
    item_id: str
    parent_id: str
    position: int

    def to_line(self) -> str:
        return (
            f"Item {encode_text(self.item_id)} was created inside item "
            f"{encode_text(self.parent_id)} at position "
            f"{encode_text(encode_position(self.position))}"
        )


@dataclass(frozen=True)
class TitleChanged:
    """Fact line: Item "<id>"'s title was changed to "<title>"."""
    kind: ClassVar[FactKind] = FactKind.TITLE_CHANGED
    item_id: str
    title: str

    def to_line(self) -> str:
        check_title(self.title)
        return f"Item {encode_text(self.item_id)}'s title was changed to {encode_text(self.title)}"


@dataclass(frozen=True)
class NoteChanged:
    """Fact line: Item "<id>"'s note was changed to "<note>"."""
    kind: ClassVar[FactKind] = FactKind.NOTE_CHANGED
    item_id: str
    note: str

    def to_line(self) -> str:
        return f"Item {encode_text(self.item_id)}'s note was changed to {encode_text(self.note)}"


@dataclass(frozen=True)
class OutlineDeleted:
    """Fact line: Outline "<id>" was deleted."""
    kind: ClassVar[FactKind] = FactKind.OUTLINE_DELETED
    item_id: str

    def to_line(self) -> str:
        return f"Outline {encode_text(self.item_id)} was deleted"


@dataclass(frozen=True)
class ItemDeleted:
    """Fact line: Item "<id>" was deleted."""
    kind: ClassVar[FactKind] = FactKind.ITEM_DELETED
    item_id: str

    def to_line(self) -> str:
        return f"Item {encode_text(self.item_id)} was deleted"


@dataclass(frozen=True)
class ItemMoved:
    """Fact line: Item "<id>" was moved inside item "<parent>" at position "<pos>"."""
    kind: ClassVar[FactKind] = FactKind.ITEM_MOVED
    item_id: str
    parent_id: str
    position: int

    def to_line(self) -> str:
        return (
            f"Item {encode_text(self.item_id)} was moved inside item "
            f"{encode_text(self.parent_id)} at position "
            f"{encode_text(encode_position(self.position))}"
        )


Fact = Union[
    OutlineCreated,
    ItemCreated,
    TitleChanged,
    NoteChanged,
    OutlineDeleted,
    ItemDeleted,
    ItemMoved,
]

FACT_TYPES: dict[FactKind, type] = {
    fact_type.kind: fact_type
    for fact_type in (
        OutlineCreated,
        ItemCreated,
        TitleChanged,
        NoteChanged,
        OutlineDeleted,
        ItemDeleted,
        ItemMoved,
    )
}


def format_fact(fact: Fact) -> str:
    """Render a typed fact as its canonical fact line."""
    return fact.to_line()
