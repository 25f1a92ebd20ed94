"""Item record for the outline tree."""

from __future__ import annotations

from dataclasses import dataclass, field, replace

ItemId = str


@dataclass(frozen=True)
class Item:
    """One node of an outline.

    Records are immutable. Every change goes through ItemStore.update,
    which swaps the whole record for a new one.
    """

    id: ItemId
    parent_id: ItemId | None = None  # None only for an outline (root)
    subitems: tuple[ItemId, ...] = field(default_factory=tuple)
    title: str = ""
    note: str = ""

    @property
    def is_outline(self) -> bool:
        return self.parent_id is None

    def with_subitem(self, item_id: ItemId, position: int) -> Item:
        """Return a copy with item_id spliced into subitems at position."""
        subitems = list(self.subitems)
        subitems.insert(position, item_id)
        return replace(self, subitems=tuple(subitems))

    def without_subitem(self, item_id: ItemId) -> Item:
        """Return a copy with every occurrence of item_id removed from subitems."""
        return replace(
            self,
            subitems=tuple(sub_id for sub_id in self.subitems if sub_id != item_id),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "parent_id": self.parent_id,
            "subitems": list(self.subitems),
            "title": self.title,
            "note": self.note,
        }
