"""Invariant audit for an item store.

Walks the whole table and reports every broken structural rule:

- I2 parent link: an item's parent must exist and list the item exactly once
- I2 child link: every listed subitem must exist and point back at its parent
- I3 acyclic: no item may be its own ancestor
- I4 single-line title: titles hold no line break

USAGE:
    status = check_consistency(engine.store)
    if status != OutlineStatus.NORMAL:
        violations = check_invariants(engine.store)

    verify(engine.store)  # raises ConsistencyError instead
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from .exceptions import ConsistencyError
from .facts.encoding import has_line_break
from .logging_config import get_logger

if TYPE_CHECKING:
    from .core.store import ItemStore

logger = get_logger("consistency")


class OutlineStatus(Enum):
    """Result of a full-store audit."""

    NORMAL = "normal"
    INCONSISTENT = "inconsistent"


@dataclass(frozen=True)
class Violation:
    """One broken invariant."""

    invariant: str  # "parent_link" | "child_link" | "duplicate_subitem" | "cycle" | "title"
    item_id: str
    issue: str

    def to_dict(self) -> dict:
        return {"invariant": self.invariant, "item_id": self.item_id, "issue": self.issue}


def check_invariants(store: "ItemStore") -> list[Violation]:
    """Return every invariant violation in store, in table order."""
    violations: list[Violation] = []
    items = store.snapshot()

    for item_id, item in items.items():
        # Parent side of I2
        if item.parent_id is not None:
            parent = items.get(item.parent_id)
            if parent is None:
                violations.append(Violation(
                    "parent_link", item_id, f"parent {item.parent_id!r} does not exist"
                ))
            else:
                count = parent.subitems.count(item_id)
                if count != 1:
                    violations.append(Violation(
                        "parent_link",
                        item_id,
                        f"listed {count} times in parent {item.parent_id!r}",
                    ))

        # Child side of I2
        seen: set[str] = set()
        for sub_id in item.subitems:
            if sub_id in seen:
                violations.append(Violation(
                    "duplicate_subitem", item_id, f"subitem {sub_id!r} listed more than once"
                ))
                continue
            seen.add(sub_id)
            child = items.get(sub_id)
            if child is None:
                violations.append(Violation(
                    "child_link", item_id, f"subitem {sub_id!r} does not exist"
                ))
            elif child.parent_id != item_id:
                violations.append(Violation(
                    "child_link",
                    item_id,
                    f"subitem {sub_id!r} has parent {child.parent_id!r}",
                ))

        # I3
        ancestor_id = item.parent_id
        visited = {item_id}
        while ancestor_id is not None and ancestor_id in items:
            if ancestor_id in visited:
                violations.append(Violation(
                    "cycle", item_id, f"ancestor chain loops back at {ancestor_id!r}"
                ))
                break
            visited.add(ancestor_id)
            ancestor_id = items[ancestor_id].parent_id

        # I4
        if has_line_break(item.title):
            violations.append(Violation("title", item_id, "title contains a line break"))

    return violations


def check_consistency(store: "ItemStore") -> OutlineStatus:
    """Audit store and return its status, logging each violation."""
    violations = check_invariants(store)
    if not violations:
        return OutlineStatus.NORMAL

    for violation in violations:
        logger.warning("invariant_violation", store=store.name, **violation.to_dict())
    return OutlineStatus.INCONSISTENT


def verify(store: "ItemStore") -> None:
    """Raise ConsistencyError if store breaks any invariant."""
    violations = check_invariants(store)
    if violations:
        raise ConsistencyError(
            f"Found {len(violations)} invariant violations in {store.name!r}",
            details={"violations": [v.to_dict() for v in violations]},
        )
