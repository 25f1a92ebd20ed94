"""Item store: the authoritative table of live items.

The store is the only stateful component. Handlers read current state
from it, mutate it, and return; nothing else keeps item references
across calls.

ATOMIC BATCHES:
- Every create/update/delete inside ``with store.atomic():`` is journaled
- On normal exit the journal is discarded
- On exception every touched record is restored, then the exception propagates
- Nested blocks join the outermost one

LINKING:
- create() does not splice the new id into its parent's subitems
- Linking is the caller's job, so creation and linking stay separable
"""

from __future__ import annotations

import itertools
from typing import Callable, Iterator

from ..exceptions import ItemAlreadyExists, ItemNotFound, PreconditionViolation
from .item import Item, ItemId

Patch = Callable[[Item], Item]

# Journal sentinel for "id did not exist before the batch"
_ABSENT = None


class ItemStore:
    """Mapping of item ids to immutable Item records.

    Attributes:
        name: Optional label used in log output
    """

    def __init__(self, name: str = "outline"):
        self.name = name
        self._items: dict[ItemId, Item] = {}
        self._created_seq: dict[ItemId, int] = {}
        self._seq = itertools.count()
        self._journal: dict[ItemId, tuple[Item, int] | None] | None = None
        self._depth = 0

    # ==========================================================================
    # CORE OPERATIONS
    # ==========================================================================

    def exists(self, item_id: ItemId) -> bool:
        """Return True iff a live record exists for item_id."""
        return item_id in self._items

    def create(self, item_id: ItemId, parent_id: ItemId | None = None) -> Item:
        """Insert a new empty record.

        Args:
            item_id: Id for the new item
            parent_id: Parent id, or None for an outline

        Returns:
            The created Item

        Raises:
            ItemAlreadyExists: If item_id is already live
            ItemNotFound: If parent_id is given and does not exist
        """
        if self.exists(item_id):
            raise ItemAlreadyExists(item_id)
        if parent_id is not None and not self.exists(parent_id):
            raise ItemNotFound(parent_id, f"Parent item not found: {parent_id!r}")

        self._remember(item_id)
        item = Item(id=item_id, parent_id=parent_id)
        self._items[item_id] = item
        self._created_seq[item_id] = next(self._seq)
        return item

    def get(self, item_id: ItemId) -> Item:
        """Return the current record for item_id.

        Raises:
            ItemNotFound: If item_id does not exist
        """
        try:
            return self._items[item_id]
        except KeyError:
            raise ItemNotFound(item_id) from None

    def update(self, item_id: ItemId, patch: Patch) -> Item:
        """Replace a record with patch(previous).

        Args:
            item_id: Id of the item to update
            patch: Pure function from the previous record to the new one

        Returns:
            The new record

        Raises:
            ItemNotFound: If item_id does not exist
            PreconditionViolation: If the patch changes the item's id
        """
        previous = self.get(item_id)
        updated = patch(previous)
        if updated.id != item_id:
            raise PreconditionViolation(
                f"Item ids are immutable: {item_id!r} cannot become {updated.id!r}",
                details={"item_id": item_id, "new_id": updated.id},
            )

        self._remember(item_id)
        self._items[item_id] = updated
        return updated

    def delete(self, item_id: ItemId) -> None:
        """Remove a record entirely.

        Raises:
            ItemNotFound: If item_id does not exist
        """
        if not self.exists(item_id):
            raise ItemNotFound(item_id)

        self._remember(item_id)
        del self._items[item_id]
        del self._created_seq[item_id]

    # ==========================================================================
    # QUERIES
    # ==========================================================================

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._items

    def ids(self) -> list[ItemId]:
        return list(self._items)

    def roots(self) -> list[Item]:
        """Return all outlines in creation order."""
        outlines = [item for item in self._items.values() if item.parent_id is None]
        outlines.sort(key=lambda item: self._created_seq[item.id])
        return outlines

    def children(self, item_id: ItemId) -> list[Item]:
        """Return the records of item_id's subitems, in order."""
        return [self.get(sub_id) for sub_id in self.get(item_id).subitems]

    def ancestors(self, item_id: ItemId) -> list[ItemId]:
        """Return parent ids from the immediate parent up to the outline.

        Stops at the first missing parent, and at the first repeated id so
        a corrupted (cyclic) table cannot loop forever.
        """
        chain: list[ItemId] = []
        seen = {item_id}
        parent_id = self.get(item_id).parent_id
        while parent_id is not None and parent_id not in seen and self.exists(parent_id):
            chain.append(parent_id)
            seen.add(parent_id)
            parent_id = self._items[parent_id].parent_id
        return chain

    def descendants(self, item_id: ItemId) -> Iterator[ItemId]:
        """Yield every id below item_id, depth-first in pre-order."""
        stack = list(reversed(self.get(item_id).subitems))
        seen = {item_id}
        while stack:
            sub_id = stack.pop()
            if sub_id in seen or not self.exists(sub_id):
                continue
            seen.add(sub_id)
            yield sub_id
            stack.extend(reversed(self._items[sub_id].subitems))

    def snapshot(self) -> dict[ItemId, Item]:
        """Return a shallow copy of the table (records are immutable)."""
        return dict(self._items)

    # ==========================================================================
    # ATOMIC BATCHES
    # ==========================================================================

    class AtomicBatch:
        """Context manager that restores touched records on exception."""

        def __init__(self, store: "ItemStore"):
            self._store = store

        def __enter__(self) -> "ItemStore":
            store = self._store
            if store._depth == 0:
                store._journal = {}
            store._depth += 1
            return store

        def __exit__(self, exc_type, exc_val, exc_tb):
            store = self._store
            store._depth -= 1
            if store._depth == 0:
                journal, store._journal = store._journal, None
                if exc_type is not None:
                    store._restore(journal)
            return False  # Propagate exceptions

    def atomic(self) -> "ItemStore.AtomicBatch":
        """Group mutations so they either all land or none do.

        Usage:
            with store.atomic():
                store.create("a", "r")
                store.update("r", lambda r: r.with_subitem("a", 0))
        """
        return self.AtomicBatch(self)

    def _remember(self, item_id: ItemId) -> None:
        """Journal the pre-batch state of item_id on first touch."""
        if self._journal is None or item_id in self._journal:
            return
        if item_id in self._items:
            self._journal[item_id] = (self._items[item_id], self._created_seq[item_id])
        else:
            self._journal[item_id] = _ABSENT

    def _restore(self, journal: dict[ItemId, tuple[Item, int] | None]) -> None:
        for item_id, saved in journal.items():
            if saved is _ABSENT:
                self._items.pop(item_id, None)
                self._created_seq.pop(item_id, None)
            else:
                self._items[item_id], self._created_seq[item_id] = saved
