"""Reducer engine: applies facts to an item store.

Each fact kind has exactly one handler. A handler:

1. Checks every precondition against the current store (no mutation yet)
2. Mutates the store
3. Checks its postconditions

The engine runs steps 2 and 3 inside ``store.atomic()``, so a failed
postcondition (or a failed invariant audit when verify_invariants is on)
rolls the fact back. A fact either lands completely or not at all.

POLICIES (from Settings):
- position_policy: "strict" rejects a position past the end of the
  subitems with InvalidPosition; "clamp" appends instead
- orphan_policy: what happens to the subitems of a deleted item
  - "cascade": the whole subtree is deleted
  - "reparent": subitems take the deleted item's place in its parent
    (for an outline they become outlines)
  - "reject": deleting an item that still has subitems is a
    PreconditionViolation

USAGE:
    engine = ReducerEngine()
    engine.apply('Outline "r" was created')
    engine.apply('Item "a" was created inside item "r" at position "0"')
    engine.get("r").subitems  # ("a",)
"""

from __future__ import annotations

from dataclasses import replace
from typing import Callable, Iterable, Union

from .config import Settings
from .consistency import verify
from .core.item import Item, ItemId
from .core.store import ItemStore
from .exceptions import (
    DuplicateHandler,
    InvalidPosition,
    ItemAlreadyExists,
    ItemNotFound,
    MalformedEncoding,
    OutlinerError,
    PostconditionViolation,
    PreconditionViolation,
    UnknownFactKind,
)
from .facts.encoding import check_title
from .facts.fact import (
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
from .facts.parser import FactParser
from .logging_config import get_logger

logger = get_logger("reducer")

Handler = Callable[["ReducerEngine", Fact], None]


# ============================================================================
# CHECK HELPERS
# ============================================================================

def _require(condition: bool, message: str, **details) -> None:
    if not condition:
        raise PreconditionViolation(message, details=details or None)


def _ensure(condition: bool, message: str, **details) -> None:
    if not condition:
        raise PostconditionViolation(message, details=details or None)


def _check_ids(fact: Fact, *fields: str) -> None:
    for field in ("item_id",) + fields:
        value = getattr(fact, field)
        if not isinstance(value, str):
            raise MalformedEncoding(
                f"{field} must be a string, got {type(value).__name__}",
                details={"field": field, "value": repr(value)},
            )


def _require_item(store: ItemStore, item_id: ItemId, role: str = "Item") -> Item:
    if not store.exists(item_id):
        raise ItemNotFound(item_id, f"{role} not found: {item_id!r}")
    return store.get(item_id)


def _resolve_position(engine: "ReducerEngine", position: int, length: int) -> int:
    """Validate an insertion index against a subitems length of `length`.

    Raises:
        InvalidPosition: If position is negative or not an int, or past the
            end under the strict policy
    """
    if isinstance(position, bool) or not isinstance(position, int) or position < 0:
        raise InvalidPosition(
            f"Position must be a non-negative integer, got {position!r}",
            details={"position": repr(position)},
        )
    if position > length:
        if engine.settings.position_policy == "clamp":
            return length
        raise InvalidPosition(
            f"Position {position} is past the end of {length} subitems",
            details={"position": position, "length": length},
        )
    return position


def _check_orphans(engine: "ReducerEngine", item: Item) -> None:
    if item.subitems and engine.settings.orphan_policy == "reject":
        raise PreconditionViolation(
            f"Item {item.id!r} still has {len(item.subitems)} subitems",
            details={"item_id": item.id, "subitems": list(item.subitems)},
        )


def _release_subitems(engine: "ReducerEngine", item: Item) -> list[ItemId]:
    """Apply the orphan policy to item's subitems.

    Returns:
        Ids deleted along with item (cascade only)
    """
    store = engine.store
    if not item.subitems:
        return []

    if engine.settings.orphan_policy == "cascade":
        removed = list(store.descendants(item.id))
        for sub_id in removed:
            store.delete(sub_id)
        return removed

    # reparent
    new_parent_id = item.parent_id
    for sub_id in item.subitems:
        store.update(sub_id, lambda sub: replace(sub, parent_id=new_parent_id))
    if new_parent_id is not None:
        store.update(
            new_parent_id,
            lambda parent: _splice_in_place(parent, item.id, item.subitems),
        )
    return []


def _splice_in_place(parent: Item, item_id: ItemId, replacement: tuple[ItemId, ...]) -> Item:
    index = parent.subitems.index(item_id)
    return replace(
        parent,
        subitems=parent.subitems[:index] + replacement + parent.subitems[index + 1:],
    )


# ============================================================================
# HANDLERS
# ============================================================================

def outline_created(engine: "ReducerEngine", fact: OutlineCreated) -> None:
    _check_ids(fact)
    store = engine.store
    if store.exists(fact.item_id):
        raise ItemAlreadyExists(fact.item_id)

    store.create(fact.item_id)

    _ensure(store.exists(fact.item_id), "Outline was not created", item_id=fact.item_id)
    _ensure(store.get(fact.item_id).is_outline, "Outline has a parent", item_id=fact.item_id)


def item_created(engine: "ReducerEngine", fact: ItemCreated) -> None:
    _check_ids(fact, "parent_id")
    store = engine.store
    parent = _require_item(store, fact.parent_id, "Parent item")
    if store.exists(fact.item_id):
        raise ItemAlreadyExists(fact.item_id)
    position = _resolve_position(engine, fact.position, len(parent.subitems))

    store.create(fact.item_id, fact.parent_id)
    store.update(fact.parent_id, lambda p: p.with_subitem(fact.item_id, position))

    _ensure(store.exists(fact.item_id), "Item was not created", item_id=fact.item_id)
    subitems = store.get(fact.parent_id).subitems
    _ensure(
        subitems[position] == fact.item_id and subitems.count(fact.item_id) == 1,
        "Item is not linked into its parent",
        item_id=fact.item_id,
        parent_id=fact.parent_id,
    )


def title_changed(engine: "ReducerEngine", fact: TitleChanged) -> None:
    _check_ids(fact)
    store = engine.store
    _require_item(store, fact.item_id)
    title = check_title(fact.title)

    store.update(fact.item_id, lambda item: replace(item, title=title))

    _ensure(store.get(fact.item_id).title == title, "Title was not changed", item_id=fact.item_id)


def note_changed(engine: "ReducerEngine", fact: NoteChanged) -> None:
    _check_ids(fact)
    store = engine.store
    _require_item(store, fact.item_id)
    if not isinstance(fact.note, str):
        raise MalformedEncoding(
            f"Note must be a string, got {type(fact.note).__name__}",
            details={"item_id": fact.item_id},
        )

    store.update(fact.item_id, lambda item: replace(item, note=fact.note))

    _ensure(store.get(fact.item_id).note == fact.note, "Note was not changed", item_id=fact.item_id)


def outline_deleted(engine: "ReducerEngine", fact: OutlineDeleted) -> None:
    _check_ids(fact)
    store = engine.store
    item = _require_item(store, fact.item_id, "Outline")
    _require(
        item.is_outline,
        f"Item {fact.item_id!r} is not an outline (parent {item.parent_id!r})",
        item_id=fact.item_id,
        parent_id=item.parent_id,
    )
    _check_orphans(engine, item)

    removed = _release_subitems(engine, item)
    store.delete(fact.item_id)

    _ensure(not store.exists(fact.item_id), "Outline was not deleted", item_id=fact.item_id)
    _ensure(
        not any(store.exists(sub_id) for sub_id in removed),
        "Subtree was not deleted",
        item_id=fact.item_id,
    )


def item_deleted(engine: "ReducerEngine", fact: ItemDeleted) -> None:
    _check_ids(fact)
    store = engine.store
    item = _require_item(store, fact.item_id)
    _require(
        item.parent_id is not None,
        f"Item {fact.item_id!r} is an outline; use the outline delete fact",
        item_id=fact.item_id,
    )
    parent_id = item.parent_id
    _require_item(store, parent_id, "Parent item")
    _check_orphans(engine, item)

    removed = _release_subitems(engine, item)
    store.update(parent_id, lambda parent: parent.without_subitem(fact.item_id))
    store.delete(fact.item_id)

    _ensure(not store.exists(fact.item_id), "Item was not deleted", item_id=fact.item_id)
    _ensure(
        fact.item_id not in store.get(parent_id).subitems,
        "Item is still linked into its parent",
        item_id=fact.item_id,
        parent_id=parent_id,
    )
    _ensure(
        not any(store.exists(sub_id) for sub_id in removed),
        "Subtree was not deleted",
        item_id=fact.item_id,
    )


def item_moved(engine: "ReducerEngine", fact: ItemMoved) -> None:
    _check_ids(fact, "parent_id")
    store = engine.store
    item = _require_item(store, fact.item_id)
    new_parent = _require_item(store, fact.parent_id, "New parent item")
    old_parent_id = item.parent_id
    _require(
        old_parent_id is not None,
        f"Outline {fact.item_id!r} has no parent and cannot be moved",
        item_id=fact.item_id,
    )
    _require_item(store, old_parent_id, "Old parent item")
    _require(
        fact.parent_id != fact.item_id and fact.item_id not in store.ancestors(fact.parent_id),
        f"Moving {fact.item_id!r} inside {fact.parent_id!r} would create a cycle",
        item_id=fact.item_id,
        parent_id=fact.parent_id,
    )
    same_parent = old_parent_id == fact.parent_id
    remaining = len(new_parent.subitems) - (1 if same_parent else 0)
    position = _resolve_position(engine, fact.position, remaining)

    store.update(fact.item_id, lambda moved: replace(moved, parent_id=fact.parent_id))
    store.update(old_parent_id, lambda old: old.without_subitem(fact.item_id))
    store.update(fact.parent_id, lambda new: new.with_subitem(fact.item_id, position))

    if not same_parent:
        _ensure(
            fact.item_id not in store.get(old_parent_id).subitems,
            "Item is still linked into its old parent",
            item_id=fact.item_id,
            parent_id=old_parent_id,
        )
    subitems = store.get(fact.parent_id).subitems
    _ensure(
        subitems.count(fact.item_id) == 1 and subitems[position] == fact.item_id,
        "Item is not linked into its new parent",
        item_id=fact.item_id,
        parent_id=fact.parent_id,
    )
    _ensure(
        store.get(fact.item_id).parent_id == fact.parent_id,
        "Item parent was not rewritten",
        item_id=fact.item_id,
    )


DEFAULT_HANDLERS: dict[FactKind, Handler] = {
    FactKind.OUTLINE_CREATED: outline_created,
    FactKind.ITEM_CREATED: item_created,
    FactKind.TITLE_CHANGED: title_changed,
    FactKind.NOTE_CHANGED: note_changed,
    FactKind.OUTLINE_DELETED: outline_deleted,
    FactKind.ITEM_DELETED: item_deleted,
    FactKind.ITEM_MOVED: item_moved,
}


# ============================================================================
# ENGINE
# ============================================================================

class ReducerEngine:
    """Registry of fact handlers bound to one item store.

    Attributes:
        store: The item store this engine owns
        settings: Policies for positions, orphans and auditing
        parser: Parser used when apply() is given a fact line
    """

    def __init__(
        self,
        store: ItemStore | None = None,
        settings: Settings | None = None,
        parser: FactParser | None = None,
        handlers: dict[FactKind, Handler] | None = None,
    ):
        """Initialize engine.

        Args:
            store: Item store to reduce into (a fresh one if None)
            settings: Settings (loaded from config/environment if None)
            parser: Fact parser (default pattern table if None)
            handlers: Explicit handler table. If None, the seven default
                handlers are registered and every FactKind must be covered.
        """
        self.store = store if store is not None else ItemStore()
        self.settings = settings if settings is not None else Settings()
        self.parser = parser if parser is not None else FactParser()
        self._handlers: dict[FactKind, Handler] = {}

        if handlers is None:
            for kind, handler in DEFAULT_HANDLERS.items():
                self.define(kind, handler)
            missing = [kind.value for kind in FactKind if kind not in self._handlers]
            if missing:
                raise UnknownFactKind(
                    f"No handler registered for fact kinds: {missing}",
                    details={"missing": missing},
                )
        else:
            for kind, handler in handlers.items():
                self.define(kind, handler)

    def define(self, kind: FactKind, handler: Handler) -> None:
        """Register the handler for kind.

        Raises:
            DuplicateHandler: If kind already has a handler
        """
        if kind in self._handlers:
            raise DuplicateHandler(
                f"Handler already defined for fact kind: {kind.value}",
                details={"kind": kind.value},
            )
        self._handlers[kind] = handler

    @property
    def kinds(self) -> list[FactKind]:
        return list(self._handlers)

    def apply(self, fact: Union[Fact, str]) -> Fact:
        """Apply one fact (typed, or a fact line to parse first).

        Returns:
            The typed fact that was applied

        Raises:
            FactError: Any parse, precondition or postcondition failure;
                the store is unchanged when this propagates
            ConsistencyError: If verify_invariants is on and the audit fails
        """
        log = logger.bind(store=self.store.name)
        try:
            if isinstance(fact, str):
                log = log.bind(line=fact)
                fact = self.parser.parse(fact)
            log = log.bind(kind=fact.kind.value, item_id=fact.item_id)

            handler = self._handlers.get(fact.kind)
            if handler is None:
                raise UnknownFactKind(
                    f"No handler registered for fact kind: {fact.kind.value}",
                    details={"kind": fact.kind.value},
                )

            with self.store.atomic():
                handler(self, fact)
                if self.settings.verify_invariants:
                    verify(self.store)
        except OutlinerError as e:
            log.warning("fact_rejected", error=type(e).__name__, reason=e.message)
            raise

        log.debug("fact_applied")
        return fact

    def apply_all(self, facts: Iterable[Union[Fact, str]]) -> int:
        """Apply facts in order, stopping at the first failure.

        Returns:
            Number of facts applied
        """
        count = 0
        for fact in facts:
            self.apply(fact)
            count += 1
        return count

    # Read-only query surface

    def exists(self, item_id: ItemId) -> bool:
        return self.store.exists(item_id)

    def get(self, item_id: ItemId) -> Item:
        return self.store.get(item_id)
