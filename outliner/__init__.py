"""
Outliner

Event-sourced outline model: a tree of items rebuilt by replaying facts.
"""

__version__ = "0.1.0"

# Store exports
from outliner.core import Item, ItemStore

# Fact exports
from outliner.facts import (
    Fact,
    FactKind,
    FactParser,
    ItemCreated,
    ItemDeleted,
    ItemMoved,
    NoteChanged,
    OutlineCreated,
    OutlineDeleted,
    TitleChanged,
    format_fact,
    parse_fact,
)

# Engine exports
from outliner.reducer import ReducerEngine
from outliner.replay import replay

# Settings exports
from outliner.config import Settings

# Consistency exports
from outliner.consistency import OutlineStatus, check_consistency, check_invariants, verify

# Exception exports
from outliner import exceptions

__all__ = [
    # Store
    "Item",
    "ItemStore",
    # Facts
    "Fact",
    "FactKind",
    "FactParser",
    "OutlineCreated",
    "ItemCreated",
    "TitleChanged",
    "NoteChanged",
    "OutlineDeleted",
    "ItemDeleted",
    "ItemMoved",
    "format_fact",
    "parse_fact",
    # Engine
    "ReducerEngine",
    "replay",
    # Settings
    "Settings",
    # Consistency
    "OutlineStatus",
    "check_consistency",
    "check_invariants",
    "verify",
    # Exceptions module (access as outliner.exceptions.PreconditionViolation, etc.)
    "exceptions",
]
