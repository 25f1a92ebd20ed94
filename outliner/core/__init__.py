"""Item store for Outliner.

ARCHITECTURE:
- ItemStore owns every Item record; nothing else keeps references across calls
- Items are frozen dataclasses; each change replaces the whole record
- store.atomic() groups the mutations of one fact so a failure leaves no trace
"""

from .item import Item, ItemId
from .store import ItemStore, Patch

__all__ = [
    "Item",
    "ItemId",
    "ItemStore",
    "Patch",
]
