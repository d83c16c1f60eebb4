"""In-memory cache of photos and collections for the running session.

Stores are explicitly constructed and handed to the flows that need them;
there is no module-level singleton.  Every write builds the new state first
and swaps it in with plain attribute assignment, so code running on the same
event loop never observes a half-applied change.  Observers subscribe through
the Qt signals exposed on :attr:`EntityStore.signals`, which are emitted after
the new state is in place.
"""

from __future__ import annotations

import dataclasses
from typing import Dict, Generic, Iterable, Iterator, List, Optional, Protocol, Tuple, TypeVar

from PySide6.QtCore import QObject, Signal

from ..errors import ValidationError
from ..models import Collection, Photo, ViewMode


class _Identified(Protocol):
    @property
    def id(self) -> str:
        ...


T = TypeVar("T", bound=_Identified)


class StoreSignals(QObject):
    """Signals emitted by :class:`EntityStore`."""

    changed = Signal(str, list)
    """Emitted with the change kind and the affected ids."""

    selectionChanged = Signal(object)
    """Emitted with the new selected id, or ``None`` when cleared."""

    def __init__(self, parent: QObject | None = None) -> None:
        super().__init__(parent)


class PhotoStoreSignals(StoreSignals):
    viewModeChanged = Signal(str)


class EntityStore(Generic[T]):
    """Ordered id-keyed cache with a single selection pointer.

    Lookups return ``None`` for unknown ids; absence is never an error.  The
    only failure a write can signal is :class:`ValidationError` for duplicate
    ids or unknown fields, raised before anything is changed.
    """

    def __init__(self, signals: StoreSignals | None = None) -> None:
        self._order: Tuple[str, ...] = ()
        self._items: Dict[str, T] = {}
        self._selected_id: Optional[str] = None
        self.signals = signals if signals is not None else StoreSignals()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def __len__(self) -> int:
        return len(self._order)

    def __contains__(self, entity_id: object) -> bool:
        return entity_id in self._items

    def __iter__(self) -> Iterator[T]:
        return iter(self.snapshot())

    def by_id(self, entity_id: str) -> Optional[T]:
        return self._items.get(entity_id)

    def selected(self) -> Optional[T]:
        if self._selected_id is None:
            return None
        return self._items.get(self._selected_id)

    @property
    def selected_id(self) -> Optional[str]:
        return self._selected_id

    def snapshot(self) -> Tuple[T, ...]:
        """Return the entities in store order as an immutable tuple."""

        items = self._items
        return tuple(items[entity_id] for entity_id in self._order)

    def ids(self) -> Tuple[str, ...]:
        return self._order

    def index_of(self, entity_id: str) -> Optional[int]:
        try:
            return self._order.index(entity_id)
        except ValueError:
            return None

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------
    def replace_all(self, entities: Iterable[T]) -> None:
        """Discard the current contents and install *entities* in order.

        A selection pointing at an id missing from *entities* is cleared.
        """

        items = self._index(entities)
        self._order = tuple(items)
        self._items = items
        selection_cleared = self._selected_id is not None and self._selected_id not in items
        if selection_cleared:
            self._selected_id = None
        self.signals.changed.emit("replace", list(self._order))
        if selection_cleared:
            self.signals.selectionChanged.emit(None)

    def insert_many(self, entities: Iterable[T]) -> None:
        """Append *entities* after the existing ones, preserving their order."""

        incoming = self._index(entities)
        if not incoming:
            return
        clashes = [entity_id for entity_id in incoming if entity_id in self._items]
        if clashes:
            raise ValidationError(f"Duplicate id(s) on insert: {', '.join(clashes)}")
        merged = dict(self._items)
        merged.update(incoming)
        self._order = self._order + tuple(incoming)
        self._items = merged
        self.signals.changed.emit("insert", list(incoming))

    def insert(self, entity: T) -> None:
        self.insert_many([entity])

    def restore(self, entity: T, index: int) -> None:
        """Re-insert *entity* at *index*, clamped to the current bounds."""

        if entity.id in self._items:
            raise ValidationError(f"Duplicate id on restore: {entity.id}")
        position = min(max(index, 0), len(self._order))
        order = list(self._order)
        order.insert(position, entity.id)
        items = dict(self._items)
        items[entity.id] = entity
        self._order = tuple(order)
        self._items = items
        self.signals.changed.emit("insert", [entity.id])

    def patch_by_id(self, entity_id: str, **fields: object) -> bool:
        """Merge *fields* into the entity with *entity_id*.

        Returns ``False`` without touching anything when the id is unknown.
        """

        current = self._items.get(entity_id)
        if current is None:
            return False
        if "id" in fields and fields["id"] != entity_id:
            raise ValidationError("The id of an entity cannot be patched")
        try:
            updated = dataclasses.replace(current, **fields)
        except TypeError as exc:
            raise ValidationError(f"Invalid patch for {entity_id}: {exc}") from exc
        items = dict(self._items)
        items[entity_id] = updated
        self._items = items
        self.signals.changed.emit("patch", [entity_id])
        return True

    def remove_by_id(self, entity_id: str) -> Optional[T]:
        """Remove and return the entity, clearing the selection if it pointed at it."""

        removed = self._items.get(entity_id)
        if removed is None:
            return None
        items = dict(self._items)
        del items[entity_id]
        self._order = tuple(eid for eid in self._order if eid != entity_id)
        self._items = items
        selection_cleared = self._selected_id == entity_id
        if selection_cleared:
            self._selected_id = None
        self.signals.changed.emit("remove", [entity_id])
        if selection_cleared:
            self.signals.selectionChanged.emit(None)
        return removed

    def select(self, entity_id: Optional[str]) -> None:
        if entity_id == self._selected_id:
            return
        self._selected_id = entity_id
        self.signals.selectionChanged.emit(entity_id)

    def clear(self) -> None:
        had_selection = self._selected_id is not None
        self._order = ()
        self._items = {}
        self._selected_id = None
        self.signals.changed.emit("replace", [])
        if had_selection:
            self.signals.selectionChanged.emit(None)

    # ------------------------------------------------------------------
    @staticmethod
    def _index(entities: Iterable[T]) -> Dict[str, T]:
        items: Dict[str, T] = {}
        for entity in entities:
            if entity.id in items:
                raise ValidationError(f"Duplicate id in input: {entity.id}")
            items[entity.id] = entity
        return items


class PhotoStore(EntityStore[Photo]):
    """Photo cache plus the grid/detail view mode."""

    signals: PhotoStoreSignals

    def __init__(self) -> None:
        super().__init__(PhotoStoreSignals())
        self._view_mode = ViewMode.GRID

    @property
    def view_mode(self) -> ViewMode:
        return self._view_mode

    def set_view_mode(self, mode: ViewMode | str) -> None:
        mode = ViewMode(mode)
        if mode is self._view_mode:
            return
        self._view_mode = mode
        self.signals.viewModeChanged.emit(mode.value)


class CollectionStore(EntityStore[Collection]):
    def collections_for_photo(self, photo_id: str) -> List[Collection]:
        return [collection for collection in self.snapshot() if photo_id in collection.photo_ids]


__all__ = [
    "CollectionStore",
    "EntityStore",
    "PhotoStore",
    "PhotoStoreSignals",
    "StoreSignals",
]
