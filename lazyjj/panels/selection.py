"""Cursor state that survives full list refreshes.

Refreshes replace the entity list wholesale. The cursor follows the
previously selected entity by identity, falling back to the top only when
that entity is gone.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, replace
from typing import Generic, Protocol, TypeVar


class Keyed(Protocol):
    @property
    def id(self) -> str: ...


T = TypeVar("T", bound=Keyed)


def reconcile(previous_key: str | None, new_entities: Sequence[Keyed]) -> int:
    """Return the cursor for ``new_entities`` that keeps ``previous_key`` selected.

    Duplicate ids resolve to their first occurrence. A ``None`` key, an empty
    list or a key that no longer exists all yield ``0``.
    """
    if previous_key is None or not new_entities:
        return 0
    index_by_id: dict[str, int] = {}
    for index, entity in enumerate(new_entities):
        index_by_id.setdefault(entity.id, index)
    return index_by_id.get(previous_key, 0)


def _clamp(cursor: int, count: int) -> int:
    if count <= 0:
        return 0
    return max(0, min(cursor, count - 1))


@dataclass(frozen=True)
class SelectionState(Generic[T]):
    """Immutable ``(entities, cursor)`` pair."""

    entities: tuple[T, ...] = ()
    cursor: int = 0

    @property
    def selected(self) -> T | None:
        if not self.entities:
            return None
        return self.entities[self.cursor]

    @property
    def selected_key(self) -> str | None:
        entity = self.selected
        return entity.id if entity is not None else None

    def __len__(self) -> int:
        return len(self.entities)

    def refreshed(self, entities: Sequence[T]) -> SelectionState[T]:
        """Replace the list, keeping the selected entity when it still exists."""
        previous_key = self.selected_key
        new_entities = tuple(entities)
        return SelectionState(new_entities, reconcile(previous_key, new_entities))

    def select_index(self, index: int) -> SelectionState[T]:
        return replace(self, cursor=_clamp(index, len(self.entities)))

    def up(self, count: int = 1) -> SelectionState[T]:
        return self.select_index(self.cursor - count)

    def down(self, count: int = 1) -> SelectionState[T]:
        return self.select_index(self.cursor + count)

    def top(self) -> SelectionState[T]:
        return self.select_index(0)

    def bottom(self) -> SelectionState[T]:
        return self.select_index(len(self.entities) - 1)


__all__ = ["SelectionState", "reconcile"]
