"""Per-type component storage with stable slot indices, and the type registry."""

from __future__ import annotations

import copy
from functools import partial
from typing import Any, Callable, Dict, Iterator, List, Optional


class ComponentStorage:
    """Holds components of one type in slots whose indices stay stable.

    Deleted slots are reused, most recently freed first. Only compaction
    moves components to new indices.
    """

    def __init__(self, component_type: type) -> None:
        self.component_type = component_type
        self._items: List[Any] = []
        self._filled: List[bool] = []
        self._free: List[int] = []

    def append(self, item: Any) -> int:
        """Store a copy of ``item`` and return its slot index."""
        if type(item) is not self.component_type:
            raise TypeError(
                f"expected {self.component_type.__qualname__}, "
                f"got {type(item).__qualname__}"
            )
        value = copy.copy(item)
        if self._free:
            index = self._free.pop()
            self._items[index] = value
            self._filled[index] = True
            return index
        self._items.append(value)
        self._filled.append(True)
        return len(self._items) - 1

    def has(self, index: int) -> bool:
        """Return whether the slot at ``index`` holds a component."""
        return 0 <= index < len(self._filled) and self._filled[index]

    def get(self, index: int) -> Optional[Any]:
        """Return the stored component at ``index``, or None for an empty slot."""
        return self._items[index] if self.has(index) else None

    def delete(self, index: int) -> None:
        """Empty the slot at ``index``; empty or unknown slots are left alone."""
        if not self.has(index):
            return
        self._filled[index] = False
        self._items[index] = None
        self._free.append(index)

    def compact(self) -> Dict[int, int]:
        """Pack components to the front and return a map of old to new indices."""
        survivors = [
            (old, item)
            for old, (item, filled) in enumerate(zip(self._items, self._filled))
            if filled
        ]
        self._items = [item for _, item in survivors]
        self._filled = [True] * len(survivors)
        self._free = []
        return {old: new for new, (old, _) in enumerate(survivors)}

    def __iter__(self) -> Iterator[int]:
        """Yield the indices of occupied slots in ascending order."""
        return (index for index, filled in enumerate(self._filled) if filled)


class ComponentRegistry:
    """Records which component types a storage may hold."""

    def __init__(self) -> None:
        self._factories: Dict[type, Callable[[], ComponentStorage]] = {}

    def register(self, component_type: type) -> None:
        """Allow ``component_type`` to be used as a component."""
        if not isinstance(component_type, type):
            raise TypeError(f"{component_type!r} is not a type")
        self._factories[component_type] = partial(ComponentStorage, component_type)

    def is_registered(self, component_type: type) -> bool:
        """Return whether ``component_type`` has been registered."""
        return component_type in self._factories

    def create_storage(self, component_type: type) -> ComponentStorage:
        """Return a new, empty storage for ``component_type``."""
        try:
            factory = self._factories[component_type]
        except KeyError:
            name = getattr(component_type, "__qualname__", repr(component_type))
            raise KeyError(f"component type {name} not registered") from None
        return factory()