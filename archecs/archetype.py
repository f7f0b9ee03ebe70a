"""Archetypes: the storage for one exact combination of component types."""

from __future__ import annotations

import weakref
from typing import Any, Dict, Iterable, Iterator, Optional, Sequence

from archecs.component_storage import ComponentRegistry, ComponentStorage
from archecs.entity import EntityId, EntityRef, new_entity_id


class Archetype:
    """Holds every entity that has exactly this set of component types.

    ``refs`` maps entity ids to weak references of the EntityRefs that
    point at them, so those refs can be kept up to date.
    """

    def __init__(
        self, archetype_id: int, types: Sequence[type], registry: ComponentRegistry
    ) -> None:
        self.id = archetype_id
        self.types = tuple(types)
        self._storages = [registry.create_storage(t) for t in self.types]
        self._by_type: Dict[type, ComponentStorage] = dict(
            zip(self.types, self._storages)
        )
        self.refs: Dict[EntityId, "weakref.ref[EntityRef]"] = {}

    def spawn(self, components: Iterable[Any]) -> int:
        """Store one entity's components and return its slot index."""
        position = 0
        for component in components:
            storage = self._by_type.get(type(component))
            if storage is not None:
                position = storage.append(component)
        return position

    def get_component(self, entity_index: int, component_type: type) -> Optional[Any]:
        """Return the entity's component of ``component_type``, or None."""
        storage = self._by_type.get(component_type)
        if storage is None:
            return None
        return storage.get(entity_index)

    def delete(self, entity_index: int) -> None:
        """Remove the entity at ``entity_index``; other indices stay as they are."""
        entity_id = new_entity_id(self.id, entity_index)
        ref_pointer = self.refs.pop(entity_id, None)
        if ref_pointer is not None:
            ref = ref_pointer()
            if ref is not None:
                ref.id = EntityId(0)
                ref.archetype = None
        for storage in self._storages:
            storage.delete(entity_index)

    def has_component(self, component_type: type) -> bool:
        """Return whether this archetype holds ``component_type``."""
        return component_type in self._by_type

    def compact(self) -> None:
        """Close the gaps left by deletions, moving live EntityRefs along."""
        if not self._storages:
            return
        first, *rest = self._storages
        index_map = first.compact()
        for storage in rest:
            storage.compact()

        updated: Dict[EntityId, "weakref.ref[EntityRef]"] = {}
        for old_index, new_index in index_map.items():
            ref_pointer = self.refs.get(new_entity_id(self.id, old_index))
            if ref_pointer is None:
                continue
            ref = ref_pointer()
            if ref is not None:
                new_id = new_entity_id(self.id, new_index)
                ref.id = new_id
                updated[new_id] = ref_pointer

        self.refs.clear()
        self.refs.update(updated)

    def __iter__(self) -> Iterator[EntityId]:
        """Yield the ids of all live entities in slot order."""
        if not self._storages:
            return iter(())
        return (new_entity_id(self.id, index) for index in self._storages[0])

    def __repr__(self) -> str:
        names = ", ".join(t.__qualname__ for t in self.types)
        return f"Archetype(0x{self.id:X}, [{names}])"