"""The entity store: archetypes, entity references and singleton components."""

from __future__ import annotations

import copy
import weakref
from dataclasses import dataclass, field
from types import BuiltinFunctionType, FunctionType, MappingProxyType, MethodType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Protocol, Sequence, Tuple

from archecs.archetype import Archetype
from archecs.component_storage import ComponentRegistry
from archecs.entity import EntityId, EntityRef, new_entity_id

_FNV_OFFSET_BASIS = 2166136261
_FNV_PRIME = 16777619
_MASK32 = 0xFFFFFFFF

_NOT_COMPONENTS = (dict, FunctionType, BuiltinFunctionType, MethodType, type, type(None))


def _type_name(component_type: type) -> str:
    module = getattr(component_type, "__module__", "builtins")
    qualname = getattr(component_type, "__qualname__", repr(component_type))
    return qualname if module == "builtins" else f"{module}.{qualname}"


def _sort_types(types: Iterable[type]) -> Tuple[type, ...]:
    return tuple(sorted(types, key=lambda t: (_type_name(t), id(t))))


def hash_types(types: Sequence[type]) -> int:
    """Return the 32-bit FNV-1a hash of a sorted sequence of component types."""
    h = _FNV_OFFSET_BASIS
    for component_type in types:
        identity = id(component_type)
        h ^= (identity ^ (identity >> 32)) & _MASK32
        h = (h * _FNV_PRIME) & _MASK32
    return h


def _component_types(components: Sequence[Any]) -> Tuple[type, ...]:
    types = []
    for component in components:
        if isinstance(component, _NOT_COMPONENTS):
            raise TypeError(
                "components cannot be None, types, dicts or functions: "
                f"got {component!r}"
            )
        types.append(type(component))
    if len(set(types)) != len(types):
        raise ValueError("an entity cannot hold two components of the same type")
    return _sort_types(types)


@dataclass
class ArchetypeStats:
    """Statistics for one archetype."""

    id: int
    component_types: List[str]
    entity_count: int


@dataclass
class StorageStats:
    """A snapshot of the storage's contents."""

    archetype_count: int = 0
    total_entity_count: int = 0
    archetype_breakdown: List[ArchetypeStats] = field(default_factory=list)
    singleton_count: int = 0
    singleton_types: List[str] = field(default_factory=list)
    total_storage_slots: int = 0
    empty_storage_slots: int = 0
    storage_utilization: float = 0.0


class ComponentReader(Protocol):
    def get_component(self, entity_id: EntityId, component_type: type) -> Optional[Any]:
        ...


def read_component(reader: ComponentReader, component_type: type, entity_id: EntityId) -> Any:
    """Return the entity's component of ``component_type``; raise KeyError if absent."""
    component = reader.get_component(entity_id, component_type)
    if component is None:
        raise KeyError(
            f"entity {EntityId(entity_id)!r} has no {_type_name(component_type)} component"
        )
    return component


class Storage:
    """Holds all entities, grouped into archetypes, plus singleton components."""

    def __init__(self, registry: ComponentRegistry) -> None:
        self.registry = registry
        self._archetypes: Dict[int, Archetype] = {}
        self._singletons: Dict[type, Any] = {}

    @property
    def archetypes(self) -> Mapping[int, Archetype]:
        """A read-only view of the archetypes keyed by id."""
        return MappingProxyType(self._archetypes)

    # Entity references

    def create_entity_ref(self, entity_id: int) -> Optional[EntityRef]:
        """Return the stable reference for ``entity_id``, creating it if needed."""
        entity_id = EntityId(entity_id)
        archetype = self._archetypes.get(entity_id.archetype_id())
        if archetype is None:
            return None
        pointer = archetype.refs.get(entity_id)
        if pointer is not None:
            ref = pointer()
            if ref is not None:
                return ref
            del archetype.refs[entity_id]
        ref = EntityRef(entity_id, archetype)
        archetype.refs[entity_id] = weakref.ref(ref)
        return ref

    def resolve_entity_ref(self, ref: Optional[EntityRef]) -> Optional[EntityId]:
        """Return the current id behind ``ref``, or None if the entity is gone."""
        if ref is None or ref.id == 0:
            return None
        return ref.id

    def invalidate_entity_ref(self, ref: Optional[EntityRef]) -> bool:
        """Detach ``ref`` from its entity; return False if it was already invalid."""
        if ref is None or ref.id == 0:
            return False
        archetype = self._archetypes.get(ref.id.archetype_id())
        if archetype is not None:
            archetype.refs.pop(ref.id, None)
        ref.id = EntityId(0)
        ref.archetype = None
        return True

    # Archetype lookup

    def get_archetype(self, *args: Any) -> Optional[Archetype]:
        """Return the archetype for the given components or component types."""
        types = _sort_types(a if isinstance(a, type) else type(a) for a in args)
        return self._archetypes.get(hash_types(types))

    def get_archetype_by_id(self, archetype_id: int) -> Optional[Archetype]:
        """Return the archetype with ``archetype_id``, or None."""
        return self._archetypes.get(archetype_id)

    def get_archetype_by_types(self, types: Iterable[type]) -> Optional[Archetype]:
        """Return the archetype for exactly these component types, or None."""
        return self._archetypes.get(hash_types(_sort_types(types)))

    def _archetype_for(self, types: Tuple[type, ...]) -> Archetype:
        archetype_id = hash_types(types)
        archetype = self._archetypes.get(archetype_id)
        if archetype is None:
            archetype = Archetype(archetype_id, types, self.registry)
            self._archetypes[archetype_id] = archetype
        return archetype

    def _existing(self, entity_id: EntityId) -> Archetype:
        archetype = self._archetypes.get(entity_id.archetype_id())
        if archetype is None or archetype.get_component(
            entity_id.index(), archetype.types[0]
        ) is None:
            raise KeyError(f"no entity {entity_id!r}")
        return archetype

    # Entities

    def spawn(self, *args: Any) -> EntityId:
        """Create an entity holding copies of the given components."""
        if not args:
            raise ValueError("cannot spawn an entity without components")
        archetype = self._archetype_for(_component_types(args))
        return new_entity_id(archetype.id, archetype.spawn(args))

    def delete(self, entity_id: int) -> None:
        """Remove the entity; unknown ids are ignored."""
        entity_id = EntityId(entity_id)
        archetype = self._archetypes.get(entity_id.archetype_id())
        if archetype is not None:
            archetype.delete(entity_id.index())

    def _relocate(
        self,
        entity_id: EntityId,
        old: Archetype,
        new_types: Tuple[type, ...],
        components: List[Any],
    ) -> EntityId:
        new = self._archetype_for(new_types)
        new_id = new_entity_id(new.id, new.spawn(components))
        pointer = old.refs.pop(entity_id, None)
        if pointer is not None:
            ref = pointer()
            if ref is not None:
                ref.id = new_id
                ref.archetype = new
            new.refs[new_id] = pointer
        old.delete(entity_id.index())
        return new_id

    def add_component(self, entity_id: int, component: Any) -> EntityId:
        """Give the entity another component and return its new id."""
        entity_id = EntityId(entity_id)
        old = self._existing(entity_id)
        component_type = _component_types([component])[0]
        if old.has_component(component_type):
            raise ValueError(
                f"entity {entity_id!r} already has a {_type_name(component_type)} component"
            )
        new_types = _sort_types((*old.types, component_type))
        components = [
            component
            if t is component_type
            else old.get_component(entity_id.index(), t)
            for t in new_types
        ]
        return self._relocate(entity_id, old, new_types, components)

    def remove_component(self, entity_id: int, component_type: type) -> EntityId:
        """Take a component from the entity and return its new id.

        Removing the last component deletes the entity and returns id 0.
        """
        entity_id = EntityId(entity_id)
        old = self._existing(entity_id)
        if not old.has_component(component_type):
            return entity_id
        new_types = tuple(t for t in old.types if t is not component_type)
        if not new_types:
            old.delete(entity_id.index())
            return EntityId(0)
        components = [old.get_component(entity_id.index(), t) for t in new_types]
        return self._relocate(entity_id, old, new_types, components)

    def get_component(self, entity_id: int, component_type: type) -> Optional[Any]:
        """Return the entity's component of ``component_type``, or None."""
        entity_id = EntityId(entity_id)
        archetype = self._archetypes.get(entity_id.archetype_id())
        if archetype is None:
            return None
        return archetype.get_component(entity_id.index(), component_type)

    def has_component(self, entity_id: int, component_type: type) -> bool:
        """Return whether the entity's archetype holds ``component_type``."""
        archetype = self._archetypes.get(EntityId(entity_id).archetype_id())
        return archetype is not None and archetype.has_component(component_type)

    # Singletons

    def add_singleton(self, component: Any) -> Any:
        """Store a copy of ``component`` as the singleton of its type and return it."""
        stored = copy.copy(component)
        self._singletons[type(component)] = stored
        return stored

    def get_singleton(self, component_type: type) -> Optional[Any]:
        """Return the singleton of ``component_type``, or None."""
        return self._singletons.get(component_type)

    # Statistics

    def collect_stats(self) -> StorageStats:
        """Gather counts of archetypes, entities and singletons."""
        breakdown = [
            ArchetypeStats(
                id=archetype.id,
                component_types=[_type_name(t) for t in archetype.types],
                entity_count=sum(1 for _ in archetype),
            )
            for archetype in self._archetypes.values()
        ]
        return StorageStats(
            archetype_count=len(self._archetypes),
            total_entity_count=sum(a.entity_count for a in breakdown),
            archetype_breakdown=breakdown,
            singleton_count=len(self._singletons),
            singleton_types=[_type_name(t) for t in self._singletons],
        )