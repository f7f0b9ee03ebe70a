"""A buffer of structural changes that are applied to a storage later."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, List, Set, Tuple

from archecs.entity import EntityId

if TYPE_CHECKING:
    from archecs.storage import Storage


class Commands:
    """Queues spawns, deletions, component changes and callbacks.

    Nothing touches the storage until :meth:`flush`, so systems can request
    structural changes while they iterate over entities.
    """

    def __init__(self) -> None:
        self._spawns: List[Tuple[Any, ...]] = []
        self._deletes: List[EntityId] = []
        self._adds: List[Tuple[EntityId, Any]] = []
        self._removes: List[Tuple[EntityId, type]] = []
        self._defers: List[Callable[[], Any]] = []

    def defer(self, fn: Callable[[], Any]) -> None:
        """Queue ``fn`` to be called after every other queued operation."""
        if not callable(fn):
            raise TypeError(f"{fn!r} is not callable")
        self._defers.append(fn)

    def spawn(self, *args: Any) -> None:
        """Queue the creation of an entity with the given components."""
        if not args:
            raise ValueError("cannot spawn an entity without components")
        self._spawns.append(args)

    def delete(self, entity_id: int) -> None:
        """Queue the deletion of an entity."""
        self._deletes.append(EntityId(entity_id))

    def add_component(self, entity_id: int, component: Any) -> None:
        """Queue adding ``component`` to an entity."""
        self._adds.append((EntityId(entity_id), component))

    def remove_component(self, entity_id: int, component_type: type) -> None:
        """Queue removing the component of ``component_type`` from an entity."""
        self._removes.append((EntityId(entity_id), component_type))

    def __len__(self) -> int:
        return (
            len(self._spawns)
            + len(self._deletes)
            + len(self._adds)
            + len(self._removes)
            + len(self._defers)
        )

    def flush(self, storage: "Storage") -> None:
        """Apply every queued operation to ``storage`` and empty the buffer.

        Deletions run first, then removals and additions (skipping deleted
        entities), then spawns, and finally deferred callbacks. Operations
        queued while flushing are kept for the next flush.
        """
        spawns, self._spawns = self._spawns, []
        deletes, self._deletes = self._deletes, []
        adds, self._adds = self._adds, []
        removes, self._removes = self._removes, []
        defers, self._defers = self._defers, []

        deleted: Set[EntityId] = set()
        for entity_id in deletes:
            storage.delete(entity_id)
            deleted.add(entity_id)

        for entity_id, component_type in removes:
            if entity_id not in deleted:
                storage.remove_component(entity_id, component_type)

        for entity_id, component in adds:
            if entity_id not in deleted:
                storage.add_component(entity_id, component)

        for components in spawns:
            storage.spawn(*components)

        for fn in defers:
            fn()