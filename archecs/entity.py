"""Entity identifiers and stable entity references."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from archecs.archetype import Archetype

_UINT32_MAX = 0xFFFFFFFF
_UINT64_MAX = 0xFFFFFFFFFFFFFFFF


class EntityId(int):
    """An entity id: archetype id in the upper 32 bits, slot index in the lower 32."""

    __slots__ = ()

    def __new__(cls, value: int = 0) -> "EntityId":
        entity_id = int.__new__(cls, value)
        if not 0 <= entity_id <= _UINT64_MAX:
            raise ValueError(f"entity id {value} does not fit in 64 bits")
        return entity_id

    def archetype_id(self) -> int:
        """Return the archetype id encoded in this entity id."""
        return int(self) >> 32

    def index(self) -> int:
        """Return the slot index encoded in this entity id."""
        return int(self) & _UINT32_MAX

    def __repr__(self) -> str:
        return f"EntityId(archetype=0x{self.archetype_id():X}, index={self.index()})"


def new_entity_id(archetype_id: int, index: int) -> EntityId:
    """Build an EntityId from an archetype id and a slot index."""
    for name, value in (("archetype id", archetype_id), ("index", index)):
        if not 0 <= value <= _UINT32_MAX:
            raise ValueError(f"{name} {value} does not fit in 32 bits")
    return EntityId((archetype_id << 32) | index)


@dataclass(eq=False)
class EntityRef:
    """A stable reference that follows an entity as it moves between archetypes.

    An id of 0 and no archetype mean the entity is gone.
    """

    id: EntityId
    archetype: Optional["Archetype"] = None