import gc
import weakref
from dataclasses import dataclass

import pytest

from archecs.archetype import Archetype
from archecs.component_storage import ComponentRegistry
from archecs.entity import EntityId, EntityRef, new_entity_id


@dataclass
class Position:
    x: float
    y: float


def _archetype() -> Archetype:
    registry = ComponentRegistry()
    registry.register(Position)
    return Archetype(3, (Position,), registry)


def _make_ref(archetype: Archetype, entity_id: EntityId) -> EntityRef:
    ref = EntityRef(entity_id, archetype)
    archetype.refs[entity_id] = weakref.ref(ref)
    return ref


def test_entity_id_encoding():
    entity_id = new_entity_id(12345, 67890)
    assert entity_id.archetype_id() == 12345
    assert entity_id.index() == 67890


@pytest.mark.parametrize(
    "archetype_id, index",
    [
        (0, 0),
        (0xFFFFFFFF, 0xFFFFFFFF),
        (1, 0),
        (0, 1),
        (0x12345678, 0x9ABCDEF0),
    ],
)
def test_entity_id_edge_cases(archetype_id, index):
    entity_id = new_entity_id(archetype_id, index)
    assert entity_id.archetype_id() == archetype_id
    assert entity_id.index() == index


def test_new_entity_id_rejects_out_of_range():
    with pytest.raises(ValueError):
        new_entity_id(0xFFFFFFFF + 1, 0)
    with pytest.raises(ValueError):
        new_entity_id(0, -1)


def test_entity_id_rejects_values_beyond_64_bits():
    with pytest.raises(ValueError):
        EntityId(1 << 64)


def test_entity_ref_basic_lifecycle():
    archetype = _archetype()
    index = archetype.spawn([Position(1.0, 2.0)])
    entity_id = new_entity_id(archetype.id, index)
    ref = _make_ref(archetype, entity_id)

    assert ref.id == entity_id
    assert ref.archetype is archetype
    assert archetype.get_component(ref.id.index(), Position) == Position(1.0, 2.0)

    archetype.delete(entity_id.index())
    assert ref.id == 0
    assert ref.archetype is None


def test_entity_ref_stability():
    archetype = _archetype()
    ids = [
        new_entity_id(archetype.id, archetype.spawn([Position(float(i), float(i))]))
        for i in (1, 2, 3)
    ]
    refs = [_make_ref(archetype, entity_id) for entity_id in ids]

    archetype.delete(ids[1].index())

    assert refs[0].id == ids[0]
    assert refs[2].id == ids[2]
    assert refs[1].id == 0


def test_entity_ref_identity_is_not_value_equality():
    entity_id = new_entity_id(1, 1)
    first = EntityRef(entity_id)
    second = EntityRef(entity_id)
    assert (first == second) is False
    assert first == first


def test_dead_ref_is_dropped_on_delete():
    archetype = _archetype()
    entity_id = new_entity_id(archetype.id, archetype.spawn([Position(5.0, 10.0)]))
    ref = _make_ref(archetype, entity_id)
    del ref
    gc.collect()

    archetype.delete(entity_id.index())
    assert entity_id not in archetype.refs
    assert archetype.get_component(entity_id.index(), Position) is None