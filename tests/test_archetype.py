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


@dataclass
class Velocity:
    dx: float
    dy: float


@dataclass
class Health:
    current: int
    max: int


@pytest.fixture
def registry():
    reg = ComponentRegistry()
    for component_type in (Position, Velocity, Health):
        reg.register(component_type)
    return reg


def _make_ref(archetype, entity_id):
    ref = EntityRef(entity_id, archetype)
    archetype.refs[entity_id] = weakref.ref(ref)
    return ref


def _spawn(archetype, *components):
    return new_entity_id(archetype.id, archetype.spawn(list(components)))


def test_compact_example(registry):
    archetype = Archetype(11, (Health, Position), registry)
    entities = [
        _spawn(archetype, Position(float(i * 10), 0.0), Health(100, 100))
        for i in range(5)
    ]
    archetype.delete(entities[1].index())
    archetype.delete(entities[3].index())

    assert len(list(archetype)) == 3

    archetype.compact()

    positions = [
        archetype.get_component(entity_id.index(), Position) for entity_id in archetype
    ]
    assert [(p.x, p.y) for p in positions] == [(0, 0), (20, 0), (40, 0)]
    assert len(positions) == 3


def test_spawn_and_get_component(registry):
    archetype = Archetype(5, (Position, Velocity), registry)
    entity_id = _spawn(archetype, Velocity(0.5, 0.5), Position(1.0, 2.0))
    assert archetype.get_component(entity_id.index(), Position) == Position(1.0, 2.0)
    assert archetype.get_component(entity_id.index(), Velocity) == Velocity(0.5, 0.5)
    assert archetype.get_component(entity_id.index(), Health) is None


def test_has_component(registry):
    archetype = Archetype(5, (Position, Velocity), registry)
    assert archetype.has_component(Position) is True
    assert archetype.has_component(Velocity) is True
    assert archetype.has_component(Health) is False


def test_unregistered_type_raises(registry):
    with pytest.raises(KeyError, match="not registered"):
        Archetype(5, (Position, str), registry)


def test_delete_keeps_other_indices_stable(registry):
    archetype = Archetype(2, (Position, Velocity), registry)
    ids = [
        _spawn(archetype, Position(float(i), float(i)), Velocity(0.1, 0.1))
        for i in (1, 2, 3, 4)
    ]
    archetype.delete(ids[1].index())

    assert archetype.get_component(ids[1].index(), Position) is None
    assert archetype.get_component(ids[0].index(), Position).x == 1.0
    assert archetype.get_component(ids[2].index(), Position).x == 3.0
    assert archetype.get_component(ids[3].index(), Position).x == 4.0

    reused = _spawn(archetype, Position(5.0, 5.0), Velocity(0.5, 0.5))
    assert reused == ids[1]
    assert archetype.get_component(reused.index(), Position).x == 5.0


def test_iter_yields_ids_of_this_archetype(registry):
    archetype = Archetype(42, (Position,), registry)
    spawned = [_spawn(archetype, Position(float(i), 0.0)) for i in range(3)]
    ids = list(archetype)
    assert ids == spawned
    assert all(entity_id.archetype_id() == 42 for entity_id in ids)


def test_compact_count(registry):
    archetype = Archetype(9, (Position, Velocity), registry)
    ids = [
        _spawn(archetype, Position(float(i), float(i)), Velocity(1.0, 1.0))
        for i in range(100)
    ]
    for entity_id in ids[::2]:
        archetype.delete(entity_id.index())
    archetype.compact()
    assert len(list(archetype)) == 50


def test_compact_with_entity_refs(registry):
    archetype = Archetype(9, (Position, Velocity), registry)
    entity_ids = [
        _spawn(archetype, Position(float(i), float(i)), Velocity(1.0, 1.0))
        for i in range(100)
    ]
    refs = [_make_ref(archetype, entity_id) for entity_id in entity_ids]

    for entity_id in entity_ids[::2]:
        archetype.delete(entity_id.index())

    archetype.compact()

    kept_refs = refs[1::2]
    deleted_refs = refs[::2]

    assert len(kept_refs) == 50
    assert all(ref.archetype is archetype for ref in kept_refs)
    positions = [archetype.get_component(ref.id.index(), Position) for ref in kept_refs]
    assert [(p.x, p.y) for p in positions] == [
        (float(i), float(i)) for i in range(1, 100, 2)
    ]
    velocities = [archetype.get_component(ref.id.index(), Velocity) for ref in kept_refs]
    assert velocities == [Velocity(1.0, 1.0)] * 50

    assert [(ref.id, ref.archetype) for ref in deleted_refs] == [(0, None)] * 50

    assert set(archetype.refs) == {ref.id for ref in kept_refs}


def test_compact_multiple_times(registry):
    archetype = Archetype(9, (Position, Velocity), registry)
    refs = []
    for i in range(50):
        entity_id = _spawn(archetype, Position(float(i), float(i)), Velocity(1.0, 1.0))
        refs.append(_make_ref(archetype, entity_id))

    for ref in refs[:25]:
        archetype.delete(ref.id.index())
    archetype.compact()

    for i in range(50, 75):
        entity_id = _spawn(archetype, Position(float(i), float(i)), Velocity(1.0, 1.0))
        refs.append(_make_ref(archetype, entity_id))

    for ref in refs[25:50]:
        archetype.delete(ref.id.index())
    archetype.compact()

    for i, ref in enumerate(refs[50:75], start=50):
        assert ref.id != EntityId(0)
        assert archetype.get_component(ref.id.index(), Position).x == float(i)


def test_compact_empty_archetype(registry):
    archetype = Archetype(9, (Position, Velocity), registry)
    for i in range(10):
        entity_id = _spawn(archetype, Position(float(i), float(i)), Velocity(1.0, 1.0))
        archetype.delete(entity_id.index())

    archetype.compact()
    assert list(archetype) == []
    assert archetype.spawn([Position(1.0, 1.0), Velocity(1.0, 1.0)]) == 0


def test_archetype_without_types(registry):
    archetype = Archetype(1, (), registry)
    archetype.compact()
    assert list(archetype) == []
    assert archetype.has_component(Position) is False