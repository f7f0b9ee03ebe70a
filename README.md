# archecs

An archetype-based entity component system (ECS).

An entity is a set of components. Entities that hold exactly the same set of
component types live together in one **archetype**, which keeps one
`ComponentStorage` per component type. Slot indices are stable: a deleted slot
is left empty and reused by the next spawn, until the archetype is compacted.

Components are ordinary Python objects: dataclasses, ints, strings and so on.
Each component type must be registered with a `ComponentRegistry` before it is
used. An entity may hold at most one component of each type.

## Modules

- `archecs.entity`: `EntityId`, `new_entity_id`, `EntityRef`
- `archecs.component_storage`: `ComponentRegistry`, `ComponentStorage`
- `archecs.archetype`: `Archetype`
- `archecs.storage`: `Storage`, `StorageStats`, `ArchetypeStats`,
  `read_component`, `hash_types`
- `archecs.commands`: `Commands`
- `archecs.singleton`: `Singleton`
- `archecs.scheduler`: `Scheduler`, `System`, `UpdateFrame`, `SystemStats`,
  `SchedulerStats`

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Usage

### Components and storage

```python
from dataclasses import dataclass

from archecs.component_storage import ComponentRegistry
from archecs.storage import Storage, read_component


@dataclass
class Position:
    x: float = 0.0
    y: float = 0.0


@dataclass
class Velocity:
    dx: float = 0.0
    dy: float = 0.0


registry = ComponentRegistry()
registry.register(Position)
registry.register(Velocity)

storage = Storage(registry)

player = storage.spawn(Position(10, 20), Velocity(1, 0))
pos = storage.get_component(player, Position)
pos.x += 5  # spawn stores a copy; changes made to the stored copy are kept

assert storage.has_component(player, Velocity)
assert read_component(storage, Position, player).x == 15
```

- `spawn` stores a shallow copy of each component.
- The order of the components does not matter: the same set of types always
  maps to the same archetype.
- `spawn` raises:
  - `ValueError` with no components, or with two components of the same type;
  - `TypeError` for `None`, types, dicts or functions;
  - `KeyError` for an unregistered type.

For a missing component, `get_component` returns `None`, while
`read_component` raises `KeyError`. `delete` ignores unknown ids.

### Entity ids

An `EntityId` is an `int` subclass. The archetype id sits in the upper 32 bits
and the slot index in the lower 32:

```python
from archecs.entity import new_entity_id

eid = new_entity_id(12345, 67890)
assert eid.archetype_id() == 12345 and eid.index() == 67890
```

Id `0` stands for "no entity".

### Changing an entity's components

Adding or removing a component moves the entity to another archetype. Both
calls return the entity's new id:

```python
player = storage.remove_component(player, Velocity)
player = storage.add_component(player, Velocity(0, 1))
```

- Both raise `KeyError` for an entity that does not exist.
- `add_component` raises `ValueError` if the entity already has a component of
  that type.
- Removing a type the entity lacks returns the id unchanged.
- Removing the last component deletes the entity and returns `EntityId(0)`.

### Stable references

An `EntityRef` follows its entity when components are added or removed, and
when the archetype is compacted. Deleting the entity invalidates the ref.

```python
ref = storage.create_entity_ref(player)   # the same ref is returned while it is alive
player = storage.add_component(player, SomeOtherComponent())

entity_id = storage.resolve_entity_ref(ref)   # current id, or None
storage.delete(entity_id)
assert storage.resolve_entity_ref(ref) is None
```

- `create_entity_ref` returns `None` if the id's archetype does not exist.
- `invalidate_entity_ref(ref)` detaches a ref by hand. It returns `False` if the
  ref was already invalid.
- Archetypes hold their refs weakly, so a ref nobody keeps is dropped.

### Archetypes

```python
archetype = storage.get_archetype_by_types([Position, Velocity])
# also: storage.get_archetype(Position, Velocity) or storage.get_archetype(Position(), Velocity())
for entity_id in archetype:      # live entities in slot order
    print(entity_id.index())

archetype.compact()              # close gaps left by deletions; refs are updated
```

`storage.archetypes` is a read-only mapping of archetype id to `Archetype`.
`storage.get_archetype_by_id(archetype_id)` looks one up directly. Archetype
ids are a 32-bit FNV-1a hash of the sorted component types (`hash_types`). They
are derived from object identities, so they differ between runs of the
interpreter.

### Singletons

Singletons hold global state that belongs to no entity:

```python
from archecs.singleton import Singleton


@dataclass
class GameTime:
    frames: int = 0


clock = Singleton(GameTime, storage)          # creates GameTime() in storage if missing
clock.get().frames += 1
assert storage.get_singleton(GameTime).frames == 1
```

- `Singleton(component_type, storage=None, initializer=None)` uses
  `initializer` when the singleton is missing. Without an initializer it calls
  the type's no-argument constructor.
- A handle created without a storage is bound later by `init(storage)`.
  `get()` raises `RuntimeError` before that.
- `Storage.add_singleton(component)` stores a copy and returns it. It replaces
  any existing singleton of that type.

### Deferred commands

`Commands` queues these structural changes:

- `spawn`
- `delete`
- `add_component`
- `remove_component`
- `defer(fn)` for arbitrary callbacks

`flush(storage)` applies the queue in this order: deletions, removals,
additions, spawns, then deferred callbacks. It skips additions and removals
aimed at entities deleted in the same flush. Operations queued during a flush
are kept for the next one.

### Systems and the scheduler

A system is any object with an `execute(frame)` method. The `UpdateFrame` it
receives carries `delta_time`, `storage` and `commands`.

```python
from archecs.scheduler import Scheduler


class Mover:
    def __init__(self, entity_id):
        self.entity_id = entity_id
        self.clock = Singleton(GameTime)   # bound by Scheduler.register

    def execute(self, frame):
        pos = frame.storage.get_component(self.entity_id, Position)
        vel = frame.storage.get_component(self.entity_id, Velocity)
        pos.x += vel.dx * frame.delta_time
        pos.y += vel.dy * frame.delta_time
        self.clock.get().frames += 1


scheduler = Scheduler(storage)
scheduler.register(Mover(player))
scheduler.once(1 / 60)

for stats in scheduler.get_stats().systems:
    print(stats.name, stats.execution_count, stats.avg_duration)
```

- `register` raises `TypeError` for objects without `execute`. It binds every
  `Singleton` found among the system's instance attributes to the storage.
- `once(dt)` runs the systems in registration order and then flushes the
  frame's commands.
- `run(stop_event, interval)` calls `once` every `interval` seconds, passing the
  measured time since the previous frame, until the `threading.Event` is set.
  Missed ticks are dropped.
- Durations in `SystemStats` are in seconds.

### Statistics

`storage.collect_stats()` returns a `StorageStats` with:

- the archetype count and total entity count;
- an `ArchetypeStats` per archetype (id, component type names, entity count);
- the singleton count and type names.

`total_storage_slots`, `empty_storage_slots` and `storage_utilization` are
always zero.

## What it does not do

There are no query or view types that gather matching entities across
archetypes. To process every entity with a given set of components, walk
`storage.archetypes`, keep those whose `has_component` holds for each type, and
read components with `get_component`.

There is no visual debugging interface, no command-line tool and no
persistence: everything lives in memory.