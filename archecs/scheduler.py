"""Systems, frames and the scheduler that runs systems in order."""

from __future__ import annotations

import math
import threading
import time
from dataclasses import dataclass, field
from typing import List, Protocol, runtime_checkable

from archecs.commands import Commands
from archecs.singleton import Singleton
from archecs.storage import Storage


@dataclass
class UpdateFrame:
    """What a system sees during one frame."""

    delta_time: float
    storage: Storage
    commands: Commands = field(default_factory=Commands)


@runtime_checkable
class System(Protocol):
    """Behaviour that runs once per frame over the storage's entities."""

    def execute(self, frame: UpdateFrame) -> None:
        """Run the system for one frame."""
        ...


@dataclass
class SystemStats:
    """Execution statistics for one system; durations are in seconds."""

    name: str
    execution_count: int
    min_duration: float
    max_duration: float
    avg_duration: float
    last_duration: float
    total_duration: float


@dataclass
class SchedulerStats:
    """Execution statistics for all systems of a scheduler."""

    system_count: int
    total_executions: int
    systems: List[SystemStats]


@dataclass
class _Entry:
    system: System
    name: str
    execution_count: int = 0
    min_duration: float = math.inf
    max_duration: float = 0.0
    total_duration: float = 0.0
    last_duration: float = 0.0

    def record(self, duration: float) -> None:
        self.execution_count += 1
        self.last_duration = duration
        self.total_duration += duration
        self.min_duration = min(self.min_duration, duration)
        self.max_duration = max(self.max_duration, duration)

    def stats(self) -> SystemStats:
        avg = (
            self.total_duration / self.execution_count if self.execution_count else 0.0
        )
        return SystemStats(
            name=self.name,
            execution_count=self.execution_count,
            min_duration=self.min_duration,
            max_duration=self.max_duration,
            avg_duration=avg,
            last_duration=self.last_duration,
            total_duration=self.total_duration,
        )


class Scheduler:
    """Runs registered systems in registration order, then flushes commands."""

    def __init__(self, storage: Storage) -> None:
        self._storage = storage
        self._entries: List[_Entry] = []

    @property
    def storage(self) -> Storage:
        """The storage the systems operate on."""
        return self._storage

    def register(self, system: System) -> None:
        """Add ``system`` and bind its Singleton attributes to the storage."""
        if not isinstance(system, System) or not callable(system.execute):
            raise TypeError(f"{system!r} has no execute(frame) method")
        for value in getattr(system, "__dict__", {}).values():
            if isinstance(value, Singleton):
                value.init(self._storage)
        self._entries.append(_Entry(system, type(system).__name__))

    def once(self, dt: float) -> None:
        """Run every system once with delta time ``dt``, then flush commands."""
        frame = UpdateFrame(dt, self._storage)
        for entry in self._entries:
            start = time.perf_counter()
            entry.system.execute(frame)
            entry.record(time.perf_counter() - start)
        frame.commands.flush(self._storage)

    def run(self, stop_event: threading.Event, interval: float) -> None:
        """Call :meth:`once` every ``interval`` seconds until ``stop_event`` is set."""
        if interval <= 0:
            raise ValueError("interval must be positive")
        last = time.monotonic()
        next_tick = last + interval
        while True:
            if stop_event.wait(max(0.0, next_tick - time.monotonic())):
                return
            now = time.monotonic()
            dt = now - last
            last = now
            self.once(dt)
            next_tick += interval
            if next_tick < now:
                # Missed ticks are dropped rather than run back to back.
                next_tick = now + interval

    def get_stats(self) -> SchedulerStats:
        """Return execution statistics for every registered system."""
        systems = [entry.stats() for entry in self._entries]
        return SchedulerStats(
            system_count=len(self._entries),
            total_executions=sum(s.execution_count for s in systems),
            systems=systems,
        )