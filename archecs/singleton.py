"""Access to a single component instance that belongs to no entity."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Generic, Optional, Type, TypeVar

if TYPE_CHECKING:
    from archecs.storage import Storage

T = TypeVar("T")


class Singleton(Generic[T]):
    """A handle on the storage's singleton of one component type.

    Given a storage, the singleton is created there if missing, from
    ``initializer`` when one is given and otherwise from the type's
    no-argument constructor. Without a storage the handle stays unbound
    until :meth:`init` is called, which the scheduler does for systems.
    """

    def __init__(
        self,
        component_type: Type[T],
        storage: Optional["Storage"] = None,
        initializer: Optional[T] = None,
    ) -> None:
        if not isinstance(component_type, type):
            raise TypeError(f"{component_type!r} is not a type")
        if initializer is not None and type(initializer) is not component_type:
            raise TypeError(
                f"initializer must be a {component_type.__qualname__}, "
                f"got {type(initializer).__qualname__}"
            )
        self.component_type = component_type
        self._initializer = initializer
        self._storage: Optional["Storage"] = None
        self._component: Optional[T] = None
        if storage is not None:
            self.init(storage)

    @property
    def storage(self) -> Optional["Storage"]:
        """The storage this handle is bound to, if any."""
        return self._storage

    def init(self, storage: "Storage") -> None:
        """Bind to ``storage``, creating the singleton there if it is missing."""
        component: Any = storage.get_singleton(self.component_type)
        if component is None:
            initial = (
                self._initializer
                if self._initializer is not None
                else self.component_type()
            )
            component = storage.add_singleton(initial)
        self._storage = storage
        self._component = component

    def get(self) -> T:
        """Return the singleton component; changes to it are kept in storage."""
        if self._storage is None:
            raise RuntimeError(
                f"singleton {self.component_type.__qualname__} is not bound to a storage"
            )
        return self._component  # type: ignore[return-value]

    def __repr__(self) -> str:
        state = "bound" if self._storage is not None else "unbound"
        return f"Singleton({self.component_type.__qualname__}, {state})"