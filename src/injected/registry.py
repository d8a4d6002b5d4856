from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Generic, Literal, TypeVar, overload

from injected.exceptions import (
    InjectedInvalidRegistrationError,
    InjectedMissingRegistrationError,
    InjectedTypeMismatchError,
)
from injected.keys import is_runtime_class, select_key
from injected.lock_mode import LockMode
from injected.registrations import Registration
from injected.settings import DEFAULT_LOCK_MODE

T = TypeVar("T")

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RegistryEntry(Generic[T]):
    """A registration stored under one key together with the type it was registered for.

    ``provides`` is ``None`` when the type is unknown (an explicit key with an
    unannotated producer). Such entries pass the lookup check for any requested
    type, and ``Registry.resolve`` checks the produced value instead.
    """

    key: str
    registration: Registration[T]
    provides: Any | None

    def matches(self, dependency: Any | None) -> bool:
        if dependency is None or self.provides is None:
            return True
        return bool(self.provides == dependency)


class Registry:
    """Store registrations by string key and resolve them by strategy.

    Keys are either the canonical name of a type (see ``injected.keys``) or an
    explicit caller-supplied string. Several keys may hold entries for the same
    type. Registering again under an existing key replaces the entry, and a
    replaced ``LazyCached`` entry takes its cached value with it.

    Most code does not hold a registry directly: ``LazyField``/``Injected`` and
    ``current_registry()`` read the ambient registry from ``registry_context``,
    which can be overridden for a block of work.

    Examples:
        .. code-block:: python

            registry = Registry()
            registry.register(lazy(NetworkService))
            registry.register(eager(AnalyticsService()), provides=AnalyticsTracking)
            registry.register(volatile(make_formatter), key="formatter")

            analytics = registry.resolve(AnalyticsTracking)

    """

    def __init__(self, *, lock_mode: LockMode | None = None) -> None:
        """Create an empty registry.

        Args:
            lock_mode: Guard for the key mapping. Defaults to ``INJECTED_LOCK_MODE``.

        """
        self._entries: dict[str, RegistryEntry[Any]] = {}
        self._lock = (lock_mode or DEFAULT_LOCK_MODE).new_lock()

    def register(
        self,
        registration: Registration[T],
        *,
        provides: Any | Literal["infer"] = "infer",
        key: str | None = None,
    ) -> str:
        """Insert or overwrite the entry for a registration.

        Args:
            registration: One of ``eager(...)``, ``lazy(...)`` or ``volatile(...)``.
            provides: Type the entry is registered for. ``"infer"`` uses the
                type of an eager value or the producer's return annotation.
                Pass a protocol or base class here to resolve by it instead of
                the concrete type.
            key: Explicit storage key. When omitted, the canonical key of
                ``provides`` is used.

        Returns:
            The key the entry was stored under.

        Raises:
            InjectedInvalidRegistrationError: If ``registration`` is not a
                supported strategy, or if neither ``key`` nor a type is
                available.

        """
        if not isinstance(registration, Registration):
            msg = (
                f"Cannot register {registration!r}. "
                "Wrap values with eager(...), lazy(...) or volatile(...)."
            )
            raise InjectedInvalidRegistrationError(msg)

        provided_type = registration.provides if provides == "infer" else provides
        if key is None and provided_type is None:
            msg = (
                f"Cannot infer a key for {registration!r}. "
                "Annotate the producer's return type or pass provides=... or key=..."
            )
            raise InjectedInvalidRegistrationError(msg)

        storage_key = select_key(provided_type, key)
        entry = RegistryEntry(key=storage_key, registration=registration, provides=provided_type)
        with self._lock:
            replaced = self._entries.get(storage_key)
            self._entries[storage_key] = entry

        if replaced is not None:
            logger.debug(
                "Replaced %r with %r under key '%s'",
                replaced.registration,
                registration,
                storage_key,
            )
        else:
            logger.debug("Registered %r under key '%s'", registration, storage_key)
        return storage_key

    @overload
    def resolve(self, dependency: type[T], *, key: str | None = None) -> T: ...

    @overload
    def resolve(self, dependency: Any = None, *, key: str | None = None) -> Any: ...

    def resolve(self, dependency: Any = None, *, key: str | None = None) -> Any:
        """Resolve a dependency by type, by explicit key, or by both.

        Args:
            dependency: Requested type. When ``key`` is omitted its canonical
                key is the lookup key. When given, the entry must have been
                registered for this exact type.
            key: Explicit lookup key.

        Returns:
            The stored value for eager entries, the cached value for lazy
            entries (building it on first call), or a fresh value for volatile
            entries.

        Raises:
            InjectedInvalidRegistrationError: If neither ``dependency`` nor
                ``key`` is given.
            InjectedMissingRegistrationError: If nothing is registered at the key.
            InjectedTypeMismatchError: If the entry was registered for a
                different type than ``dependency``, or if an entry of unknown
                type produced a value that is not an instance of ``dependency``.

        """
        entry = self._lookup(dependency, key)
        value = entry.registration.get()
        if entry.provides is None and not _conforms(value, dependency):
            raise InjectedTypeMismatchError(
                entry.key,
                expected=dependency,
                registered=type(value),
            )
        return value

    def is_registered(self, dependency: Any = None, *, key: str | None = None) -> bool:
        """Return whether an entry exists at the derived or explicit key."""
        storage_key = self._lookup_key(dependency, key)
        with self._lock:
            return storage_key in self._entries

    def unregister(self, dependency: Any = None, *, key: str | None = None) -> None:
        """Remove the entry at the derived or explicit key.

        Raises:
            InjectedMissingRegistrationError: If nothing is registered at the key.

        """
        storage_key = self._lookup_key(dependency, key)
        with self._lock:
            removed = self._entries.pop(storage_key, None)
        if removed is None:
            raise InjectedMissingRegistrationError(storage_key)
        logger.debug("Unregistered '%s'", storage_key)

    def get_entry(self, dependency: Any = None, *, key: str | None = None) -> RegistryEntry[Any]:
        """Return the stored entry without resolving it.

        Raises:
            InjectedMissingRegistrationError: If nothing is registered at the key.
            InjectedTypeMismatchError: If the entry was registered for a
                different type than ``dependency``.

        """
        return self._lookup(dependency, key)

    def keys(self) -> list[str]:
        """Return registered keys in registration order."""
        with self._lock:
            return list(self._entries)

    def __contains__(self, dependency: object) -> bool:
        if isinstance(dependency, str):
            return self.is_registered(key=dependency)
        return self.is_registered(dependency)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(keys={self.keys()!r})"

    def _lookup_key(self, dependency: Any, key: str | None) -> str:
        if dependency is None and key is None:
            msg = "Pass a dependency type, key=..., or both to look up a registration."
            raise InjectedInvalidRegistrationError(msg)
        return select_key(dependency, key)

    def _lookup(self, dependency: Any, key: str | None) -> RegistryEntry[Any]:
        storage_key = self._lookup_key(dependency, key)
        with self._lock:
            entry = self._entries.get(storage_key)
        if entry is None:
            raise InjectedMissingRegistrationError(storage_key)
        if not entry.matches(dependency):
            raise InjectedTypeMismatchError(
                storage_key,
                expected=dependency,
                registered=entry.provides,
            )
        return entry


def _conforms(value: Any, dependency: Any) -> bool:
    if not is_runtime_class(dependency):
        return True
    try:
        return isinstance(value, dependency)
    except TypeError:
        # Protocols without @runtime_checkable reject isinstance().
        return True


__all__ = ["Registry", "RegistryEntry"]
