from __future__ import annotations

import logging
from typing import Any, Generic, TypeVar, get_type_hints, overload

from injected.exceptions import InjectedInvalidRegistrationError
from injected.keys import select_key
from injected.lock_mode import LockMode
from injected.registry_context import RegistryContext, registry_context
from injected.settings import DEFAULT_LOCK_MODE, DEFAULT_TIMING, Timing

T = TypeVar("T")

logger = logging.getLogger(__name__)

_EMPTY: Any = object()
_IMMEDIATE_FIELDS_ATTR = "__injected_immediate_fields__"
_FIELD_STORAGE_PREFIX = "__injected_field_"


class LazyField(Generic[T]):
    """Hold one dependency resolved from the ambient registry and cached afterwards.

    With ``Timing.DEFERRED`` nothing happens at construction; the first read
    resolves from whatever registry is ambient at that moment, which may be an
    override entered after the field was built. With ``Timing.IMMEDIATE`` the
    dependency is resolved while the field is constructed, so a missing
    registration fails there. Either way, once a value is cached every later
    read returns it without consulting any registry.

    ``timing=None`` uses ``DEFAULT_TIMING``, fixed at import from
    ``INJECTED_EAGER_RESOLVE``.

    Examples:
        .. code-block:: python

            class ProfileViewModel:
                def __init__(self) -> None:
                    self._analytics = LazyField(AnalyticsTracking)
                    self._formatter = LazyField(Formatter, key="formatter")

                def open(self) -> None:
                    self._analytics.value.track("profile_opened")

    """

    __slots__ = ("_context", "_dependency", "_key", "_lock", "_timing", "_value")

    def __init__(
        self,
        dependency: Any = None,
        *,
        key: str | None = None,
        timing: Timing | None = None,
        lock_mode: LockMode | None = None,
        context: RegistryContext | None = None,
    ) -> None:
        """Create the field and, for immediate timing, resolve it right away.

        Args:
            dependency: Requested type. Its canonical key is the lookup key
                unless ``key`` is given; when both are given the entry must be
                registered for this type.
            key: Explicit lookup key.
            timing: ``DEFERRED`` or ``IMMEDIATE``. ``None`` uses ``DEFAULT_TIMING``.
            lock_mode: Guard for the cache cell. Defaults to ``INJECTED_LOCK_MODE``.
            context: Registry context to read the ambient registry from.
                Defaults to the shared ``registry_context``.

        Raises:
            InjectedInvalidRegistrationError: If neither ``dependency`` nor
                ``key`` is given.
            InjectedMissingRegistrationError: For immediate timing, if nothing
                is registered at the key.
            InjectedTypeMismatchError: For immediate timing, if the entry was
                registered for a different type.

        """
        if dependency is None and key is None:
            msg = "LazyField needs a dependency type, key=..., or both."
            raise InjectedInvalidRegistrationError(msg)

        self._dependency = dependency
        self._key = key
        self._timing = timing or DEFAULT_TIMING
        self._context = context if context is not None else registry_context
        self._lock = (lock_mode or DEFAULT_LOCK_MODE).new_lock()
        self._value: T = _EMPTY

        if self._timing is Timing.IMMEDIATE:
            self._value = self._resolve()

    @property
    def key(self) -> str:
        """Return the lookup key: the explicit key or the one derived from the type."""
        return select_key(self._dependency, self._key)

    @property
    def timing(self) -> Timing:
        return self._timing

    @property
    def is_resolved(self) -> bool:
        """Return whether a value has been cached."""
        return self._value is not _EMPTY

    @property
    def value(self) -> T:
        """Return the cached dependency, resolving it on first read."""
        cached = self._value
        if cached is not _EMPTY:
            return cached
        with self._lock:
            if self._value is _EMPTY:
                self._value = self._resolve()
            return self._value

    def get(self) -> T:
        return self.value

    def __call__(self) -> T:
        return self.value

    def __repr__(self) -> str:
        state = "resolved" if self.is_resolved else "unresolved"
        return f"LazyField({self.key!r}, {self._timing.value}, {state})"

    def _resolve(self) -> T:
        registry = self._context.get_current()
        logger.debug("Resolving field '%s' from %r", self.key, registry)
        return registry.resolve(self._dependency, key=self._key)


class Injected(Generic[T]):
    """Declare a ``LazyField`` per owner instance as a read-only attribute.

    The dependency type comes from the first argument or, when omitted, from
    the owner's annotation for the attribute. Each instance gets its own
    field, kept in the instance ``__dict__``, so owners must not use
    ``__slots__`` without ``__dict__``.

    Immediate-timing declarations are materialized in the owner's ``__new__``,
    so they resolve before any ``__init__`` runs. That holds for subclasses
    whose ``__init__`` skips ``super().__init__()`` and for owners whose
    ``__init__`` is generated by ``@dataclass``.

    Examples:
        .. code-block:: python

            class ProfileViewModel:
                analytics: AnalyticsTracking = Injected()
                session = Injected(UserSessionProviding, timing=Timing.IMMEDIATE)
                formatter = Injected(Formatter, key="formatter")

    """

    def __init__(
        self,
        dependency: Any = None,
        *,
        key: str | None = None,
        timing: Timing | None = None,
        lock_mode: LockMode | None = None,
        context: RegistryContext | None = None,
    ) -> None:
        self._dependency = dependency
        self._key = key
        self._timing = timing or DEFAULT_TIMING
        self._lock_mode = lock_mode or DEFAULT_LOCK_MODE
        self._context = context
        self._lock = self._lock_mode.new_lock()
        self._owner: type[Any] | None = None
        self._name = "<unbound>"
        self._storage_name = _FIELD_STORAGE_PREFIX

    def __set_name__(self, owner: type[Any], name: str) -> None:
        self._owner = owner
        self._name = name
        self._storage_name = f"{_FIELD_STORAGE_PREFIX}{name}"
        if self._timing is Timing.IMMEDIATE:
            _install_immediate_materializer(owner, self)

    @overload
    def __get__(self, instance: None, owner: type[Any] | None = None) -> Injected[T]: ...

    @overload
    def __get__(self, instance: object, owner: type[Any] | None = None) -> T: ...

    def __get__(self, instance: object | None, owner: type[Any] | None = None) -> Any:
        if instance is None:
            return self
        return self.field_for(instance).value

    def __set__(self, instance: object, value: Any) -> None:
        msg = f"'{self._name}' is injected and cannot be assigned."
        raise AttributeError(msg)

    def __delete__(self, instance: object) -> None:
        msg = f"'{self._name}' is injected and cannot be deleted."
        raise AttributeError(msg)

    def field_for(self, instance: object) -> LazyField[T]:
        """Return the instance's field, creating it on first use."""
        try:
            storage = instance.__dict__
        except AttributeError:
            msg = (
                f"Cannot inject '{self._name}' into {type(instance).__qualname__}: "
                "instances need a __dict__."
            )
            raise InjectedInvalidRegistrationError(msg) from None

        field = storage.get(self._storage_name)
        if field is not None:
            return field
        with self._lock:
            field = storage.get(self._storage_name)
            if field is None:
                field = LazyField(
                    self._dependency_type(),
                    key=self._key,
                    timing=self._timing,
                    lock_mode=self._lock_mode,
                    context=self._context,
                )
                storage[self._storage_name] = field
            return field

    def _dependency_type(self) -> Any:
        if self._dependency is not None:
            return self._dependency
        if self._owner is None:
            msg = "Injected() without a dependency type must be declared in a class body."
            raise InjectedInvalidRegistrationError(msg)
        try:
            hints = get_type_hints(self._owner, include_extras=True)
        except (AttributeError, NameError, TypeError) as error:
            msg = (
                f"Cannot read the annotation of '{self._owner.__qualname__}.{self._name}': "
                f"{error}. Pass the dependency type to Injected(...) explicitly."
            )
            raise InjectedInvalidRegistrationError(msg) from error

        annotation = hints.get(self._name)
        if annotation is None and self._key is None:
            msg = (
                f"'{self._owner.__qualname__}.{self._name}' has no annotation. "
                "Annotate it or pass the dependency type or key=... to Injected(...)."
            )
            raise InjectedInvalidRegistrationError(msg)
        self._dependency = annotation
        return annotation

    def __repr__(self) -> str:
        return f"Injected({self._name!r}, {self._timing.value})"


def _install_immediate_materializer(owner: type[Any], descriptor: Injected[Any]) -> None:
    declared: list[Injected[Any]] | None = owner.__dict__.get(_IMMEDIATE_FIELDS_ATTR)
    if declared is None:
        declared = []
        setattr(owner, _IMMEDIATE_FIELDS_ATTR, declared)
        original_new = owner.__new__
        fields = declared

        def __new__(cls: type[Any], *args: Any, **kwargs: Any) -> Any:
            # object.__new__ rejects arguments meant for __init__.
            if original_new is object.__new__:
                instance = original_new(cls)
            else:
                instance = original_new(cls, *args, **kwargs)
            for immediate in fields:
                immediate.field_for(instance)
            return instance

        owner.__new__ = staticmethod(__new__)  # type: ignore[assignment]
    declared.append(descriptor)


__all__ = ["Injected", "LazyField"]
