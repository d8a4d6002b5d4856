from __future__ import annotations

import inspect
import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, ClassVar, Generic, TypeAlias, TypeVar, get_type_hints

from injected.keys import is_runtime_class
from injected.lock_mode import LockMode
from injected.settings import DEFAULT_LOCK_MODE

T = TypeVar("T")

logger = logging.getLogger(__name__)

Producer: TypeAlias = Callable[[], T]
"""A zero-argument callable that builds a dependency."""

_EMPTY: Any = object()


class Strategy(Enum):
    """Define when a registration's producer runs and whether its result is cached."""

    EAGER = auto()
    """The value is built up front and returned as-is on every resolution."""

    LAZY = auto()
    """The producer runs on first resolution; the result is cached for all later ones."""

    VOLATILE = auto()
    """The producer runs on every resolution; nothing is cached."""


def infer_provided_type(producer: Callable[..., Any]) -> Any | None:
    """Infer the type a producer builds.

    Classes provide themselves. Functions provide their resolved return
    annotation. Lambdas and unannotated callables provide ``None``, which means
    the registration needs an explicit ``provides=`` or ``key=``.

    Args:
        producer: Zero-argument callable to inspect.

    """
    if is_runtime_class(producer):
        return producer
    try:
        hints = get_type_hints(producer, include_extras=True)
    except (AttributeError, NameError, TypeError):
        hints = {}
    return_annotation = hints.get("return", _EMPTY)
    if return_annotation is not _EMPTY:
        return return_annotation

    try:
        raw_annotation = inspect.signature(producer).return_annotation
    except (TypeError, ValueError):
        return None
    if raw_annotation is inspect.Signature.empty or isinstance(raw_annotation, str):
        return None
    return raw_annotation


def _producer_name(producer: Callable[..., Any]) -> str:
    return getattr(producer, "__qualname__", repr(producer))


class Registration(ABC, Generic[T]):
    """Abstract base class for the three registration strategies.

    A registration knows how to produce one value and which type it produces,
    but not under which key it is stored. ``Registry.register`` decides the key.
    """

    strategy: ClassVar[Strategy]

    @property
    @abstractmethod
    def provides(self) -> Any | None:
        """Return the type this registration produces, or ``None`` when unknown."""

    @abstractmethod
    def get(self) -> T:
        """Return the value according to this registration's strategy."""


@dataclass(frozen=True, slots=True, eq=False)
class Eager(Registration[T]):
    """A pre-built value returned unchanged on every resolution."""

    strategy: ClassVar[Strategy] = Strategy.EAGER

    value: T

    @property
    def provides(self) -> Any | None:
        return type(self.value)

    def get(self) -> T:
        return self.value

    def __repr__(self) -> str:
        return f"Eager({self.value!r})"


class LazyCached(Registration[T]):
    """A memoizing cell around a producer.

    The cache starts empty and is filled exactly once, on the first ``get``.
    After that the same object is returned for as long as this registration
    lives. With ``LockMode.THREAD`` concurrent first calls run the producer
    only once.
    """

    strategy: ClassVar[Strategy] = Strategy.LAZY

    __slots__ = ("_cache", "_lock", "_producer", "_provides")

    def __init__(
        self,
        producer: Producer[T],
        *,
        lock_mode: LockMode | None = None,
    ) -> None:
        self._producer = producer
        self._provides = infer_provided_type(producer)
        self._cache: T = _EMPTY
        self._lock = (lock_mode or DEFAULT_LOCK_MODE).new_lock()

    @property
    def provides(self) -> Any | None:
        return self._provides

    @property
    def producer(self) -> Producer[T]:
        return self._producer

    @property
    def is_cached(self) -> bool:
        """Return whether the producer has already run."""
        return self._cache is not _EMPTY

    def get(self) -> T:
        cached = self._cache
        if cached is not _EMPTY:
            return cached
        with self._lock:
            if self._cache is _EMPTY:
                logger.debug("Building lazy dependency with %s", _producer_name(self._producer))
                self._cache = self._producer()
            return self._cache

    def __repr__(self) -> str:
        state = "cached" if self.is_cached else "empty"
        return f"LazyCached({_producer_name(self._producer)}, {state})"


@dataclass(frozen=True, slots=True, eq=False)
class Volatile(Registration[T]):
    """A producer invoked on every resolution."""

    strategy: ClassVar[Strategy] = Strategy.VOLATILE

    producer: Producer[T]
    _provides: Any = field(init=False, repr=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "_provides", infer_provided_type(self.producer))

    @property
    def provides(self) -> Any | None:
        return self._provides

    def get(self) -> T:
        return self.producer()

    def __repr__(self) -> str:
        return f"Volatile({_producer_name(self.producer)})"


def eager(value: T) -> Eager[T]:
    """Wrap an already built value.

    Examples:
        .. code-block:: python

            registry.register(eager(AnalyticsService()), provides=AnalyticsTracking)

    """
    return Eager(value)


def lazy(producer: Producer[T], *, lock_mode: LockMode | None = None) -> LazyCached[T]:
    """Wrap a producer that runs once, on first resolution.

    Args:
        producer: Zero-argument callable or class.
        lock_mode: Guard for the cache cell. Defaults to ``INJECTED_LOCK_MODE``.

    Examples:
        .. code-block:: python

            registry.register(lazy(NetworkService))

    """
    return LazyCached(producer, lock_mode=lock_mode)


def volatile(producer: Producer[T]) -> Volatile[T]:
    """Wrap a producer that runs on every resolution."""
    return Volatile(producer)


__all__ = [
    "Eager",
    "LazyCached",
    "Producer",
    "Registration",
    "Strategy",
    "Volatile",
    "eager",
    "infer_provided_type",
    "lazy",
    "volatile",
]
