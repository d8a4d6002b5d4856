from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, ParamSpec, TypeVar

from injected.registry import Registry

T = TypeVar("T")
P = ParamSpec("P")

logger = logging.getLogger(__name__)


class RegistryContext:
    """Task/thread-local slot holding the ambient registry.

    ``get_current`` returns the default registry unless a block of work runs
    under ``override``. Overrides follow ``contextvars`` semantics: they are
    visible to every call made inside the block (including ``await`` points of
    the same task), nest with stack discipline, are undone on every exit path,
    and never leak into other threads or independently scheduled asyncio tasks.

    Examples:
        .. code-block:: python

            test_registry = Registry()
            test_registry.register(eager(FakeAnalytics()), provides=AnalyticsTracking)

            with registry_context.override(test_registry):
                view_model = ProfileViewModel()
                view_model.analytics  # FakeAnalytics

    """

    __slots__ = ("_current_registry_var", "_default_registry")

    def __init__(self, default: Registry | None = None) -> None:
        self._default_registry = default if default is not None else Registry()
        self._current_registry_var: ContextVar[Registry | None] = ContextVar(
            "injected_registry_context_registry",
            default=None,
        )

    def get_default(self) -> Registry:
        """Return the registry used when no override is active."""
        return self._default_registry

    def set_default(self, registry: Registry) -> None:
        """Replace the registry used when no override is active.

        Active overrides keep taking precedence. Intended for application
        bootstrap, before any field reads the ambient registry.
        """
        self._default_registry = registry

    def get_current(self) -> Registry:
        """Return the ambient registry for the calling thread or task."""
        current = self._current_registry_var.get()
        if current is None:
            return self._default_registry
        return current

    @contextmanager
    def override(self, registry: Registry) -> Iterator[Registry]:
        """Bind ``registry`` as the ambient registry for the ``with`` block.

        The previous binding is restored when the block exits, also when it
        exits with an exception.

        Args:
            registry: Registry to expose through ``get_current``.

        Yields:
            The bound registry.

        """
        token = self._current_registry_var.set(registry)
        logger.debug("Entered registry override %r", registry)
        try:
            yield registry
        finally:
            self._current_registry_var.reset(token)
            logger.debug("Exited registry override %r", registry)

    def with_override(
        self,
        registry: Registry,
        body: Callable[P, T],
        *args: P.args,
        **kwargs: P.kwargs,
    ) -> T:
        """Run ``body`` with ``registry`` as the ambient registry and return its result."""
        with self.override(registry):
            return body(*args, **kwargs)

    async def awith_override(
        self,
        registry: Registry,
        body: Callable[P, Awaitable[T]],
        *args: P.args,
        **kwargs: P.kwargs,
    ) -> T:
        """Await ``body`` with ``registry`` as the ambient registry and return its result."""
        with self.override(registry):
            return await body(*args, **kwargs)

    def resolve(self, dependency: Any = None, *, key: str | None = None) -> Any:
        """Resolve via the ambient registry."""
        return self.get_current().resolve(dependency, key=key)


registry_context = RegistryContext()


def current_registry() -> Registry:
    """Return the ambient registry of the shared ``registry_context``."""
    return registry_context.get_current()


def with_override(
    registry: Registry,
    body: Callable[P, T],
    *args: P.args,
    **kwargs: P.kwargs,
) -> T:
    """Run ``body`` under ``registry_context.override(registry)`` and return its result."""
    return registry_context.with_override(registry, body, *args, **kwargs)


__all__ = [
    "RegistryContext",
    "current_registry",
    "registry_context",
    "with_override",
]
