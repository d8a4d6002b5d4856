from __future__ import annotations

from collections.abc import Iterator

import pytest

from injected.registry import Registry
from injected.registry_context import registry_context


@pytest.fixture()
def injected_registry() -> Iterator[Registry]:
    """Provide a fresh registry bound as the ambient registry for one test.

    Fields and ``current_registry()`` calls made during the test resolve from
    this registry. The previous ambient registry is restored after the test,
    whether it passes or fails, so registrations never leak between tests.

    Override this fixture in your own suite to pre-populate registrations:

    .. code-block:: python

        @pytest.fixture()
        def injected_registry(injected_registry: Registry) -> Registry:
            injected_registry.register(eager(FakeAnalytics()), provides=AnalyticsTracking)
            return injected_registry

    Yields:
        The registry bound for the test.

    """
    registry = Registry()
    with registry_context.override(registry):
        yield registry
