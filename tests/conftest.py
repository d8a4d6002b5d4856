"""Shared pytest fixtures for injected tests."""

from collections.abc import Iterator

import pytest

from injected.lock_mode import LockMode
from injected.registry import Registry
from injected.registry_context import registry_context

pytest_plugins = ["injected.integrations.pytest_plugin", "pytester"]


@pytest.fixture(autouse=True)
def _fresh_default_registry() -> Iterator[Registry]:
    """Give every test its own default ambient registry."""
    previous = registry_context.get_default()
    default = Registry()
    registry_context.set_default(default)
    yield default
    registry_context.set_default(previous)


@pytest.fixture()
def registry() -> Registry:
    """Standalone registry that is not bound as the ambient one."""
    return Registry()


@pytest.fixture()
def unlocked_registry() -> Registry:
    """Registry without a mapping lock."""
    return Registry(lock_mode=LockMode.NONE)
