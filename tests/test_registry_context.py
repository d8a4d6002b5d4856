from __future__ import annotations

import asyncio
import threading

import pytest

import injected
from injected.registrations import eager
from injected.registry import Registry
from injected.registry_context import (
    RegistryContext,
    current_registry,
    registry_context,
    with_override,
)


class _StubService:
    def __init__(self, label: str) -> None:
        self.label = label


def _registry_with(label: str) -> Registry:
    registry = Registry()
    registry.register(eager(_StubService(label)))
    return registry


def _resolved_label() -> str:
    return current_registry().resolve(_StubService).label


def test_top_level_registry_context_export_is_available() -> None:
    assert isinstance(injected.registry_context, RegistryContext)


def test_current_defaults_to_default_registry(_fresh_default_registry: Registry) -> None:
    assert registry_context.get_current() is _fresh_default_registry
    assert current_registry() is _fresh_default_registry


def test_override_scopes_resolution_to_the_block() -> None:
    registry_context.get_current().register(eager(_StubService("outer")))
    scoped = _registry_with("scoped")

    resolved_in_scope = with_override(scoped, _resolved_label)

    assert resolved_in_scope == "scoped"
    assert _resolved_label() == "outer"


def test_override_is_visible_through_nested_calls() -> None:
    def inner() -> str:
        return _resolved_label()

    def outer() -> str:
        return inner()

    with registry_context.override(_registry_with("scoped")) as bound:
        assert registry_context.get_current() is bound
        assert outer() == "scoped"


def test_nested_overrides_restore_in_stack_order() -> None:
    ambient = registry_context.get_current()
    outer_registry = _registry_with("outer")
    inner_registry = _registry_with("inner")

    with registry_context.override(outer_registry):
        assert _resolved_label() == "outer"
        with registry_context.override(inner_registry):
            assert _resolved_label() == "inner"
        assert _resolved_label() == "outer"

    assert registry_context.get_current() is ambient


def test_override_is_restored_after_exception() -> None:
    ambient = registry_context.get_current()

    def failing() -> None:
        assert _resolved_label() == "scoped"
        raise ValueError("boom")

    with pytest.raises(ValueError, match="boom"):
        with_override(_registry_with("scoped"), failing)

    assert registry_context.get_current() is ambient


def test_with_override_passes_arguments_and_returns_result() -> None:
    def combine(prefix: str, *, suffix: str) -> str:
        return f"{prefix}{_resolved_label()}{suffix}"

    result = registry_context.with_override(
        _registry_with("scoped"),
        combine,
        "<",
        suffix=">",
    )

    assert result == "<scoped>"


def test_set_default_changes_fallback_but_not_active_override() -> None:
    replacement = _registry_with("replacement")
    scoped = _registry_with("scoped")

    with registry_context.override(scoped):
        registry_context.set_default(replacement)
        assert _resolved_label() == "scoped"

    assert registry_context.get_default() is replacement
    assert _resolved_label() == "replacement"


def test_independent_context_has_own_default() -> None:
    default = _registry_with("own")
    context = RegistryContext(default)

    assert context.get_current() is default
    assert context.resolve(_StubService).label == "own"
    assert registry_context.get_current() is not default


def test_override_does_not_leak_into_other_threads(_fresh_default_registry: Registry) -> None:
    seen: list[Registry] = []
    entered = threading.Event()
    checked = threading.Event()

    def worker() -> None:
        entered.wait()
        seen.append(registry_context.get_current())
        checked.set()

    thread = threading.Thread(target=worker)
    thread.start()
    with registry_context.override(_registry_with("scoped")):
        entered.set()
        checked.wait()
    thread.join()

    assert seen == [_fresh_default_registry]


@pytest.mark.asyncio
async def test_awith_override_spans_await_points() -> None:
    async def body(delay: float) -> str:
        before = _resolved_label()
        await asyncio.sleep(delay)
        return before + "/" + _resolved_label()

    result = await registry_context.awith_override(_registry_with("scoped"), body, 0)

    assert result == "scoped/scoped"


@pytest.mark.asyncio
async def test_overrides_are_isolated_between_tasks() -> None:
    first_entered = asyncio.Event()
    second_checked = asyncio.Event()

    async def first() -> str:
        with registry_context.override(_registry_with("first")):
            first_entered.set()
            await second_checked.wait()
            return _resolved_label()

    async def second() -> Registry:
        await first_entered.wait()
        current = registry_context.get_current()
        second_checked.set()
        return current

    ambient = registry_context.get_current()
    first_label, second_registry = await asyncio.gather(first(), second())

    assert first_label == "first"
    assert second_registry is ambient


@pytest.mark.asyncio
async def test_task_created_inside_override_inherits_it() -> None:
    async def child() -> str:
        return _resolved_label()

    with registry_context.override(_registry_with("parent")):
        label = await asyncio.create_task(child())

    assert label == "parent"
