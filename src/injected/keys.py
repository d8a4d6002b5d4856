from __future__ import annotations

import types
from typing import Any, TypeGuard, Union, get_args, get_origin

from injected.exceptions import InjectedInvalidRegistrationError


def is_runtime_class(candidate: object) -> TypeGuard[type[Any]]:
    """Return true when candidate is a runtime class safe for class-only operations.

    Args:
        candidate: Value being checked.

    """
    return isinstance(candidate, type) and not isinstance(candidate, types.GenericAlias)


def dependency_key(dependency: Any) -> str:
    """Derive the canonical registry key for a dependency type.

    Runtime classes map to ``"<module>.<qualname>"`` so two classes that share
    a short name in different modules never collide. Unions are normalized:
    ``Optional[A]``, ``Union[A, None]`` and ``A | None`` share one key built
    from the canonical keys of their members in sorted order. Other typing
    objects such as ``Annotated[...]`` or ``list[int]`` map to their ``repr``,
    which is stable for equal aliases. Unions nested inside such objects are
    not normalized, so ``list[Optional[A]]`` and ``list[A | None]`` differ.

    Args:
        dependency: Type, protocol, or typing construct used as the key.

    Returns:
        The string key used for storage and lookup.

    Raises:
        InjectedInvalidRegistrationError: If ``dependency`` is ``None`` or a
            string. Strings are keys, not types; pass them as ``key=...``.

    Examples:
        .. code-block:: python

            dependency_key(int)  # "builtins.int"
            dependency_key(Annotated[Db, "replica"])

    """
    if dependency is None or isinstance(dependency, str):
        msg = (
            f"Cannot derive a registry key from {dependency!r}. "
            "Pass a type as the dependency or an explicit key=..."
        )
        raise InjectedInvalidRegistrationError(msg)
    if is_runtime_class(dependency):
        return f"{dependency.__module__}.{dependency.__qualname__}"
    if get_origin(dependency) in (Union, types.UnionType):
        members = sorted(dependency_key(member) for member in get_args(dependency))
        return f"Union[{', '.join(members)}]"
    return repr(dependency)


def select_key(dependency: Any, key: str | None) -> str:
    """Return the explicit key when given, otherwise the key derived from ``dependency``."""
    if key is not None:
        return key
    return dependency_key(dependency)


__all__ = ["dependency_key", "is_runtime_class", "select_key"]
