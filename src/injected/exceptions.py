from __future__ import annotations

from typing import Any


class InjectedError(Exception):
    """Represent a base class for all injected-specific failures.

    Catch this type when you want to handle any registry error path without
    matching each concrete exception class individually.
    """


class InjectedInvalidRegistrationError(InjectedError):
    """Signal invalid registration, resolution, or field configuration.

    Raised by ``Registry.register`` when the registration object is not one of
    the supported strategies or when no key can be derived, by
    ``Registry.resolve`` when neither a dependency type nor a key is given, and
    by ``LazyField``/``Injected`` for the same reason.

    Typical fixes include passing ``provides=...`` or ``key=...`` explicitly, or
    annotating the producer's return type so it can be inferred.
    """


class InjectedMissingRegistrationError(InjectedError):
    """Signal that a dependency key has no registered entry.

    Raised by ``Registry.resolve`` and ``Registry.unregister``, and therefore by
    immediate-timing fields at construction and deferred fields on first read.

    Typical fix is registering the dependency in the ambient registry before
    it is resolved, or resolving by the key it was actually registered under
    (for example the protocol type rather than the concrete class).
    """

    def __init__(self, key: str) -> None:
        self.key = key
        msg = (
            f"Dependency '{key}' is not registered. "
            "Register it before resolution or check the key it was registered under."
        )
        super().__init__(msg)


class InjectedTypeMismatchError(InjectedError):
    """Signal that an entry exists at the key but for a different type.

    Raised by ``Registry.resolve`` when the requested dependency type does not
    match the type the entry was registered for. This happens with explicit
    string keys shared between unrelated registrations.

    Typical fixes include using distinct keys per type or resolving with the
    type the entry was registered for.
    """

    def __init__(self, key: str, expected: Any, registered: Any) -> None:
        self.key = key
        self.expected = expected
        self.registered = registered
        msg = (
            f"Dependency '{key}' contains invalid type: expected {expected!r}, "
            f"registered {registered!r}."
        )
        super().__init__(msg)
