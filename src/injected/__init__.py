from injected.exceptions import (
    InjectedError,
    InjectedInvalidRegistrationError,
    InjectedMissingRegistrationError,
    InjectedTypeMismatchError,
)
from injected.fields import Injected, LazyField
from injected.keys import dependency_key
from injected.lock_mode import LockMode
from injected.registrations import (
    Eager,
    LazyCached,
    Registration,
    Strategy,
    Volatile,
    eager,
    lazy,
    volatile,
)
from injected.registry import Registry, RegistryEntry
from injected.registry_context import (
    RegistryContext,
    current_registry,
    registry_context,
    with_override,
)
from injected.settings import DEFAULT_TIMING, Timing

__all__ = [
    "DEFAULT_TIMING",
    "Eager",
    "Injected",
    "InjectedError",
    "InjectedInvalidRegistrationError",
    "InjectedMissingRegistrationError",
    "InjectedTypeMismatchError",
    "LazyCached",
    "LazyField",
    "LockMode",
    "Registration",
    "Registry",
    "RegistryContext",
    "RegistryEntry",
    "Strategy",
    "Timing",
    "Volatile",
    "current_registry",
    "dependency_key",
    "eager",
    "lazy",
    "registry_context",
    "volatile",
    "with_override",
]
