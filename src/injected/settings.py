"""Process-wide configuration read once at import time.

The values here are fixed for the lifetime of the interpreter. Changing
``INJECTED_EAGER_RESOLVE`` after ``injected`` has been imported has no effect,
which keeps every field in one process on the same resolution timing.
"""

from __future__ import annotations

from enum import Enum

from pydantic_settings import BaseSettings, SettingsConfigDict

from injected.lock_mode import LockMode


class Timing(Enum):
    """Select when a field resolves its dependency."""

    DEFERRED = "deferred"
    """Resolve from the ambient registry on first read."""

    IMMEDIATE = "immediate"
    """Resolve from the ambient registry while the field is constructed."""


class InjectedSettings(BaseSettings):
    """Environment-driven defaults for registries and fields.

    Attributes:
        eager_resolve: Make every field without an explicit ``timing`` resolve
            at construction. Useful in test runs so a missing registration
            fails where the object is built.
        lock_mode: Default lock strategy for new registries, lazy cells and
            fields.

    """

    model_config = SettingsConfigDict(env_prefix="INJECTED_")

    eager_resolve: bool = False
    lock_mode: LockMode = LockMode.THREAD


SETTINGS = InjectedSettings()

DEFAULT_TIMING: Timing = Timing.IMMEDIATE if SETTINGS.eager_resolve else Timing.DEFERRED
DEFAULT_LOCK_MODE: LockMode = SETTINGS.lock_mode

__all__ = [
    "DEFAULT_LOCK_MODE",
    "DEFAULT_TIMING",
    "SETTINGS",
    "InjectedSettings",
    "Timing",
]
