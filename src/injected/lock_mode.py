from __future__ import annotations

import threading
from contextlib import AbstractContextManager, nullcontext
from enum import Enum
from typing import Any


class LockMode(Enum):
    """Select locking behavior for the registry mapping and cached cells.

    Use these values for ``Registry(lock_mode=...)``, ``lazy(..., lock_mode=...)``
    and ``LazyField(..., lock_mode=...)``. The process default comes from
    ``INJECTED_LOCK_MODE`` and is ``THREAD``.

    Prefer ``NONE`` only when every registration and resolution happens on one
    designated thread.
    """

    THREAD = "thread"
    """Guard mappings and cached values with ``threading.RLock``."""

    NONE = "none"
    """Disable locking around cache reads/writes and mapping updates."""

    def new_lock(self) -> AbstractContextManager[Any]:
        """Return a fresh guard for this mode.

        ``NONE`` returns a reusable no-op context manager so callers can always
        write ``with guard: ...``.
        """
        if self is LockMode.THREAD:
            return threading.RLock()
        return nullcontext()
