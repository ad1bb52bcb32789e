"""Storage folder and object name derivation."""

import threading
import time
from typing import Callable, Optional

from .models import UploadOptions


class MonotonicMillisClock:
    """Unix milliseconds that never repeat within the process."""

    def __init__(self, time_fn: Callable[[], float] = time.time):
        self._time_fn = time_fn
        self._last = 0
        self._lock = threading.Lock()

    def __call__(self) -> int:
        with self._lock:
            now = int(self._time_fn() * 1000)
            if now <= self._last:
                now = self._last + 1
            self._last = now
            return now


_default_clock = MonotonicMillisClock()


def _present(value: Optional[str]) -> bool:
    return bool(value)


class PathNamer:
    """Derives where variants are stored and how they are named.

    All methods are total: any combination of options yields a name.
    """

    ROOT_FOLDER = "uploads"
    DEFAULT_PREFIX = "image"

    def __init__(self, clock: Optional[Callable[[], int]] = None):
        self._clock = clock or _default_clock

    def resolve_folder(self, options: Optional[UploadOptions] = None) -> str:
        options = options or UploadOptions()
        user_id, category = options.user_id, options.category

        if _present(options.folder):
            return options.folder  # type: ignore[return-value]
        if _present(user_id) and _present(category):
            return f"{self.ROOT_FOLDER}/{category}/{user_id}"
        if _present(user_id):
            return f"{self.ROOT_FOLDER}/users/{user_id}"
        if _present(category):
            return f"{self.ROOT_FOLDER}/{category}"
        return self.ROOT_FOLDER

    def resolve_prefix(self, options: Optional[UploadOptions] = None) -> str:
        options = options or UploadOptions()
        parts = [part for part in (options.user_id, options.category) if _present(part)]
        return "_".join(parts) if parts else self.DEFAULT_PREFIX  # type: ignore[arg-type]

    def object_name(self, prefix: str, size_name: str) -> str:
        """Return ``{prefix}_{size_name}_{unix_millis}``, stamped at call time."""
        return f"{prefix}_{size_name}_{self._clock()}"
