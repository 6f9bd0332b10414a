"""
In-memory адаптер для Storage API.

Для разработки и тестов: данные живут до перезапуска процесса.
"""

import time
from typing import Any, Optional, Tuple

from .storage_adapter import StorageAdapter


class MemoryAdapter(StorageAdapter):
    """Key-value хранилище в памяти процесса с поддержкой TTL."""

    def __init__(self):
        # namespace -> key -> (value, expires_at)
        self._data: dict[str, dict[str, Tuple[dict[str, Any], Optional[float]]]] = {}
        self.closed = False

    @staticmethod
    def _alive(expires_at: Optional[float], now: float) -> bool:
        return expires_at is None or expires_at > now

    async def get(self, namespace: str, key: str) -> Optional[dict[str, Any]]:
        entry = self._data.get(namespace, {}).get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if not self._alive(expires_at, time.time()):
            return None
        return value

    async def set(
        self,
        namespace: str,
        key: str,
        value: dict[str, Any],
        ttl: Optional[float] = None,
    ) -> None:
        expires_at = time.time() + ttl if ttl is not None else None
        self._data.setdefault(namespace, {})[key] = (value, expires_at)

    async def delete(self, namespace: str, key: str) -> bool:
        ns = self._data.get(namespace, {})
        if key in ns:
            del ns[key]
            return True
        return False

    async def list_keys(self, namespace: str) -> list[str]:
        now = time.time()
        return [
            key for key, (_, expires_at) in self._data.get(namespace, {}).items()
            if self._alive(expires_at, now)
        ]

    async def purge_expired(self) -> int:
        now = time.time()
        removed = 0
        for ns in self._data.values():
            for key in [k for k, (_, exp) in ns.items() if not self._alive(exp, now)]:
                del ns[key]
                removed += 1
        return removed

    async def close(self) -> None:
        self.closed = True
