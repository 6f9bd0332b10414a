"""
Storage API - единый интерфейс для работы с хранилищем.

Модули авторизации работают ТОЛЬКО через этот API.
Никакого прямого доступа к БД.
"""

import asyncio
from typing import Any, Optional

from adapters.storage_adapter import StorageAdapter
from core import logger_helper


def _require_name(label: str, value: Any) -> None:
    if not isinstance(value, str) or not value:
        raise ValueError(
            f"{label} must be non-empty string, got {type(value).__name__}: {value!r}"
        )


class Storage:
    """
    Storage API.

    Простой интерфейс: namespace + key + JSON value (+ опциональный TTL).
    Без моделей, без ORM, без схемы.
    """

    def __init__(self, adapter: StorageAdapter):
        """ Инициализация Storage. adapter: адаптер для работы с хранилищем """
        self._adapter = adapter

    async def get(self, namespace: str, key: str) -> Optional[dict[str, Any]]:
        """
        Получить значение.

        Returns:
            Значение или None если не найдено (или истекло)

        Raises:
            ValueError: если namespace или key пустые или не строки

        Пример:
            ticket = await storage.get("auth_sessions", session_id)
        """
        _require_name("namespace", namespace)
        _require_name("key", key)
        return await self._adapter.get(namespace, key)

    async def set(
        self,
        namespace: str,
        key: str,
        value: dict[str, Any],
        ttl: Optional[float] = None,
    ) -> None:
        """
        Сохранить значение.

        Args:
            namespace: пространство имён (непустая строка)
            key: ключ записи (непустая строка)
            value: данные для сохранения (должен быть dict)
            ttl: время жизни записи в секундах (None — бессрочно)

        Raises:
            TypeError: если value не является dict
            ValueError: если namespace или key пустые, или ttl не положительный
        """
        if not isinstance(value, dict):
            raise TypeError(
                f"value must be dict, got {type(value).__name__}: {value}"
            )
        _require_name("namespace", namespace)
        _require_name("key", key)
        if ttl is not None and ttl <= 0:
            raise ValueError(f"ttl must be positive, got: {ttl}")

        await self._adapter.set(namespace, key, value, ttl=ttl)

    async def delete(self, namespace: str, key: str) -> bool:
        """
        Удалить значение.

        Returns:
            True если запись была удалена, False если не существовала
        """
        _require_name("namespace", namespace)
        _require_name("key", key)
        return await self._adapter.delete(namespace, key)

    async def list_keys(self, namespace: str) -> list[str]:
        """Получить список всех живых ключей в namespace."""
        _require_name("namespace", namespace)
        return await self._adapter.list_keys(namespace)

    async def purge_expired(self) -> int:
        """Удалить записи с истёкшим TTL. Возвращает количество удалённых."""
        return await self._adapter.purge_expired()

    async def close(self) -> None:
        """Закрыть соединение."""
        await self._adapter.close()


async def purge_expired_periodically(storage: Storage, interval: float) -> None:
    """
    Фоновая очистка истёкших записей (сессии, журнал аудита).

    Записи с TTL, которые никто не читает, иначе остаются в SQLite навсегда.
    Работает до отмены задачи; ошибка очистки логируется и не останавливает цикл.
    """
    while True:
        await asyncio.sleep(interval)
        try:
            removed = await storage.purge_expired()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger_helper.error(f"Storage purge failed: {e}", module="storage", error_type=type(e).__name__)
            continue
        if removed:
            logger_helper.debug("Expired records purged", module="storage", removed=removed)
