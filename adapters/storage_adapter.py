"""
Абстрактный интерфейс для storage адаптеров.

Хранилище работает по принципу namespace + key + JSON value
с опциональным временем жизни записи (TTL).
Используется для сессий (тикетов) и audit log.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional


class StorageAdapter(ABC):
    """Абстрактный адаптер для хранения данных."""

    @abstractmethod
    async def get(self, namespace: str, key: str) -> Optional[dict[str, Any]]:
        """
        Получить значение по ключу из namespace.

        Записи с истёкшим TTL не возвращаются.

        Args:
            namespace: пространство имён (например, "auth_sessions")
            key: ключ записи

        Returns:
            JSON-данные или None, если не найдено или истекло
        """
        pass

    @abstractmethod
    async def set(
        self,
        namespace: str,
        key: str,
        value: dict[str, Any],
        ttl: Optional[float] = None,
    ) -> None:
        """
        Сохранить значение по ключу в namespace.

        Args:
            namespace: пространство имён
            key: ключ записи
            value: JSON-данные для сохранения
            ttl: время жизни в секундах (None — бессрочно)
        """
        pass

    @abstractmethod
    async def delete(self, namespace: str, key: str) -> bool:
        """
        Удалить значение по ключу из namespace.

        Returns:
            True если запись была удалена, False если не существовала
        """
        pass

    @abstractmethod
    async def list_keys(self, namespace: str) -> list[str]:
        """Получить список живых (не истёкших) ключей в namespace."""
        pass

    @abstractmethod
    async def purge_expired(self) -> int:
        """
        Удалить все записи с истёкшим TTL.

        Returns:
            Количество удалённых записей
        """
        pass

    @abstractmethod
    async def close(self) -> None:
        """Закрыть соединение с хранилищем."""
        pass
