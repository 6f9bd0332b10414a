"""
SQLite адаптер для Storage API.

Простейшая реализация без ORM.
Одна таблица: namespace | key | value (JSON as TEXT) | expires_at.
"""

import json
import sqlite3
import sys
import time
from pathlib import Path
from typing import Any, Optional
import asyncio

from .storage_adapter import StorageAdapter


class SQLiteAdapter(StorageAdapter):
    """SQLite адаптер для key-value хранилища с namespace и TTL.

    Все блокирующие операции выполняются в threadpool через `asyncio.to_thread`.
    Схема не создаётся автоматически — `initialize_schema()` вызывается явно.
    """

    def __init__(self, db_path: str = "data/sessions.db"):
        """
        Args:
            db_path: путь к файлу базы данных (или ':memory:' для in-memory БД)
        """
        self.db_path = db_path
        self._conn: Optional[sqlite3.Connection] = None

    def _get_connection(self) -> sqlite3.Connection:
        """Создать или вернуть существующее соединение.

        `check_same_thread=False` — соединение используется из threadpool.
        """
        if self._conn is None:
            self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
        return self._conn

    def _create_schema_sync(self) -> None:
        conn = self._get_connection()
        conn.execute("""
            CREATE TABLE IF NOT EXISTS storage (
                namespace TEXT NOT NULL,
                key TEXT NOT NULL,
                value TEXT NOT NULL,
                expires_at REAL,
                PRIMARY KEY (namespace, key)
            )
        """)
        conn.commit()

    async def initialize_schema(self) -> None:
        """Явная инициализация схемы хранилища.

        Для файловой БД создаёт директорию и таблицу.
        """
        if self.db_path != ":memory:":
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

        await asyncio.to_thread(self._create_schema_sync)

    async def get(self, namespace: str, key: str) -> Optional[dict[str, Any]]:
        """Получить значение из storage (выполняется в threadpool)."""

        def _get_sync(ns: str, k: str, now: float):
            conn = self._get_connection()
            cursor = conn.execute(
                "SELECT value FROM storage WHERE namespace = ? AND key = ? "
                "AND (expires_at IS NULL OR expires_at > ?)",
                (ns, k, now),
            )
            row = cursor.fetchone()
            if row is None or not isinstance(row[0], (str, bytes, bytearray)):
                return None
            try:
                return json.loads(row[0])
            except (json.JSONDecodeError, ValueError, TypeError) as e:
                # Повреждённая запись не должна ронять авторизацию
                print(
                    f"[SQLiteAdapter] Ошибка парсинга JSON для {ns}.{k}: {e}",
                    file=sys.stderr
                )
                return None

        return await asyncio.to_thread(_get_sync, namespace, key, time.time())

    async def set(
        self,
        namespace: str,
        key: str,
        value: dict[str, Any],
        ttl: Optional[float] = None,
    ) -> None:
        """Сохранить значение в storage (выполняется в threadpool)."""
        expires_at = time.time() + ttl if ttl is not None else None

        def _set_sync(ns: str, k: str, v: dict[str, Any]):
            conn = self._get_connection()
            conn.execute(
                "INSERT OR REPLACE INTO storage (namespace, key, value, expires_at) "
                "VALUES (?, ?, ?, ?)",
                (ns, k, json.dumps(v, ensure_ascii=False), expires_at),
            )
            conn.commit()

        await asyncio.to_thread(_set_sync, namespace, key, value)

    async def delete(self, namespace: str, key: str) -> bool:
        """Удалить значение из storage (выполняется в threadpool)."""

        def _delete_sync(ns: str, k: str):
            conn = self._get_connection()
            cursor = conn.execute(
                "DELETE FROM storage WHERE namespace = ? AND key = ?",
                (ns, k),
            )
            conn.commit()
            return cursor.rowcount > 0

        return await asyncio.to_thread(_delete_sync, namespace, key)

    async def list_keys(self, namespace: str) -> list[str]:
        """Получить список ключей в namespace (выполняется в threadpool)."""

        def _list_keys_sync(ns: str, now: float):
            conn = self._get_connection()
            cursor = conn.execute(
                "SELECT key FROM storage WHERE namespace = ? "
                "AND (expires_at IS NULL OR expires_at > ?)",
                (ns, now),
            )
            return [row[0] for row in cursor.fetchall()]

        return await asyncio.to_thread(_list_keys_sync, namespace, time.time())

    async def purge_expired(self) -> int:
        """Удалить истёкшие записи (выполняется в threadpool)."""

        def _purge_sync(now: float):
            conn = self._get_connection()
            cursor = conn.execute(
                "DELETE FROM storage WHERE expires_at IS NOT NULL AND expires_at <= ?",
                (now,),
            )
            conn.commit()
            return cursor.rowcount

        return await asyncio.to_thread(_purge_sync, time.time())

    async def close(self) -> None:
        """Закрыть соединение с БД (выполняется в threadpool)."""
        def _close_sync():
            if self._conn:
                try:
                    self._conn.close()
                finally:
                    self._conn = None

        await asyncio.to_thread(_close_sync)
