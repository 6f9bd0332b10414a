"""
Фабрика хранилища сессий.

Выбирает адаптер (SQLite или in-memory) по конфигурации и оборачивает его в Storage.
"""

from core.config import Config
from core.storage import Storage
from adapters.storage_adapter import StorageAdapter


async def create_storage_adapter(config: Config) -> StorageAdapter:
    """
    Создать storage адаптер на основе конфигурации.

    Raises:
        ValueError: если указан неизвестный тип адаптера или конфигурация невалидна
    """
    config.validate()

    if config.storage_type == "sqlite":
        from adapters.sqlite_adapter import SQLiteAdapter
        adapter = SQLiteAdapter(config.db_path)
        await adapter.initialize_schema()
        return adapter

    if config.storage_type == "memory":
        from adapters.memory_adapter import MemoryAdapter
        return MemoryAdapter()

    raise ValueError(
        f"Неизвестный тип storage: {config.storage_type}. "
        f"Доступные типы: sqlite, memory"
    )


async def create_storage(config: Config) -> Storage:
    """Создать Storage поверх адаптера из конфигурации."""
    return Storage(await create_storage_adapter(config))
