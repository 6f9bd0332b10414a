"""
Адаптеры хранилища для сессий и audit log.
"""

from .storage_adapter import StorageAdapter
from .sqlite_adapter import SQLiteAdapter
from .memory_adapter import MemoryAdapter

__all__ = [
    "StorageAdapter",
    "SQLiteAdapter",
    "MemoryAdapter",
]
