"""
Core — конфигурация, хранилище и логирование сервиса.
"""

from .config import Config
from .storage import Storage
from .storage_factory import create_storage, create_storage_adapter
from .logger_helper import setup_logging, debug, info, warning, error

__all__ = [
    "Config",
    "Storage",
    "create_storage",
    "create_storage_adapter",
    "setup_logging",
    "debug",
    "info",
    "warning",
    "error",
]
