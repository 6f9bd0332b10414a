"""
Конфигурация хоста (FastAPI приложение + auth pipeline).

Минимальные настройки. SAML2-специфичные опции — в modules/saml2/options.py.
"""

import os
from dataclasses import dataclass
from typing import Optional


@dataclass
class Config:
    """Конфигурация хоста."""
    # Тип адаптера: "sqlite" или "memory"
    storage_type: str = "sqlite"

    # Путь к файлу БД (для SQLite)
    db_path: str = "data/sessions.db"

    # HTTP сервер
    host: str = "127.0.0.1"
    port: int = 8000

    # Security / Environment
    # "development" | "production"
    env: str = "development"

    # Время жизни cookie-сессии (секунды)
    session_expiration_seconds: int = 8 * 60 * 60

    # Период фоновой очистки истёкших записей storage (секунды)
    purge_interval_seconds: int = 10 * 60

    # Cookies
    # В production обычно: secure=True, samesite="lax", domain=None/your-domain
    cookies_secure: Optional[bool] = None  # None => auto (https => True)
    # SAML POST binding приходит cross-site, поэтому "strict" ломает ACS
    cookies_samesite: str = "lax"  # "lax" | "strict" | "none"
    cookies_domain: Optional[str] = None

    # Logging
    # "text" | "json"
    log_format: str = "text"
    log_level: str = "INFO"

    def validate(self) -> None:
        """
        Валидировать конфигурацию.

        Raises:
            ValueError: если конфигурация невалидна
        """
        if self.storage_type not in ("sqlite", "memory"):
            raise ValueError(
                f"storage_type must be 'sqlite' or 'memory', got: {self.storage_type!r}"
            )

        if self.storage_type == "sqlite":
            if not isinstance(self.db_path, str) or not self.db_path:
                raise ValueError("db_path must be non-empty string for SQLite storage")

        if not isinstance(self.port, int) or self.port <= 0 or self.port > 65535:
            raise ValueError(f"port must be integer between 1 and 65535, got: {self.port}")

        if self.env not in ("development", "production"):
            raise ValueError(f"env must be 'development' or 'production', got: {self.env!r}")

        if not isinstance(self.session_expiration_seconds, int) or self.session_expiration_seconds <= 0:
            raise ValueError(
                "session_expiration_seconds must be positive integer, "
                f"got: {self.session_expiration_seconds}"
            )

        if not isinstance(self.purge_interval_seconds, int) or self.purge_interval_seconds <= 0:
            raise ValueError(f"purge_interval_seconds must be positive integer, got: {self.purge_interval_seconds}")

        if self.cookies_samesite not in ("lax", "strict", "none"):
            raise ValueError("cookies_samesite must be one of: lax, strict, none")
        if self.cookies_samesite == "none" and self.cookies_secure is False:
            raise ValueError("cookies_samesite=none requires secure cookies")
        # allow empty string => None for domain
        if self.cookies_domain == "":
            self.cookies_domain = None

        if self.log_format not in ("text", "json"):
            raise ValueError("log_format must be 'text' or 'json'")
        if self.log_level.upper() not in ("DEBUG", "INFO", "WARNING", "ERROR"):
            raise ValueError(f"log_level must be DEBUG, INFO, WARNING or ERROR, got: {self.log_level!r}")

    @classmethod
    def from_env(cls) -> "Config":
        """
        Создать конфигурацию из переменных окружения.

        Raises:
            ValueError: если конфигурация невалидна
        """
        config = cls(
            storage_type=os.getenv("RUNTIME_STORAGE_TYPE", "sqlite").lower(),
            db_path=os.getenv("RUNTIME_DB_PATH", "data/sessions.db"),
            host=os.getenv("RUNTIME_HOST", "127.0.0.1"),
            port=int(os.getenv("RUNTIME_PORT", "8000")),
            env=os.getenv("RUNTIME_ENV", "development").lower(),
            session_expiration_seconds=int(os.getenv("RUNTIME_SESSION_EXPIRATION", str(8 * 60 * 60))),
            purge_interval_seconds=int(os.getenv("RUNTIME_PURGE_INTERVAL", str(10 * 60))),
            cookies_secure=(None if os.getenv("RUNTIME_COOKIES_SECURE") is None else os.getenv("RUNTIME_COOKIES_SECURE", "true").lower() == "true"),
            cookies_samesite=os.getenv("RUNTIME_COOKIES_SAMESITE", "lax").lower(),
            cookies_domain=os.getenv("RUNTIME_COOKIES_DOMAIN"),
            log_format=os.getenv("RUNTIME_LOG_FORMAT", "text").lower(),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )
        config.validate()
        return config
