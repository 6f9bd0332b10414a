import logging

import pytest

from core import logger_helper
from core.config import Config
from core.storage import Storage
from core.storage_factory import create_storage, create_storage_adapter
from adapters.memory_adapter import MemoryAdapter


class TestConfig:
    """Тесты для Config."""

    def test_defaults_are_valid(self):
        """Тест: конфигурация по умолчанию проходит validate()."""
        config = Config()
        config.validate()
        assert config.storage_type == "sqlite"
        assert config.cookies_samesite == "lax"

    @pytest.mark.parametrize("kwargs", [
        {"storage_type": "postgres"},
        {"port": 0},
        {"env": "staging"},
        {"session_expiration_seconds": 0},
        {"purge_interval_seconds": 0},
        {"cookies_samesite": "relaxed"},
        {"cookies_samesite": "none", "cookies_secure": False},
        {"log_format": "xml"},
        {"log_level": "TRACE"},
    ])
    def test_invalid_values_rejected(self, kwargs):
        with pytest.raises(ValueError):
            Config(**kwargs).validate()

    def test_empty_cookie_domain_normalized(self):
        config = Config(cookies_domain="")
        config.validate()
        assert config.cookies_domain is None

    def test_from_env(self, monkeypatch):
        """Тест: from_env() читает RUNTIME_* переменные."""
        monkeypatch.setenv("RUNTIME_STORAGE_TYPE", "MEMORY")
        monkeypatch.setenv("RUNTIME_PORT", "9001")
        monkeypatch.setenv("RUNTIME_ENV", "production")
        monkeypatch.setenv("RUNTIME_COOKIES_SECURE", "true")
        monkeypatch.setenv("RUNTIME_COOKIES_SAMESITE", "none")
        monkeypatch.setenv("RUNTIME_LOG_FORMAT", "json")
        monkeypatch.setenv("LOG_LEVEL", "debug")
        monkeypatch.setenv("RUNTIME_PURGE_INTERVAL", "30")

        config = Config.from_env()

        assert config.storage_type == "memory"
        assert config.port == 9001
        assert config.env == "production"
        assert config.cookies_secure is True
        assert config.cookies_samesite == "none"
        assert config.log_format == "json"
        assert config.log_level == "DEBUG"
        assert config.purge_interval_seconds == 30

    def test_from_env_secure_auto_when_unset(self, monkeypatch):
        monkeypatch.delenv("RUNTIME_COOKIES_SECURE", raising=False)
        monkeypatch.setenv("RUNTIME_STORAGE_TYPE", "memory")
        assert Config.from_env().cookies_secure is None


class TestStorageFactory:

    @pytest.mark.asyncio
    async def test_memory_adapter(self):
        adapter = await create_storage_adapter(Config(storage_type="memory"))
        assert isinstance(adapter, MemoryAdapter)

    @pytest.mark.asyncio
    async def test_sqlite_storage(self, tmp_path):
        storage = await create_storage(Config(db_path=str(tmp_path / "s.db")))
        assert isinstance(storage, Storage)
        await storage.set("ns", "k", {"v": 1})
        assert await storage.get("ns", "k") == {"v": 1}
        await storage.close()


class TestLogging:

    @pytest.fixture(autouse=True)
    def restore_logger(self):
        logger = logging.getLogger(logger_helper.LOGGER_NAME)
        handlers, level, propagate = list(logger.handlers), logger.level, logger.propagate
        yield
        logger.handlers = handlers
        logger.setLevel(level)
        logger.propagate = propagate

    def test_text_format(self):
        record = logging.LogRecord("authservices", logging.INFO, __file__, 1, "Signed in", None, None)
        record.context = {"module": "auth", "scheme": "Application", "obj": object()}
        line = logger_helper.TextFormatter().format(record)
        assert line == "[INFO] [auth] Signed in (scheme=Application)"

    def test_json_format(self):
        import json

        record = logging.LogRecord("authservices", logging.WARNING, __file__, 1, "Bad session", None, None)
        record.context = {"module": "auth", "session": "abc"}
        event = json.loads(logger_helper.JsonFormatter().format(record))
        assert event == {
            "level": "WARNING",
            "message": "Bad session",
            "module": "auth",
            "context": {"session": "abc"},
        }

    def test_setup_logging_replaces_handler(self):
        logger = logger_helper.setup_logging("text", "DEBUG")
        logger_helper.setup_logging("json", "INFO")
        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0].formatter, logger_helper.JsonFormatter)
        assert logger.level == logging.INFO

    def test_log_passes_context(self, caplog):
        logger = logger_helper.setup_logging("text", "DEBUG")
        logger.propagate = True
        try:
            with caplog.at_level(logging.DEBUG, logger=logger_helper.LOGGER_NAME):
                logger_helper.debug("SAML2 command dispatched", module="saml2", command="acs")
        finally:
            logger.propagate = False
        record = caplog.records[-1]
        assert record.getMessage() == "SAML2 command dispatched"
        assert record.context == {"module": "saml2", "command": "acs"}
