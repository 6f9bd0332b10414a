"""
Logger Helper - логирование для auth pipeline и SAML2 модуля.

Все компоненты пишут через один logger `authservices`:
    from core.logger_helper import info
    info("SAML2 command dispatched", module="saml2", command="acs")

Формат логов:
- text (по умолчанию) — [LEVEL] [module] message (key=value ...)
- json — одна строка JSON на событие (для production / ELK / Loki)

`setup_logging()` вызывается один раз при старте приложения (main.py).
Root logger не трогаем.
"""

import json
import logging
import sys
from typing import Any, Optional

LOGGER_NAME = "authservices"

_logger = logging.getLogger(LOGGER_NAME)

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


class TextFormatter(logging.Formatter):
    """[LEVEL] [module] message (context)"""

    def format(self, record: logging.LogRecord) -> str:
        context = getattr(record, "context", {}) or {}
        parts = [f"[{record.levelname}]"]
        module = context.get("module")
        if module:
            parts.append(f"[{module}]")
        parts.append(record.getMessage())
        important_context = {
            k: v for k, v in context.items()
            if k != "module" and isinstance(v, (str, int, float, bool, type(None)))
        }
        if important_context:
            context_str = " ".join(f"{k}={v}" for k, v in important_context.items())
            parts.append(f"({context_str})")
        line = " ".join(parts)
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


class JsonFormatter(logging.Formatter):
    """Структурированный JSON лог (одна строка на событие)."""

    def format(self, record: logging.LogRecord) -> str:
        context = dict(getattr(record, "context", {}) or {})
        event: dict[str, Any] = {
            "level": record.levelname,
            "message": record.getMessage(),
        }
        module = context.pop("module", None)
        if module:
            event["module"] = module
        safe_ctx: dict[str, Any] = {}
        for k, v in context.items():
            if isinstance(v, (str, int, float, bool, type(None), dict, list)):
                safe_ctx[k] = v
            else:
                safe_ctx[k] = str(v)
        if safe_ctx:
            event["context"] = safe_ctx
        if record.exc_info:
            event["exception"] = self.formatException(record.exc_info)
        return json.dumps(event, ensure_ascii=False)


def setup_logging(log_format: str = "text", level: str = "INFO") -> logging.Logger:
    """
    Настроить logger `authservices`.

    Повторный вызов заменяет handler, а не добавляет второй.

    Args:
        log_format: "text" или "json"
        level: DEBUG, INFO, WARNING, ERROR
    """
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter() if log_format == "json" else TextFormatter())

    for old in list(_logger.handlers):
        _logger.removeHandler(old)
    _logger.addHandler(handler)
    _logger.setLevel(getattr(logging, (level or "INFO").upper(), logging.INFO))
    _logger.propagate = False
    return _logger


def log(level: str, message: str, exc_info: Optional[bool] = None, **context: Any) -> None:
    """
    Записать лог сообщение.

    Args:
        level: уровень логирования (debug, info, warning, error)
        message: сообщение
        exc_info: приложить traceback текущего исключения
        **context: дополнительный контекст (module, scheme, path, ...)
    """
    lvl = _LEVELS.get((level or "info").lower(), logging.INFO)
    _logger.log(lvl, message, exc_info=exc_info, extra={"context": context})


def debug(message: str, **context: Any) -> None:
    """Логировать debug сообщение."""
    log("debug", message, **context)


def info(message: str, **context: Any) -> None:
    """Логировать info сообщение."""
    log("info", message, **context)


def warning(message: str, **context: Any) -> None:
    """Логировать warning сообщение."""
    log("warning", message, **context)


def error(message: str, **context: Any) -> None:
    """Логировать error сообщение."""
    log("error", message, **context)
