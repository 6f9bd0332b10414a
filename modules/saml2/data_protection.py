"""
Data protection — защита relay data при round-trip через redirect/cookie.

DataProtector — инъецируемая возможность с двумя методами:
- protect(mapping) -> token
- unprotect(token) -> mapping (DataProtectionError если токен невалиден)

Реализации:
- JwtDataProtector — подписанный JWT (HS256), токен с чужим purpose не принимается
- PlaintextDataProtector — base64url JSON без защиты, для тестов и отладки
"""

import base64
import binascii
import json
import secrets
from abc import ABC, abstractmethod
from typing import Dict, Mapping, Optional

import jwt
from jwt.exceptions import InvalidTokenError

from core import logger_helper
from core.storage import Storage
from modules.auth.constants import AUTH_KEYS_NAMESPACE
from .constants import DATA_PROTECTION_PURPOSE
from .errors import DataProtectionError

JWT_ALGORITHM = "HS256"
PROTECTION_KEY_STORAGE_KEY = "saml2_data_protection_key"
PROTECTION_KEY_LENGTH = 32


class DataProtector(ABC):
    """Protect/unprotect для словаря строк."""

    @abstractmethod
    def protect(self, data: Mapping[str, str]) -> str:
        pass

    @abstractmethod
    def unprotect(self, token: str) -> Dict[str, str]:
        pass


def _check_mapping(data: Mapping[str, str]) -> Dict[str, str]:
    if not isinstance(data, Mapping):
        raise TypeError(f"data must be mapping, got {type(data).__name__}")
    result = {}
    for key, value in data.items():
        if not isinstance(key, str) or not isinstance(value, str):
            raise TypeError("data must map str to str")
        result[key] = value
    return result


class PlaintextDataProtector(DataProtector):
    """Без защиты: base64url(JSON). Только для тестов и локальной отладки."""

    def protect(self, data: Mapping[str, str]) -> str:
        raw = json.dumps(_check_mapping(data), ensure_ascii=False).encode("utf-8")
        return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")

    def unprotect(self, token: str) -> Dict[str, str]:
        try:
            padded = token + "=" * (-len(token) % 4)
            data = json.loads(base64.urlsafe_b64decode(padded.encode("ascii")))
        except (binascii.Error, UnicodeError, ValueError) as e:
            raise DataProtectionError(f"Malformed plaintext token: {e}") from e
        if not isinstance(data, dict):
            raise DataProtectionError("Plaintext token does not contain a mapping")
        return {str(k): str(v) for k, v in data.items()}


class JwtDataProtector(DataProtector):
    """
    Подписанный JWT (HS256).

    Гарантирует целостность и привязку к purpose, но не конфиденциальность:
    relay data не должна содержать секретов.

    Args:
        secret: ключ подписи
        purpose: назначение токена (токены других назначений отклоняются)
    """

    def __init__(self, secret: str, purpose: str = DATA_PROTECTION_PURPOSE):
        if not secret:
            raise ValueError("secret must be non-empty string")
        self._secret = secret
        self.purpose = purpose

    def protect(self, data: Mapping[str, str]) -> str:
        payload = {"purpose": self.purpose, "data": _check_mapping(data)}
        return jwt.encode(payload, self._secret, algorithm=JWT_ALGORITHM)

    def unprotect(self, token: str) -> Dict[str, str]:
        try:
            payload = jwt.decode(token, self._secret, algorithms=[JWT_ALGORITHM])
        except InvalidTokenError as e:
            raise DataProtectionError(f"Invalid protected token: {e}") from e

        if payload.get("purpose") != self.purpose:
            raise DataProtectionError("Protected token was issued for another purpose")
        data = payload.get("data")
        if not isinstance(data, dict):
            raise DataProtectionError("Protected token does not contain a mapping")
        return {str(k): str(v) for k, v in data.items()}


async def get_or_create_protection_key(storage: Storage, configured: Optional[str] = None) -> str:
    """
    Получает или создаёт ключ data protection.

    Явно заданный ключ (SAML2_DATA_PROTECTION_KEY) имеет приоритет. Иначе ключ
    берётся из storage, а при отсутствии генерируется и сохраняется, чтобы
    relay state переживал перезапуск процесса.
    """
    if configured:
        return configured

    data = await storage.get(AUTH_KEYS_NAMESPACE, PROTECTION_KEY_STORAGE_KEY)
    if data and isinstance(data.get("value"), str) and data["value"]:
        return data["value"]

    secret = secrets.token_urlsafe(PROTECTION_KEY_LENGTH)
    await storage.set(AUTH_KEYS_NAMESPACE, PROTECTION_KEY_STORAGE_KEY, {"value": secret})
    logger_helper.info("Generated new data protection key", module="saml2", key_length=len(secret))
    return secret
