"""
Конфигурация SAML2 service provider.

Создаётся один раз при старте, дальше только читается и разделяется всеми
запросами без блокировок (frozen dataclasses).
"""

import os
from dataclasses import dataclass, field
from typing import Mapping, Optional, Union

from .commands import Command, CommandName, CommandRegistry
from .constants import (
    DEFAULT_AUTHENTICATION_SCHEME,
    DEFAULT_GRANT_SCHEME,
    DEFAULT_MODULE_PATH,
    DEFAULT_SIGN_IN_AS_SCHEME,
)
from .data_protection import DataProtector


@dataclass(frozen=True)
class SPOptions:
    """Параметры service provider."""
    # Префикс URL, зарезервированный под SAML2 endpoints
    module_path: str = DEFAULT_MODULE_PATH
    # entityID SP, регистрируется у IdP
    entity_id: Optional[str] = None
    # Внешний адрес приложения за reverse proxy (None: адрес из запроса)
    public_origin: Optional[str] = None
    # Куда вернуть пользователя, если ReturnUrl не передан
    return_url: Optional[str] = None

    def validate(self) -> None:
        """
        Raises:
            ValueError: если параметры невалидны
        """
        if not isinstance(self.module_path, str) or not self.module_path.startswith("/"):
            raise ValueError(f"module_path must start with '/', got: {self.module_path!r}")
        if self.module_path.endswith("/"):
            raise ValueError(f"module_path must not end with '/', got: {self.module_path!r}")
        if self.public_origin is not None and not self.public_origin.startswith(("http://", "https://")):
            raise ValueError(f"public_origin must be absolute http(s) URL, got: {self.public_origin!r}")


@dataclass(frozen=True)
class Saml2Options:
    """
    Конфигурация SAML2 handler.

    Схемы:
      - authentication_scheme — схема самого SAML2 handler; записывается
        в items тикета под ключом LoginProvider
      - sign_in_as_scheme — схема, в которую сохраняется внешняя identity после ACS
      - grant_scheme — схема локального grant; при его sign-in к нему копируются
        SessionIndex и LogoutNameIdentifier из внешней identity
    """
    data_protector: DataProtector
    commands: CommandRegistry
    sp_options: SPOptions = field(default_factory=SPOptions)
    authentication_scheme: str = DEFAULT_AUTHENTICATION_SCHEME
    sign_in_as_scheme: str = DEFAULT_SIGN_IN_AS_SCHEME
    grant_scheme: str = DEFAULT_GRANT_SCHEME

    def __post_init__(self):
        self.validate()

    @property
    def module_path(self) -> str:
        return self.sp_options.module_path

    def validate(self) -> None:
        """
        Raises:
            ValueError: если конфигурация невалидна
            TypeError: если data_protector/commands не того типа
        """
        self.sp_options.validate()

        if not isinstance(self.data_protector, DataProtector):
            raise TypeError(
                f"data_protector must be DataProtector, got {type(self.data_protector).__name__}"
            )
        if not isinstance(self.commands, CommandRegistry):
            raise TypeError(f"commands must be CommandRegistry, got {type(self.commands).__name__}")

        for label in ("authentication_scheme", "sign_in_as_scheme", "grant_scheme"):
            value = getattr(self, label)
            if not isinstance(value, str) or not value.strip():
                raise ValueError(f"{label} must be non-empty string")
        if self.authentication_scheme in (self.sign_in_as_scheme, self.grant_scheme):
            raise ValueError("authentication_scheme must differ from sign_in_as_scheme and grant_scheme")

    @classmethod
    def from_env(
        cls,
        commands: Union[CommandRegistry, Mapping[Union[str, CommandName], Command]],
        data_protector: DataProtector,
    ) -> "Saml2Options":
        """
        Создать конфигурацию из переменных окружения SAML2_*.

        Raises:
            ValueError: если конфигурация невалидна или нет acs/signin/logout
            UnknownOperation: если в commands неизвестное имя команды
        """
        if not isinstance(commands, CommandRegistry):
            commands = CommandRegistry(commands)
        commands.require()

        sp_options = SPOptions(
            module_path=os.getenv("SAML2_MODULE_PATH", DEFAULT_MODULE_PATH),
            entity_id=os.getenv("SAML2_ENTITY_ID") or None,
            public_origin=os.getenv("SAML2_PUBLIC_ORIGIN") or None,
            return_url=os.getenv("SAML2_RETURN_URL") or None,
        )
        return cls(
            data_protector=data_protector,
            commands=commands,
            sp_options=sp_options,
            authentication_scheme=os.getenv("SAML2_AUTHENTICATION_SCHEME", DEFAULT_AUTHENTICATION_SCHEME),
            sign_in_as_scheme=os.getenv("SAML2_SIGN_IN_AS_SCHEME", DEFAULT_SIGN_IN_AS_SCHEME),
            grant_scheme=os.getenv("SAML2_GRANT_SCHEME", DEFAULT_GRANT_SCHEME),
        )
