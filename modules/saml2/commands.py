"""
SAML2 commands — закрытый набор операций и их результат.

Команды (разбор/подпись SAML XML, построение metadata, binding) реализуются
снаружи этого модуля; здесь только контракт:

    Command.run(request: HttpRequestData, options: Saml2Options) -> CommandResult

request.response — накопитель ответа: команда может записать ответ сама
(например, POST binding форму) и вернуть handled_result=True.

Набор имён закрыт (CommandName). CommandRegistry проверяется при загрузке
конфигурации: неизвестное имя или команда не того вида — ошибка сразу,
а не на первом запросе.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Dict, Mapping, Optional, Union

from modules.auth.claims import ClaimsPrincipal
from .errors import UnknownOperation

if TYPE_CHECKING:
    from .options import Saml2Options
    from .request_data import HttpRequestData


class CommandName(str, Enum):
    """Имена операций — сегмент пути после module path."""
    ACS = "acs"
    SIGN_IN = "signin"
    LOGOUT = "logout"
    METADATA = "metadata"

    @classmethod
    def from_path(cls, remaining: str) -> "CommandName":
        """
        Разобрать остаток пути после module path.

        Регистр и завершающий '/' не учитываются; пустой остаток
        (сам module path) — metadata.

        Raises:
            UnknownOperation: если имя не из набора
        """
        name = remaining.strip("/").lower()
        if not name:
            return cls.METADATA
        try:
            return cls(name)
        except ValueError:
            raise UnknownOperation(remaining) from None


@dataclass(frozen=True)
class CommandResult:
    """
    Результат команды. Неизменяем, потребляется ровно один раз.

    Поля:
      - principal: аутентифицированный principal (ACS)
      - location: куда перенаправить
      - relay_data: непрозрачные данные, вернувшиеся от IdP (str -> str)
      - handled_result: команда уже сформировала ответ сама
      - http_status: статус ответа (None — 303 для redirect, 200 для content)
      - content / content_type: тело ответа (metadata)
      - request_state / set_cookie_name: состояние запроса, которое нужно
        сохранить в защищённой cookie до возврата от IdP
      - clear_cookie_name: cookie состояния, которую нужно удалить
      - terminate_local_session: завершить локальную сессию (logout от IdP)
    """
    principal: Optional[ClaimsPrincipal] = None
    location: Optional[str] = None
    relay_data: Mapping[str, str] = field(default_factory=dict, hash=False)
    handled_result: bool = False
    http_status: Optional[int] = None
    content: Optional[str] = None
    content_type: Optional[str] = None
    request_state: Optional[Mapping[str, str]] = field(default=None, hash=False)
    set_cookie_name: Optional[str] = None
    clear_cookie_name: Optional[str] = None
    terminate_local_session: bool = False


class Command(ABC):
    """Операция протокола."""

    @abstractmethod
    def run(self, request: "HttpRequestData", options: "Saml2Options") -> CommandResult:
        pass


class SignInCommand(Command):
    """
    Начало SSO: AuthnRequest к IdP.

    run() — вход по прямой ссылке /signin?idp=...&ReturnUrl=...;
    initiate() — вход из challenge приложения.
    """

    @abstractmethod
    def initiate(
        self,
        idp: Optional[str],
        return_url: Optional[str],
        request: "HttpRequestData",
        options: "Saml2Options",
        relay_data: Optional[Mapping[str, str]] = None,
    ) -> CommandResult:
        """idp=None — IdP по умолчанию или discovery service."""
        pass

    def run(self, request: "HttpRequestData", options: "Saml2Options") -> CommandResult:
        return self.initiate(
            request.query.get("idp"),
            request.query.get("ReturnUrl"),
            request,
            options,
        )


class LogoutCommand(Command):
    """
    SLO: run() обрабатывает входящий LogoutRequest/LogoutResponse от IdP,
    initiate() начинает logout по sign-out приложения.
    """

    @abstractmethod
    def initiate(
        self,
        request: "HttpRequestData",
        return_url: Optional[str],
        options: "Saml2Options",
    ) -> CommandResult:
        pass


# Без них SP не может ни войти, ни выйти
REQUIRED_COMMANDS = (CommandName.ACS, CommandName.SIGN_IN, CommandName.LOGOUT)

_REQUIRED_KIND = {
    CommandName.SIGN_IN: SignInCommand,
    CommandName.LOGOUT: LogoutCommand,
}


class CommandRegistry:
    """
    Отображение CommandName -> Command, проверенное при создании.

    Ключи — CommandName или их строковые значения.

    Raises:
        UnknownOperation: неизвестное имя команды
        TypeError: команда не того вида (например, signin не SignInCommand)
    """

    def __init__(self, commands: Mapping[Union[str, CommandName], Command]):
        self._commands: Dict[CommandName, Command] = {}
        for key, command in commands.items():
            try:
                name = CommandName(key.lower())
            except ValueError:
                raise UnknownOperation(str(key)) from None
            if not isinstance(command, Command):
                raise TypeError(f"Command {name.value!r} must be Command, got {type(command).__name__}")
            required = _REQUIRED_KIND.get(name)
            if required is not None and not isinstance(command, required):
                raise TypeError(f"Command {name.value!r} must be {required.__name__}")
            self._commands[name] = command

    def __contains__(self, name: CommandName) -> bool:
        return name in self._commands

    @property
    def names(self) -> frozenset:
        return frozenset(self._commands)

    def require(self, names=REQUIRED_COMMANDS) -> None:
        """
        Проверить, что все команды из names зарегистрированы.

        Raises:
            ValueError: каких-то команд нет
        """
        missing = [name.value for name in names if name not in self._commands]
        if missing:
            raise ValueError(f"Missing required SAML2 commands: {', '.join(missing)}")

    def get(self, name: CommandName) -> Command:
        """
        Raises:
            UnknownOperation: команда не зарегистрирована
        """
        command = self._commands.get(name)
        if command is None:
            raise UnknownOperation(name.value)
        return command

    @property
    def sign_in(self) -> SignInCommand:
        return self.get(CommandName.SIGN_IN)  # type: ignore[return-value]

    @property
    def logout(self) -> LogoutCommand:
        return self.get(CommandName.LOGOUT)  # type: ignore[return-value]
