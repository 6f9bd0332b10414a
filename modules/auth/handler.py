"""
Базовый класс обработчиков аутентификации (AuthenticationHandler).

Handler отвечает за одну схему (scheme) и реализует нужное подмножество операций:
- handle_request() — забрать запрос целиком (например, SAML ACS/metadata)
- authenticate() — получить principal схемы для текущего запроса
- sign_in() / sign_out() — сохранить / удалить аутентификацию
- challenge() — начать вход (redirect на IdP или login страницу)
- on_signing_in() — hook, вызывается у ВСЕХ handlers перед sign_in любой схемы

КОНТРАКТ:
- Handler не хранит состояние запроса в self: всё состояние — в HttpContext
- Один экземпляр handler разделяется всеми запросами
- Операции, которые схема не поддерживает, бросают NotImplementedError
"""

from abc import ABC, abstractmethod

from .claims import ClaimsPrincipal
from .context import HttpContext
from .ticket import AuthenticateResult, AuthenticationProperties


class AuthenticationHandler(ABC):
    """Базовый класс обработчика схемы аутентификации."""

    @property
    @abstractmethod
    def scheme(self) -> str:
        """
        Уникальное имя схемы.

        Returns:
            имя схемы (например, "Saml2", "Application")
        """
        pass

    async def handle_request(self, context: HttpContext) -> bool:
        """
        Обработать запрос целиком, минуя приложение.

        Returns:
            True если ответ сформирован handler'ом, False — передать дальше.

        По умолчанию — не обрабатывает ничего.
        """
        return False

    async def authenticate(self, context: HttpContext) -> AuthenticateResult:
        """По умолчанию — схема ничего не знает о запросе."""
        return AuthenticateResult.none()

    async def sign_in(
        self,
        context: HttpContext,
        principal: ClaimsPrincipal,
        properties: AuthenticationProperties,
    ) -> None:
        raise NotImplementedError(f"Scheme {self.scheme!r} does not support sign-in")

    async def sign_out(self, context: HttpContext, properties: AuthenticationProperties) -> None:
        raise NotImplementedError(f"Scheme {self.scheme!r} does not support sign-out")

    async def challenge(self, context: HttpContext, properties: AuthenticationProperties) -> None:
        raise NotImplementedError(f"Scheme {self.scheme!r} does not support challenge")

    async def on_signing_in(
        self,
        context: HttpContext,
        scheme: str,
        principal: ClaimsPrincipal,
        properties: AuthenticationProperties,
    ) -> None:
        """
        Hook перед сохранением sign-in любой схемы.

        Вызывается синхронно в том же запросе, до persist тикета.
        principal можно дополнять через add_identity().

        По умолчанию — no-op.
        """
        pass
