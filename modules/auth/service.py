"""
AuthenticationService — операции аутентификации текущего запроса по имени схемы.

Создаётся middleware на каждый запрос. Приложение и handlers обращаются к нему
через context.authentication (или get_authentication(request)).
"""

from typing import Dict, Optional, Sequence

from core import logger_helper
from .claims import ClaimsPrincipal
from .context import HttpContext
from .handler import AuthenticationHandler
from .ticket import AuthenticateResult, AuthenticationProperties, AuthenticationTicket


class AuthenticationService:
    """
    Диспетчер операций по схемам.

    Результаты authenticate() кэшируются на время запроса: повторный вызов
    для той же схемы не читает storage и не запускает протокол второй раз.
    """

    def __init__(self, context: HttpContext, handlers: Sequence[AuthenticationHandler]):
        self.context = context
        self._handlers: Dict[str, AuthenticationHandler] = {}
        for handler in handlers:
            if handler.scheme in self._handlers:
                raise ValueError(f"Duplicate authentication scheme: {handler.scheme!r}")
            self._handlers[handler.scheme] = handler
        self._results: Dict[str, AuthenticateResult] = {}

    @property
    def handlers(self) -> Sequence[AuthenticationHandler]:
        return list(self._handlers.values())

    def has_handler(self, scheme: str) -> bool:
        return scheme in self._handlers

    def get_handler(self, scheme: str) -> AuthenticationHandler:
        handler = self._handlers.get(scheme)
        if handler is None:
            raise ValueError(f"No authentication handler registered for scheme {scheme!r}")
        return handler

    async def authenticate(self, scheme: str) -> AuthenticateResult:
        """Аутентифицировать запрос схемой (с кэшированием на запрос)."""
        cached = self._results.get(scheme)
        if cached is not None:
            return cached
        result = await self.get_handler(scheme).authenticate(self.context)
        self._results[scheme] = result
        return result

    async def get_principal(self, scheme: str) -> Optional[ClaimsPrincipal]:
        """Principal схемы или None."""
        result = await self.authenticate(scheme)
        return result.principal if result.succeeded else None

    async def sign_in(
        self,
        scheme: str,
        principal: ClaimsPrincipal,
        properties: Optional[AuthenticationProperties] = None,
    ) -> None:
        """
        Выполнить sign-in схемы.

        Перед сохранением вызывает on_signing_in у всех handlers (в порядке
        регистрации); они могут дополнить principal.
        """
        handler = self.get_handler(scheme)
        properties = properties or AuthenticationProperties()

        for hook_owner in self._handlers.values():
            await hook_owner.on_signing_in(self.context, scheme, principal, properties)

        await handler.sign_in(self.context, principal, properties)
        self._results[scheme] = AuthenticateResult.success(
            AuthenticationTicket(principal, properties, scheme)
        )
        logger_helper.debug("Signed in", module="auth", scheme=scheme)

    async def sign_out(self, scheme: str, properties: Optional[AuthenticationProperties] = None) -> None:
        """Выполнить sign-out схемы."""
        await self.get_handler(scheme).sign_out(self.context, properties or AuthenticationProperties())
        self._results[scheme] = AuthenticateResult.none()
        logger_helper.debug("Signed out", module="auth", scheme=scheme)

    async def challenge(self, scheme: str, properties: Optional[AuthenticationProperties] = None) -> None:
        """Начать вход схемой (обычно — redirect)."""
        await self.get_handler(scheme).challenge(self.context, properties or AuthenticationProperties())
