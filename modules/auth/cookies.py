"""
CookieAuthenticationHandler — схема, хранящая тикет в серверной сессии за cookie.

Используется для локального grant ("Application") и для внешней identity
("External"), которую выдаёт SAML2 ACS.
"""

from typing import Optional
from urllib.parse import urlencode

from .audit import audit_log_auth_event
from .claims import ClaimsPrincipal
from .context import HttpContext
from .handler import AuthenticationHandler
from .sessions import (
    create_session,
    delete_session,
    extract_session_from_cookie,
    session_cookie_name,
    validate_session,
)
from .ticket import AuthenticateResult, AuthenticationProperties, AuthenticationTicket


class CookieAuthenticationHandler(AuthenticationHandler):
    """
    Cookie-сессия для одной схемы.

    Args:
        scheme: имя схемы
        login_path: куда отправлять challenge (None — ответ 401)
    """

    def __init__(self, scheme: str, login_path: Optional[str] = None):
        if not scheme:
            raise ValueError("scheme must be non-empty string")
        self._scheme = scheme
        self.login_path = login_path

    @property
    def scheme(self) -> str:
        return self._scheme

    async def authenticate(self, context: HttpContext) -> AuthenticateResult:
        session_id = extract_session_from_cookie(context.request, self.scheme)
        if not session_id:
            return AuthenticateResult.none()

        ticket = await validate_session(context.storage, session_id, self.scheme)
        if ticket is None:
            return AuthenticateResult.none()
        return AuthenticateResult.success(ticket)

    async def sign_in(
        self,
        context: HttpContext,
        principal: ClaimsPrincipal,
        properties: AuthenticationProperties,
    ) -> None:
        # Старая сессия этой схемы больше не нужна (защита от session fixation)
        previous = extract_session_from_cookie(context.request, self.scheme)
        if previous:
            await delete_session(context.storage, previous)

        ticket = AuthenticationTicket(principal, properties, self.scheme)
        expiration = context.config.session_expiration_seconds
        client = context.request.client
        session_id = await create_session(
            context.storage,
            ticket,
            expiration,
            client_ip=client.host if client else None,
            user_agent=context.request.headers.get("user-agent"),
        )
        context.response.set_cookie(
            context.cookie(session_cookie_name(self.scheme), session_id, max_age=expiration)
        )

        identity = principal.identity
        await audit_log_auth_event(
            context.storage,
            "sign_in",
            (identity.name if identity else None) or self.scheme,
            {"scheme": self.scheme, "path": context.path},
            success=True,
        )

    async def sign_out(self, context: HttpContext, properties: AuthenticationProperties) -> None:
        session_id = extract_session_from_cookie(context.request, self.scheme)
        if session_id:
            await delete_session(context.storage, session_id)
        context.response.delete_cookie(
            session_cookie_name(self.scheme), domain=context.config.cookies_domain
        )
        await audit_log_auth_event(
            context.storage,
            "sign_out",
            self.scheme,
            {"scheme": self.scheme, "path": context.path},
            success=True,
        )

    async def challenge(self, context: HttpContext, properties: AuthenticationProperties) -> None:
        if self.login_path is None:
            context.response.write(
                '{"detail": "Authentication required"}',
                media_type="application/json",
                status_code=401,
            )
            return

        return_url = properties.redirect_uri or str(context.request.url)
        context.response.redirect(
            f"{self.login_path}?{urlencode({'returnUrl': return_url})}", status_code=302
        )
