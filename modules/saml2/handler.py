"""
Saml2Handler — SAML2 service provider как схема auth pipeline.

Маршрутизация (handle_request):
- путь не под module path -> запрос не наш, передаём приложению
- module path + "/acs" -> authenticate (ACS команда) + sign-in + redirect;
  ACS без principal и без записанного ответа передаётся приложению
- module path + "/<name>" -> команда по имени; неизвестное имя -> UnknownOperation

Операции приложения:
- challenge() -> SignInCommand.initiate (AuthnRequest к IdP)
- sign_out() -> LogoutCommand.initiate (LogoutRequest к IdP)
- on_signing_in() -> при sign-in локального grant копирует SessionIndex и
  NameID из внешней identity (см. augment.py)

Порядок внутри запроса строго: dispatch -> команда -> reconcile -> (sign-in) augment.
"""

from typing import Optional

from core import logger_helper
from modules.auth.audit import audit_log_auth_event
from modules.auth.claims import ClaimsPrincipal, ClaimTypes
from modules.auth.context import HttpContext
from modules.auth.handler import AuthenticationHandler
from modules.auth.ticket import AuthenticateResult, AuthenticationProperties
from .augment import augment_grant_with_logout_claims
from .commands import CommandName, CommandResult
from .constants import IDP_PROPERTY_KEY
from .options import Saml2Options
from .request_data import to_http_request_data
from .result import reconcile_result
from .urls import Saml2Urls, resolve_logout_redirect, split_module_path


class Saml2Handler(AuthenticationHandler):
    """
    SAML2 SP handler.

    Не хранит состояния запроса: всё состояние — в HttpContext,
    options только читаются.
    """

    def __init__(self, options: Saml2Options):
        self.options = options

    @property
    def scheme(self) -> str:
        return self.options.authentication_scheme

    def _remaining_path(self, context: HttpContext) -> Optional[str]:
        return split_module_path(context.path, self.options.module_path)

    @staticmethod
    def _is_acs(remaining: Optional[str]) -> bool:
        return remaining is not None and remaining.strip("/").lower() == CommandName.ACS.value

    async def handle_request(self, context: HttpContext) -> bool:
        remaining = self._remaining_path(context)
        if remaining is None:
            return False

        if self._is_acs(remaining):
            result = await context.authentication.authenticate(self.scheme)
            if not result.succeeded:
                # Ответ мог записать reconcile (redirect/content), иначе запрос идёт в приложение
                return context.response.has_started
            await self._sign_in_outcome(context, result)
            return True

        name = CommandName.from_path(remaining)
        command = self.options.commands.get(name)
        logger_helper.debug(
            "SAML2 command dispatched",
            module="saml2",
            command=name.value,
            method=context.request.method,
        )
        request = await to_http_request_data(context, self.options)
        await self._finish(context, command.run(request, self.options))
        return True

    async def authenticate(self, context: HttpContext) -> AuthenticateResult:
        """
        ACS: разобрать ответ IdP.

        Только для module path + "/acs"; для остальных путей — none.
        """
        if not self._is_acs(self._remaining_path(context)):
            return AuthenticateResult.none()

        command = self.options.commands.get(CommandName.ACS)
        request = await to_http_request_data(context, self.options)
        outcome = reconcile_result(command.run(request, self.options), context, self.options)
        if outcome is None:
            return AuthenticateResult.none()

        name_id = outcome.principal.find_first(ClaimTypes.NAME_IDENTIFIER)
        await audit_log_auth_event(
            context.storage,
            "saml2_acs",
            name_id.value if name_id else None,
            {"scheme": self.scheme, "issuer": name_id.issuer if name_id else None},
            success=True,
        )
        return outcome

    async def challenge(self, context: HttpContext, properties: AuthenticationProperties) -> None:
        properties = properties.copy()
        # Только явный idp, без него IdP по умолчанию или discovery
        idp = properties.items.get(IDP_PROPERTY_KEY)
        redirect_uri = properties.redirect_uri
        # redirect_uri передаётся отдельно, не сериализуем его дважды
        properties.redirect_uri = None

        request = await to_http_request_data(context, self.options)
        result = self.options.commands.sign_in.initiate(
            idp, redirect_uri, request, self.options, properties.items
        )
        await self._finish(context, result)

    async def sign_out(self, context: HttpContext, properties: AuthenticationProperties) -> None:
        urls = Saml2Urls.from_request(context.request, self.options.sp_options)
        redirect_url = resolve_logout_redirect(
            properties.redirect_uri,
            urls.application_url,
            context.path,
            context.response.status_code,
            context.response.location,
        )

        request = await to_http_request_data(context, self.options)
        result = self.options.commands.logout.initiate(request, redirect_url, self.options)
        await self._finish(context, result)
        await audit_log_auth_event(
            context.storage,
            "saml2_logout",
            self.scheme,
            {"redirect": redirect_url},
            success=True,
        )

    async def on_signing_in(
        self,
        context: HttpContext,
        scheme: str,
        principal: ClaimsPrincipal,
        properties: AuthenticationProperties,
    ) -> None:
        if scheme != self.options.grant_scheme:
            return

        external: Optional[ClaimsPrincipal] = None
        if scheme == self.options.sign_in_as_scheme:
            external = principal
        elif context.authentication.has_handler(self.options.sign_in_as_scheme):
            external = await context.authentication.get_principal(self.options.sign_in_as_scheme)

        if augment_grant_with_logout_claims(principal, external):
            logger_helper.debug("Grant augmented with logout claims", module="saml2", scheme=scheme)

    async def _finish(self, context: HttpContext, result: CommandResult) -> None:
        outcome = reconcile_result(result, context, self.options)
        if outcome is not None:
            await self._sign_in_outcome(context, outcome)
        if result.terminate_local_session:
            await self._terminate_local_session(context)

    async def _sign_in_outcome(self, context: HttpContext, outcome: AuthenticateResult) -> None:
        ticket = outcome.ticket
        await context.authentication.sign_in(
            ticket.authentication_scheme, ticket.principal, ticket.properties
        )
        target = (
            ticket.properties.redirect_uri
            or self.options.sp_options.return_url
            or Saml2Urls.from_request(context.request, self.options.sp_options).application_url
        )
        context.response.redirect(target, status_code=303)

    async def _terminate_local_session(self, context: HttpContext) -> None:
        for scheme in (self.options.grant_scheme, self.options.sign_in_as_scheme):
            if context.authentication.has_handler(scheme):
                await context.authentication.sign_out(scheme)
