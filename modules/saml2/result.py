"""
Result reconciler — согласование CommandResult с ответом и auth pipeline.

Для каждого результата, не помеченного handled_result, происходит ровно одно:
- есть principal -> AuthenticateResult.success (sign-in делает pipeline)
- нет principal, есть location -> redirect пишется в ответ сразу
- нет ни того ни другого, есть content -> тело пишется в ответ (metadata)
Иначе — ReconciliationError (ошибка реализации команды).

Cookie состояния (set/clear) применяются в любой ветке, кроме handled_result.
"""

from typing import Optional

from core import logger_helper
from modules.auth.context import HttpContext
from modules.auth.ticket import AuthenticateResult, AuthenticationProperties, AuthenticationTicket
from .commands import CommandResult
from .constants import LOGIN_PROVIDER_KEY
from .data_protection import DataProtector
from .errors import ReconciliationError
from .options import Saml2Options

DEFAULT_REDIRECT_STATUS = 303


def _apply_cookies(result: CommandResult, context: HttpContext, data_protector: DataProtector) -> None:
    if result.clear_cookie_name:
        context.response.delete_cookie(result.clear_cookie_name, domain=context.config.cookies_domain)
    if result.set_cookie_name and result.request_state is not None:
        protected = data_protector.protect(result.request_state)
        context.response.set_cookie(context.cookie(result.set_cookie_name, protected))


def apply_result(result: CommandResult, context: HttpContext, data_protector: DataProtector) -> None:
    """
    Записать результат без principal прямо в ответ.

    Raises:
        ReconciliationError: нет ни location, ни content
    """
    if result.location:
        _apply_cookies(result, context, data_protector)
        context.response.redirect(result.location, result.http_status or DEFAULT_REDIRECT_STATUS)
        return

    if result.content is not None:
        _apply_cookies(result, context, data_protector)
        context.response.write(
            result.content,
            media_type=result.content_type,
            status_code=result.http_status or 200,
        )
        return

    raise ReconciliationError(
        "Command result has neither principal, location nor content and is not marked handled"
    )


def to_authenticate_result(result: CommandResult, options: Saml2Options) -> AuthenticateResult:
    """
    Построить успешный AuthenticateResult из результата с principal.

    items = relay_data + LoginProvider; redirect_uri = location.
    """
    if result.principal is None:
        raise ReconciliationError("Cannot build authentication outcome without principal")

    properties = AuthenticationProperties(result.relay_data)
    properties.redirect_uri = result.location
    properties.items[LOGIN_PROVIDER_KEY] = options.authentication_scheme

    return AuthenticateResult.success(
        AuthenticationTicket(result.principal, properties, options.sign_in_as_scheme)
    )


def reconcile_result(
    result: CommandResult,
    context: HttpContext,
    options: Saml2Options,
) -> Optional[AuthenticateResult]:
    """
    Согласовать результат команды.

    Returns:
        AuthenticateResult если есть principal; None если ответ уже сформирован
        (командой или здесь же).

    Raises:
        ReconciliationError: результат без principal, location и content
    """
    if result.handled_result:
        logger_helper.debug("Command result already handled", module="saml2", path=context.path)
        return None

    if result.principal is not None:
        _apply_cookies(result, context, options.data_protector)
        return to_authenticate_result(result, options)

    apply_result(result, context, options.data_protector)
    return None
