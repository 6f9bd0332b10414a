"""
HttpRequestData — снимок запроса, который получают SAML2 команды.

Команды не видят Starlette Request: только неизменяемые данные запроса,
расшифрованное сохранённое состояние (по RelayState), текущего пользователя
grant-схемы (для logout нужны его SessionIndex / LogoutNameIdentifier)
и накопитель ответа. Команда, записавшая ответ сама через response,
возвращает CommandResult(handled_result=True).
"""

from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional
from urllib.parse import parse_qsl

from modules.auth.claims import ClaimsPrincipal
from modules.auth.context import HttpContext, HttpResponse
from .constants import RELAY_STATE_COOKIE_PREFIX
from .errors import DataProtectionError, InvalidRelayState
from .options import Saml2Options
from .urls import Saml2Urls

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


@dataclass(frozen=True)
class HttpRequestData:
    """Данные запроса для команды."""
    http_method: str
    url: str
    path: str
    urls: Saml2Urls
    query: Mapping[str, str] = field(default_factory=dict, hash=False)
    form: Mapping[str, str] = field(default_factory=dict, hash=False)
    cookies: Mapping[str, str] = field(default_factory=dict, hash=False)
    relay_state: Optional[str] = None
    stored_request_state: Optional[Mapping[str, str]] = field(default=None, hash=False)
    user: Optional[ClaimsPrincipal] = field(default=None, hash=False, compare=False)
    response: HttpResponse = field(default_factory=HttpResponse, hash=False, compare=False, repr=False)

    @property
    def application_url(self) -> str:
        return self.urls.application_url


def relay_state_cookie_name(relay_state: str) -> str:
    """Имя cookie, где лежит защищённое состояние для RelayState."""
    return f"{RELAY_STATE_COOKIE_PREFIX}{relay_state}"


async def _read_form(context: HttpContext) -> Dict[str, str]:
    request = context.request
    if request.method != "POST":
        return {}
    content_type = request.headers.get("content-type", "")
    if not content_type.startswith(FORM_CONTENT_TYPE):
        return {}
    body = await request.body()
    return dict(parse_qsl(body.decode("utf-8"), keep_blank_values=True))


async def to_http_request_data(context: HttpContext, options: Saml2Options) -> HttpRequestData:
    """
    Прочитать запрос в HttpRequestData.

    Если в форме или query есть RelayState и для него есть cookie состояния,
    состояние расшифровывается configured data protector'ом.

    Raises:
        InvalidRelayState: cookie состояния не прошла unprotect
    """
    request = context.request
    form = await _read_form(context)
    query = dict(request.query_params)

    relay_state = form.get("RelayState") or query.get("RelayState")
    stored_request_state = None
    if relay_state:
        protected = request.cookies.get(relay_state_cookie_name(relay_state))
        if protected:
            try:
                stored_request_state = options.data_protector.unprotect(protected)
            except DataProtectionError as e:
                raise InvalidRelayState(relay_state) from e

    user = None
    if context.authentication is not None and context.authentication.has_handler(options.grant_scheme):
        user = await context.authentication.get_principal(options.grant_scheme)

    return HttpRequestData(
        http_method=request.method,
        url=str(request.url),
        path=request.url.path,
        urls=Saml2Urls.from_request(request, options.sp_options),
        query=query,
        form=form,
        cookies=dict(request.cookies),
        relay_state=relay_state,
        stored_request_state=stored_request_state,
        user=user,
        response=context.response,
    )
