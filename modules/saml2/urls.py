"""
URL helpers SAML2 модуля.

- split_module_path() — сопоставление пути с module path по границе сегмента
- Saml2Urls — абсолютные URL приложения и SAML2 endpoints для команд
- resolve_logout_redirect() — куда вернуть пользователя после logout
"""

from dataclasses import dataclass
from typing import Optional
from urllib.parse import urljoin

from fastapi import Request

from .commands import CommandName
from .options import SPOptions


def split_module_path(path: str, module_path: str) -> Optional[str]:
    """
    Остаток пути после module path.

    Совпадение без учёта регистра и только по границе сегмента:
    "/Saml2/acs" -> "/acs", "/saml2" -> "", "/Saml2x" -> None.

    Returns:
        Остаток ("" или начинающийся с '/') или None, если путь не под module path
    """
    lowered = path.lower()
    prefix = module_path.lower()
    if lowered == prefix:
        return ""
    if lowered.startswith(prefix + "/"):
        return path[len(module_path):]
    return None


def join_url(base: str, path: str) -> str:
    """Склеить base и path ровно через один '/'."""
    return base.rstrip("/") + "/" + path.lstrip("/")


def application_url(request: Request, sp_options: SPOptions) -> str:
    """
    Базовый URL приложения (всегда с завершающим '/').

    public_origin из конфигурации имеет приоритет над адресом из запроса
    (SP за reverse proxy видит внутренний адрес). Путь запроса уже содержит
    root_path, поэтому здесь только origin.
    """
    if sp_options.public_origin:
        return sp_options.public_origin.rstrip("/") + "/"
    return f"{request.url.scheme}://{request.url.netloc}/"


@dataclass(frozen=True)
class Saml2Urls:
    """Абсолютные URL SAML2 endpoints текущего приложения."""
    application_url: str
    module_url: str
    acs_url: str
    sign_in_url: str
    logout_url: str

    @classmethod
    def build(cls, app_url: str, module_path: str) -> "Saml2Urls":
        module_url = join_url(app_url, module_path)
        return cls(
            application_url=app_url,
            module_url=module_url,
            acs_url=f"{module_url}/{CommandName.ACS.value}",
            sign_in_url=f"{module_url}/{CommandName.SIGN_IN.value}",
            logout_url=f"{module_url}/{CommandName.LOGOUT.value}",
        )

    @classmethod
    def from_request(cls, request: Request, sp_options: SPOptions) -> "Saml2Urls":
        return cls.build(application_url(request, sp_options), sp_options.module_path)


def resolve_logout_redirect(
    explicit_redirect: Optional[str],
    app_url: str,
    request_path: str,
    status_code: int,
    location: Optional[str],
) -> str:
    """
    URL возврата после logout.

    1. Явно переданный redirect — без изменений.
    2. Ответ уже 3xx — Location разрешается относительно base + текущий путь
       (относительный Location работает как в браузере).
    3. Иначе — base + текущий путь, ровно один '/' на стыке.
       Пустой путь — только нормализованный base.

    Пример:
        resolve_logout_redirect(None, "https://app.test/", "/saml/logout", 302, "/next")
        # -> "https://app.test/next"
    """
    if explicit_redirect:
        return explicit_redirect

    if status_code // 100 == 3 and location:
        return urljoin(join_url(app_url, request_path), location)

    return join_url(app_url, request_path)
