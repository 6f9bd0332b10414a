"""
HttpContext — явный контекст HTTP запроса для auth pipeline.

Вместо глобального/ambient состояния каждый handler получает HttpContext:
- request: Starlette/FastAPI Request (только чтение)
- response: HttpResponse — накопитель ответа (статус, заголовки, cookies, тело)
- config: конфигурация хоста
- storage: хранилище сессий
- authentication: AuthenticationService текущего запроса
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from fastapi import Request, Response

from core.config import Config
from core.storage import Storage


@dataclass
class CookieSpec:
    """Отложенная установка cookie."""
    name: str
    value: str
    max_age: Optional[int] = None
    path: str = "/"
    domain: Optional[str] = None
    secure: bool = False
    httponly: bool = True
    samesite: str = "lax"


class HttpResponse:
    """
    Накопитель HTTP ответа.

    Handlers пишут сюда, middleware превращает в Response (to_response)
    или дополняет ответ приложения cookies (apply_to).
    """

    def __init__(self):
        self.status_code: int = 200
        self.headers: Dict[str, str] = {}
        self.body: Optional[bytes] = None
        self.media_type: Optional[str] = None
        self.cookies: List[CookieSpec] = []
        self.deleted_cookies: List[Tuple[str, str, Optional[str]]] = []
        self.has_started: bool = False

    @property
    def is_redirect(self) -> bool:
        return self.status_code // 100 == 3

    @property
    def location(self) -> Optional[str]:
        return self.headers.get("location")

    def redirect(self, location: str, status_code: int = 303) -> None:
        """Записать redirect (3xx + Location)."""
        if status_code // 100 != 3:
            raise ValueError(f"redirect status must be 3xx, got: {status_code}")
        self.status_code = status_code
        self.headers["location"] = location
        self.has_started = True

    def write(self, content: Any, media_type: Optional[str] = None, status_code: int = 200) -> None:
        """Записать тело ответа."""
        if isinstance(content, str):
            content = content.encode("utf-8")
        self.status_code = status_code
        self.body = content
        self.media_type = media_type
        self.has_started = True

    def set_cookie(self, cookie: CookieSpec) -> None:
        self.cookies.append(cookie)

    def delete_cookie(self, name: str, path: str = "/", domain: Optional[str] = None) -> None:
        self.deleted_cookies.append((name, path, domain))

    def apply_to(self, response: Response) -> Response:
        """Перенести cookies (и заголовки, если ответ ещё не записан) в Response."""
        for name, path, domain in self.deleted_cookies:
            response.delete_cookie(name, path=path, domain=domain)
        for c in self.cookies:
            response.set_cookie(
                c.name,
                c.value,
                max_age=c.max_age,
                path=c.path,
                domain=c.domain,
                secure=c.secure,
                httponly=c.httponly,
                samesite=c.samesite,
            )
        return response

    def to_response(self) -> Response:
        """Построить Response из накопленного состояния."""
        response = Response(
            content=self.body,
            status_code=self.status_code,
            headers=dict(self.headers),
            media_type=self.media_type,
        )
        return self.apply_to(response)


@dataclass
class HttpContext:
    """
    Контекст HTTP запроса.

    Создаётся middleware на каждый запрос, не разделяется между запросами.
    """
    request: Request
    config: Config
    storage: Storage
    response: HttpResponse = field(default_factory=HttpResponse)
    authentication: Any = None  # AuthenticationService, устанавливается middleware

    @property
    def path(self) -> str:
        return self.request.url.path

    def cookie(self, name: str, value: str, max_age: Optional[int] = None) -> CookieSpec:
        """Создать CookieSpec с политикой из конфигурации."""
        secure = self.config.cookies_secure
        if secure is None:
            secure = self.request.url.scheme == "https"
        return CookieSpec(
            name=name,
            value=value,
            max_age=max_age,
            domain=self.config.cookies_domain,
            secure=secure,
            samesite=self.config.cookies_samesite,
        )
