import sys
import pathlib
from typing import Optional
from urllib.parse import urlencode

import pytest

# Ensure repository root is on sys.path so packages (adapters, core, modules) import correctly
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from fastapi import Request

from adapters.memory_adapter import MemoryAdapter
from core.config import Config
from core.storage import Storage
from modules.auth import (
    AuthenticationService,
    Claim,
    ClaimsIdentity,
    ClaimsPrincipal,
    ClaimTypes,
    CookieAuthenticationHandler,
    HttpContext,
)
from modules.saml2 import (
    Command,
    CommandRegistry,
    CommandResult,
    LogoutCommand,
    PlaintextDataProtector,
    Saml2ClaimTypes,
    Saml2Handler,
    Saml2Options,
    SignInCommand,
    SPOptions,
)

IDP_ISSUER = "https://idp.example.com"


class RecordingCommand(Command):
    """Команда, возвращающая заданный результат и запоминающая вызовы."""

    def __init__(self, result: Optional[CommandResult] = None):
        self.result = result or CommandResult(handled_result=True)
        self.calls = []

    def run(self, request, options):
        self.calls.append(request)
        return self.result


class FakeSignInCommand(SignInCommand):
    def __init__(self, location: str = "https://idp.example.com/sso"):
        self.location = location
        self.calls = []

    def initiate(self, idp, return_url, request, options, relay_data=None):
        self.calls.append({
            "idp": idp,
            "return_url": return_url,
            "request": request,
            "relay_data": dict(relay_data) if relay_data is not None else None,
        })
        return CommandResult(location=self.location)


class FakeLogoutCommand(LogoutCommand):
    def __init__(self, location: str = "https://idp.example.com/slo"):
        self.location = location
        self.calls = []
        self.run_result = CommandResult(location="/", terminate_local_session=True)

    def initiate(self, request, return_url, options):
        self.calls.append({"request": request, "return_url": return_url})
        return CommandResult(location=f"{self.location}?{urlencode({'ret': return_url})}")

    def run(self, request, options):
        self.calls.append({"request": request, "return_url": None})
        return self.run_result


def make_external_principal(session_index: Optional[str] = "s-1", name_id: Optional[str] = "user@x") -> ClaimsPrincipal:
    claims = [Claim(ClaimTypes.NAME, "User X", issuer=IDP_ISSUER)]
    if name_id is not None:
        claims.append(Claim(
            ClaimTypes.NAME_IDENTIFIER,
            name_id,
            issuer=IDP_ISSUER,
            properties={"a": "1", "b": "2"},
        ))
    if session_index is not None:
        claims.append(Claim(Saml2ClaimTypes.SESSION_INDEX, session_index, issuer=IDP_ISSUER))
    return ClaimsPrincipal([ClaimsIdentity("Federation", claims)])


def make_request(
    path: str = "/",
    method: str = "GET",
    query: str = "",
    cookies: Optional[dict] = None,
    body: bytes = b"",
    content_type: Optional[str] = None,
) -> Request:
    headers = [(b"host", b"sp.example.com")]
    if cookies:
        cookie_header = "; ".join(f"{k}={v}" for k, v in cookies.items())
        headers.append((b"cookie", cookie_header.encode("latin-1")))
    if content_type:
        headers.append((b"content-type", content_type.encode("latin-1")))

    scope = {
        "type": "http",
        "method": method,
        "scheme": "https",
        "server": ("sp.example.com", 443),
        "client": ("10.0.0.1", 50000),
        "path": path,
        "root_path": "",
        "query_string": query.encode("latin-1"),
        "headers": headers,
    }

    async def receive():
        return {"type": "http.request", "body": body, "more_body": False}

    return Request(scope, receive)


@pytest.fixture
def memory_adapter():
    return MemoryAdapter()


@pytest.fixture
def storage(memory_adapter):
    return Storage(memory_adapter)


@pytest.fixture
def config():
    return Config(storage_type="memory")


@pytest.fixture
def commands():
    return {
        "acs": RecordingCommand(),
        "signin": FakeSignInCommand(),
        "logout": FakeLogoutCommand(),
        "metadata": RecordingCommand(
            CommandResult(content="<EntityDescriptor/>", content_type="application/samlmetadata+xml")
        ),
    }


@pytest.fixture
def options(commands):
    return Saml2Options(
        data_protector=PlaintextDataProtector(),
        commands=CommandRegistry(commands),
        sp_options=SPOptions(entity_id="https://sp.example.com/Saml2"),
    )


@pytest.fixture
def make_context(config, storage, options):
    """Фабрика HttpContext с AuthenticationService и стандартными схемами."""

    def _make(request: Optional[Request] = None, **request_kwargs) -> HttpContext:
        request = request or make_request(**request_kwargs)
        context = HttpContext(request=request, config=config, storage=storage)
        handlers = [
            CookieAuthenticationHandler(options.grant_scheme),
            CookieAuthenticationHandler(options.sign_in_as_scheme),
            Saml2Handler(options),
        ]
        context.authentication = AuthenticationService(context, handlers)
        return context

    return _make
