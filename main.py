"""
Точка входа SAML2 service provider.

Собирает FastAPI приложение: хранилище сессий, auth pipeline со схемами
Application / External (cookie) и Saml2, и endpoints приложения для входа
и выхода.

SAML2 команды (разбор/подпись XML) поставляются развёртыванием:
SAML2_COMMANDS="package.module:factory", где factory() возвращает
словарь {имя команды: Command}.
"""

import asyncio
import importlib
import os
from pathlib import Path
from typing import Any, Mapping, Optional
from urllib.parse import urlencode, urlparse

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, RedirectResponse

from core import logger_helper
from core.config import Config
from core.storage import Storage, purge_expired_periodically
from core.storage_factory import create_storage
from modules.auth import (
    AuthenticationProperties,
    ClaimsIdentity,
    ClaimsPrincipal,
    CookieAuthenticationHandler,
    get_authentication,
    install_authentication,
)
from modules.saml2 import (
    JwtDataProtector,
    Saml2Handler,
    Saml2Options,
    get_or_create_protection_key,
)


def load_commands(target: Optional[str]) -> Mapping[str, Any]:
    """
    Загрузить SAML2 команды по пути "module:attr".

    attr — словарь команд или callable без аргументов, который его возвращает.

    Raises:
        ValueError: путь не задан или имеет неверный формат
        ImportError / AttributeError: модуль или атрибут не найден
    """
    if not target or ":" not in target:
        raise ValueError(f"SAML2_COMMANDS must be 'module:attr', got: {target!r}")

    module_name, attr = target.split(":", 1)
    module = importlib.import_module(module_name)
    commands = getattr(module, attr)
    if callable(commands):
        commands = commands()
    if not isinstance(commands, Mapping):
        raise ValueError(f"{target} must provide a mapping of commands, got {type(commands).__name__}")
    return commands


def safe_return_url(value: Optional[str], default: str = "/") -> str:
    """
    returnUrl из запроса, только если это локальный путь этого сайта.

    Абсолютные URL, protocol-relative ("//host") и "/\\host" заменяются на default.
    """
    if not value or not value.startswith("/") or value.startswith("//") or value.startswith("/\\"):
        return default
    parsed = urlparse(value)
    if parsed.scheme or parsed.netloc:
        return default
    return value


def create_app(config: Config, storage: Storage, options: Saml2Options) -> FastAPI:
    """
    Создать FastAPI приложение с auth pipeline.

    Поток входа:
      GET /login -> challenge Saml2 -> IdP -> POST <module>/acs ->
      sign-in External -> /login-callback -> sign-in Application
      (получает SessionIndex/NameID) -> sign-out External
    Поток выхода:
      GET /logout -> sign-out Saml2 (LogoutRequest с данными grant) ->
      sign-out Application
    """
    app = FastAPI(title="SAML2 Service Provider")
    grant_scheme = options.grant_scheme
    external_scheme = options.sign_in_as_scheme

    handlers = [CookieAuthenticationHandler(grant_scheme, login_path="/login")]
    if external_scheme != grant_scheme:
        handlers.append(CookieAuthenticationHandler(external_scheme))
    handlers.append(Saml2Handler(options))
    install_authentication(app, config, storage, handlers)

    @app.get("/")
    async def index(request: Request):
        auth = get_authentication(request)
        principal = await auth.get_principal(grant_scheme)
        if principal is None:
            return {"authenticated": False}
        identity = principal.identity
        return {
            "authenticated": True,
            "name": identity.name if identity else None,
            "claims": [c.to_dict() for c in principal.claims],
        }

    @app.get("/login")
    async def login(request: Request, returnUrl: Optional[str] = None, idp: Optional[str] = None):
        auth = get_authentication(request)
        returnUrl = safe_return_url(returnUrl)
        if await auth.get_principal(grant_scheme) is not None:
            return RedirectResponse(returnUrl, status_code=303)

        properties = AuthenticationProperties(
            redirect_uri=f"/login-callback?{urlencode({'returnUrl': returnUrl})}"
        )
        if idp:
            properties.items["idp"] = idp
        await auth.challenge(options.authentication_scheme, properties)
        # Ответ уже записан challenge (redirect на IdP)
        return JSONResponse({"detail": "Redirecting to identity provider"})

    @app.get("/login-callback")
    async def login_callback(request: Request, returnUrl: Optional[str] = None):
        auth = get_authentication(request)
        returnUrl = safe_return_url(returnUrl)
        external = await auth.get_principal(external_scheme)
        if external is None:
            return JSONResponse({"detail": "External identity not found"}, status_code=401)

        if external_scheme != grant_scheme:
            identity = external.identity
            grant = ClaimsPrincipal([
                ClaimsIdentity(grant_scheme, identity.claims if identity else ())
            ])
            await auth.sign_in(grant_scheme, grant)
            await auth.sign_out(external_scheme)
        return RedirectResponse(returnUrl, status_code=303)

    @app.get("/logout")
    async def logout(request: Request, returnUrl: Optional[str] = None):
        auth = get_authentication(request)
        # Saml2 первым: LogoutRequest строится из claims текущего grant.
        # Без returnUrl возврат на корень приложения, не на сам /logout
        properties = AuthenticationProperties(redirect_uri=safe_return_url(returnUrl))
        await auth.sign_out(options.authentication_scheme, properties)
        await auth.sign_out(grant_scheme)
        return JSONResponse({"detail": "Signed out"})

    return app


async def main():
    """Главная функция запуска сервиса."""
    config = Config.from_env()
    logger_helper.setup_logging(config.log_format, config.log_level)

    if config.storage_type == "sqlite":
        Path(config.db_path).parent.mkdir(parents=True, exist_ok=True)
    storage = await create_storage(config)
    purge_task: Optional[asyncio.Task] = None

    try:
        purged = await storage.purge_expired()
        logger_helper.debug("Expired records purged at startup", module="main", removed=purged)
        purge_task = asyncio.create_task(purge_expired_periodically(storage, config.purge_interval_seconds))

        secret = await get_or_create_protection_key(storage, os.getenv("SAML2_DATA_PROTECTION_KEY"))
        options = Saml2Options.from_env(
            load_commands(os.getenv("SAML2_COMMANDS")),
            JwtDataProtector(secret),
        )
        app = create_app(config, storage, options)

        logger_helper.info(
            "Starting SAML2 service provider",
            module="main",
            host=config.host,
            port=config.port,
            module_path=options.module_path,
        )
        server = uvicorn.Server(
            uvicorn.Config(app, host=config.host, port=config.port, log_level=config.log_level.lower())
        )
        await server.serve()
    finally:
        if purge_task is not None:
            purge_task.cancel()
            try:
                await purge_task
            except asyncio.CancelledError:
                pass
        await storage.close()
        logger_helper.info("SAML2 service provider stopped", module="main")


if __name__ == "__main__":
    asyncio.run(main())
