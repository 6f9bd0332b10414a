"""
Authentication middleware — FastAPI middleware auth pipeline.

На каждый запрос:
1. Создаёт HttpContext и AuthenticationService
2. Даёт каждому handler шанс забрать запрос (handle_request) — SAML2 endpoints
3. Иначе вызывает приложение; всё, что handlers записали в context.response
   во время работы приложения (cookies, sign-out redirect), переносится в ответ
"""

from typing import Optional, Sequence

from fastapi import FastAPI, Request

from core import logger_helper
from core.config import Config
from core.storage import Storage
from .context import HttpContext
from .handler import AuthenticationHandler
from .service import AuthenticationService


def get_authentication(request: Request) -> Optional[AuthenticationService]:
    """
    Получает AuthenticationService из request.state.

    Используется в endpoints:
        auth = get_authentication(request)
        principal = await auth.get_principal("Application")
    """
    return getattr(request.state, "authentication", None)


async def authentication_middleware(request: Request, call_next):
    """
    FastAPI middleware auth pipeline.

    Зависимости берутся из app.state (устанавливаются install_authentication):
    auth_config, auth_storage, auth_handlers.
    """
    state = request.app.state
    context = HttpContext(
        request=request,
        config=state.auth_config,
        storage=state.auth_storage,
    )
    service = AuthenticationService(context, state.auth_handlers)
    context.authentication = service
    request.state.authentication = service

    for handler in service.handlers:
        try:
            handled = await handler.handle_request(context)
        except Exception as e:
            logger_helper.error(
                f"Authentication handler failed: {e}",
                module="auth",
                scheme=handler.scheme,
                path=context.path,
                error_type=type(e).__name__,
            )
            raise
        if handled:
            return context.response.to_response()

    response = await call_next(request)

    # Приложение вызвало sign_out/challenge: ответ handler'а важнее
    if context.response.has_started:
        return context.response.to_response()
    return context.response.apply_to(response)


def install_authentication(
    app: FastAPI,
    config: Config,
    storage: Storage,
    handlers: Sequence[AuthenticationHandler],
) -> None:
    """
    Подключить auth pipeline к приложению.

    Handlers проверяются на уникальность схем сразу, а не на первом запросе.
    """
    schemes = [h.scheme for h in handlers]
    if len(set(schemes)) != len(schemes):
        raise ValueError(f"Duplicate authentication schemes: {schemes}")

    app.state.auth_config = config
    app.state.auth_storage = storage
    app.state.auth_handlers = list(handlers)
    app.middleware("http")(authentication_middleware)
