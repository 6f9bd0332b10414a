"""
Session management — хранение AuthenticationTicket за cookie-сессией.

Cookie содержит только session ID; тикет (principal + properties) лежит в storage
с TTL. Так claims, добавленные при sign-in (например, SAML SessionIndex),
переживают запрос и доступны при logout.
"""

from typing import Any, Optional, Dict
import time
import secrets
from fastapi import Request

from core import logger_helper
from core.storage import Storage
from .constants import AUTH_SESSIONS_NAMESPACE, SESSION_COOKIE_PREFIX, SESSION_ID_BYTES
from .ticket import AuthenticationTicket


def session_cookie_name(scheme: str) -> str:
    """Имя cookie для схемы аутентификации."""
    return f"{SESSION_COOKIE_PREFIX}{scheme}"


def extract_session_from_cookie(request: Request, scheme: str) -> Optional[str]:
    """
    Извлекает session ID схемы из Cookie.

    Returns:
        Session ID или None если cookie отсутствует
    """
    value = request.cookies.get(session_cookie_name(scheme))
    if not value or not value.strip():
        return None
    return value


async def create_session(
    storage: Storage,
    ticket: AuthenticationTicket,
    expiration_seconds: int,
    client_ip: Optional[str] = None,
    user_agent: Optional[str] = None
) -> str:
    """
    Сохраняет тикет в новую сессию.

    Args:
        storage: хранилище
        ticket: тикет для сохранения
        expiration_seconds: время жизни сессии
        client_ip: IP адрес клиента (опционально, для метаданных)
        user_agent: User-Agent заголовок (опционально, для метаданных)

    Returns:
        Session ID
    """
    session_id = secrets.token_urlsafe(SESSION_ID_BYTES)
    current_time = time.time()

    session_data: Dict[str, Any] = {
        "ticket": ticket.to_dict(),
        "scheme": ticket.authentication_scheme,
        "created_at": current_time,
        "expires_at": current_time + expiration_seconds,
    }
    if client_ip:
        session_data["client_ip"] = client_ip
    if user_agent:
        # Ограничиваем длину user_agent для экономии места
        session_data["user_agent"] = user_agent[:256]

    await storage.set(AUTH_SESSIONS_NAMESPACE, session_id, session_data, ttl=expiration_seconds)
    return session_id


async def validate_session(
    storage: Storage,
    session_id: str,
    scheme: Optional[str] = None
) -> Optional[AuthenticationTicket]:
    """
    Загружает тикет сессии.

    Args:
        storage: хранилище
        session_id: ID сессии из cookie
        scheme: ожидаемая схема (cookie одной схемы не подходит к другой)

    Returns:
        AuthenticationTicket или None если сессия не найдена/истекла/повреждена
    """
    if not session_id or not session_id.strip():
        return None

    session_data = await storage.get(AUTH_SESSIONS_NAMESPACE, session_id)
    if session_data is None:
        # Выравниваем время ответа для несуществующих сессий
        _ = secrets.compare_digest(session_id, session_id)
        return None

    if not isinstance(session_data, dict) or "ticket" not in session_data:
        logger_helper.warning(
            f"Invalid session data structure for session: {session_id[:8]}...",
            module="auth"
        )
        return None

    expires_at = session_data.get("expires_at")
    if expires_at and time.time() > expires_at:
        await storage.delete(AUTH_SESSIONS_NAMESPACE, session_id)
        return None

    if scheme is not None and session_data.get("scheme") != scheme:
        return None

    try:
        return AuthenticationTicket.from_dict(session_data["ticket"])
    except (KeyError, TypeError, ValueError) as e:
        logger_helper.warning(
            f"Corrupted ticket in session {session_id[:8]}...: {e}",
            module="auth"
        )
        return None


async def delete_session(storage: Storage, session_id: str) -> bool:
    """Удаляет сессию. Возвращает True если сессия существовала."""
    if not session_id:
        return False
    return await storage.delete(AUTH_SESSIONS_NAMESPACE, session_id)

