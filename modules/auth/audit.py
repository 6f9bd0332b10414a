"""
Audit logging — журнал auth событий (sign-in, sign-out, SAML команды).
"""

from typing import Any, Optional, Dict
import time
import hashlib

from core import logger_helper
from core.storage import Storage
from .constants import AUTH_AUDIT_LOG_NAMESPACE, AUDIT_LOG_TTL_SECONDS, AUDIT_SUBJECT_MAX_LENGTH


async def audit_log_auth_event(
    storage: Optional[Storage],
    event_type: str,
    subject: Any,
    details: Optional[Dict[str, Any]] = None,
    success: bool = False
) -> None:
    """
    Логирует auth событие для аудита.

    Ошибки записи не пробрасываются: аудит не должен ломать sign-in.

    Args:
        storage: хранилище (None — только лог)
        event_type: тип события ("sign_in", "sign_out", "saml2_acs", ...)
        subject: идентификатор субъекта (scheme, name identifier, session_id)
        details: дополнительные детали (path, scheme, ...)
        success: успешность операции
    """
    safe_subject = str(subject)[:AUDIT_SUBJECT_MAX_LENGTH] if subject else "unknown"

    safe_details: Dict[str, Any] = {}
    if details:
        if isinstance(details, dict):
            safe_details = details
        else:
            safe_details = {"raw_details": str(details)[:500]}

    logger_helper.info(
        f"auth event: {event_type}",
        module="audit",
        subject=safe_subject,
        success=success,
    )

    if storage is None:
        return

    audit_entry = {
        "timestamp": time.time(),
        "event_type": event_type,
        "subject": safe_subject,
        "success": success,
        "details": safe_details,
    }

    try:
        audit_key = f"{int(time.time() * 1000)}_{hashlib.sha256(safe_subject.encode()).hexdigest()[:16]}"
        await storage.set(AUTH_AUDIT_LOG_NAMESPACE, audit_key, audit_entry, ttl=AUDIT_LOG_TTL_SECONDS)
    except Exception as e:
        logger_helper.error(
            f"Audit logging error: {e}",
            module="audit",
            event_type=event_type,
            error_type=type(e).__name__,
        )
