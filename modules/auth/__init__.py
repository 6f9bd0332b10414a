"""
Authentication pipeline — boundary-layer между FastAPI и схемами аутентификации.

Схемы (cookie-сессии, SAML2) подключаются как AuthenticationHandler.
Приложение работает с ними через AuthenticationService по имени схемы.
"""

# Claims
from .claims import (
    Claim,
    ClaimsIdentity,
    ClaimsPrincipal,
    ClaimTypes,
    ClaimValueType,
    DEFAULT_ISSUER,
)

# Outcome types
from .ticket import (
    AuthenticateResult,
    AuthenticationProperties,
    AuthenticationTicket,
)

# Context
from .context import CookieSpec, HttpContext, HttpResponse

# Constants
from .constants import (
    AUTH_SESSIONS_NAMESPACE,
    AUTH_AUDIT_LOG_NAMESPACE,
    AUTH_KEYS_NAMESPACE,
    SESSION_COOKIE_PREFIX,
)

# Sessions
from .sessions import (
    create_session,
    validate_session,
    delete_session,
    extract_session_from_cookie,
    session_cookie_name,
)

# Audit
from .audit import audit_log_auth_event

# Handlers
from .handler import AuthenticationHandler
from .cookies import CookieAuthenticationHandler
from .service import AuthenticationService

# Middleware
from .middleware import (
    authentication_middleware,
    get_authentication,
    install_authentication,
)

__all__ = [
    # Claims
    "Claim",
    "ClaimsIdentity",
    "ClaimsPrincipal",
    "ClaimTypes",
    "ClaimValueType",
    "DEFAULT_ISSUER",
    # Outcome types
    "AuthenticateResult",
    "AuthenticationProperties",
    "AuthenticationTicket",
    # Context
    "CookieSpec",
    "HttpContext",
    "HttpResponse",
    # Constants
    "AUTH_SESSIONS_NAMESPACE",
    "AUTH_AUDIT_LOG_NAMESPACE",
    "AUTH_KEYS_NAMESPACE",
    "SESSION_COOKIE_PREFIX",
    # Sessions
    "create_session",
    "validate_session",
    "delete_session",
    "extract_session_from_cookie",
    "session_cookie_name",
    # Audit
    "audit_log_auth_event",
    # Handlers
    "AuthenticationHandler",
    "CookieAuthenticationHandler",
    "AuthenticationService",
    # Middleware
    "authentication_middleware",
    "get_authentication",
    "install_authentication",
]
