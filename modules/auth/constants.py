"""
Authentication constants — namespaces, cookies, лимиты.
"""

# Storage namespaces
AUTH_SESSIONS_NAMESPACE = "auth_sessions"
AUTH_AUDIT_LOG_NAMESPACE = "auth_audit_log"
AUTH_KEYS_NAMESPACE = "auth_keys"

# Cookie сессии: "<prefix><scheme>", например "auth.Application"
SESSION_COOKIE_PREFIX = "auth."

# Длина session ID (байт энтропии для secrets.token_urlsafe)
SESSION_ID_BYTES = 32

# Audit log хранится ограниченное время (30 дней)
AUDIT_LOG_TTL_SECONDS = 30 * 24 * 60 * 60

# Максимальная длина subject в audit log
AUDIT_SUBJECT_MAX_LENGTH = 64
