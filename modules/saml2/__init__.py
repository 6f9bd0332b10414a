"""
SAML2 service provider — маршрутизация запросов и корреляция сессий.

Протокольные операции (разбор/подпись XML, bindings) реализуются командами
(Command) и передаются в Saml2Options через CommandRegistry.
"""

from .augment import augment_grant_with_logout_claims
from .commands import (
    Command,
    CommandName,
    CommandRegistry,
    CommandResult,
    LogoutCommand,
    SignInCommand,
)
from .constants import (
    DEFAULT_AUTHENTICATION_SCHEME,
    DEFAULT_GRANT_SCHEME,
    DEFAULT_MODULE_PATH,
    DEFAULT_SIGN_IN_AS_SCHEME,
    LOGIN_PROVIDER_KEY,
    Saml2ClaimTypes,
)
from .data_protection import (
    DataProtector,
    JwtDataProtector,
    PlaintextDataProtector,
    get_or_create_protection_key,
)
from .errors import (
    DataProtectionError,
    InvalidRelayState,
    ReconciliationError,
    Saml2Error,
    UnknownOperation,
)
from .handler import Saml2Handler
from .options import SPOptions, Saml2Options
from .request_data import HttpRequestData, relay_state_cookie_name, to_http_request_data
from .result import apply_result, reconcile_result, to_authenticate_result
from .urls import Saml2Urls, join_url, resolve_logout_redirect, split_module_path

__all__ = [
    "augment_grant_with_logout_claims",
    "Command",
    "CommandName",
    "CommandRegistry",
    "CommandResult",
    "LogoutCommand",
    "SignInCommand",
    "DEFAULT_AUTHENTICATION_SCHEME",
    "DEFAULT_GRANT_SCHEME",
    "DEFAULT_MODULE_PATH",
    "DEFAULT_SIGN_IN_AS_SCHEME",
    "LOGIN_PROVIDER_KEY",
    "Saml2ClaimTypes",
    "DataProtector",
    "JwtDataProtector",
    "PlaintextDataProtector",
    "get_or_create_protection_key",
    "DataProtectionError",
    "InvalidRelayState",
    "ReconciliationError",
    "Saml2Error",
    "UnknownOperation",
    "Saml2Handler",
    "SPOptions",
    "Saml2Options",
    "HttpRequestData",
    "relay_state_cookie_name",
    "to_http_request_data",
    "apply_result",
    "reconcile_result",
    "to_authenticate_result",
    "Saml2Urls",
    "join_url",
    "resolve_logout_redirect",
    "split_module_path",
]
