"""
SAML2 constants — claim types, endpoints, cookies.

Значения claim types должны совпадать побайтно с теми, что ожидают
компоненты, формирующие LogoutRequest (SessionIndex / NameID).
"""


class Saml2ClaimTypes:
    """Протокол-специфичные claim types (не общие identity claims)."""
    SESSION_INDEX = "http://kentor.se/causeway/2014/04/identity/claims/SessionIndex"
    LOGOUT_NAME_IDENTIFIER = "http://kentor.se/causeway/2014/04/identity/claims/LogoutNameIdentifier"


# Модульный путь по умолчанию: /Saml2/acs, /Saml2/signin, /Saml2/logout, /Saml2
DEFAULT_MODULE_PATH = "/Saml2"

# Имена схем по умолчанию
DEFAULT_AUTHENTICATION_SCHEME = "Saml2"
DEFAULT_SIGN_IN_AS_SCHEME = "External"
DEFAULT_GRANT_SCHEME = "Application"

# Ключ items, под которым записывается схема-провайдер внешнего входа
LOGIN_PROVIDER_KEY = "LoginProvider"

# Ключ properties для явного выбора IdP при challenge
IDP_PROPERTY_KEY = "idp"

# Cookie с защищённым состоянием запроса: "<prefix><RelayState>"
RELAY_STATE_COOKIE_PREFIX = "Saml2."

# Назначение (purpose) для data protector
DATA_PROTECTION_PURPOSE = "Saml2.RequestState"
