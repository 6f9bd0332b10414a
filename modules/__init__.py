"""
Модули сервиса: auth pipeline (modules.auth) и SAML2 service provider (modules.saml2).
"""
