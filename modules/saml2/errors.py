"""
SAML2 handler errors.

Ошибки протокола (невалидная подпись, истёкшие условия) возникают внутри команд
и сюда не относятся. Здесь — только ошибки маршрутизации и согласования результата.
"""


class Saml2Error(Exception):
    """Базовое исключение SAML2 модуля."""
    pass


class UnknownOperation(Saml2Error):
    """Путь внутри module path не соответствует ни одной команде (или команда не зарегистрирована)."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Unknown SAML2 operation: {name!r}")


class ReconciliationError(Saml2Error):
    """
    Команда вернула результат без principal, location и content, не пометив его обработанным.

    Ошибка реализации команды, а не входных данных запроса.
    """
    pass


class DataProtectionError(Saml2Error):
    """Токен не удалось расшифровать/проверить."""
    pass


class InvalidRelayState(Saml2Error):
    """Cookie состояния для RelayState повреждена или подделана."""

    def __init__(self, relay_state: str):
        self.relay_state = relay_state
        super().__init__(f"Stored request state for relay state {relay_state[:16]!r} is invalid")
