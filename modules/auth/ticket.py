"""
Типы результата аутентификации для auth pipeline.

- AuthenticationProperties — словарь items + redirect_uri
- AuthenticationTicket — principal + properties + scheme
- AuthenticateResult — success / fail / none
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

from .claims import ClaimsPrincipal

REDIRECT_URI_KEY = ".redirect"


class AuthenticationProperties:
    """
    Свойства аутентификации.

    Все значения — строки в items. redirect_uri хранится в items под
    ключом `.redirect`, чтобы round-trip через relay state был без потерь.
    """

    def __init__(self, items: Optional[Mapping[str, str]] = None, redirect_uri: Optional[str] = None):
        self.items: Dict[str, str] = dict(items or {})
        if redirect_uri is not None:
            self.redirect_uri = redirect_uri

    @property
    def redirect_uri(self) -> Optional[str]:
        return self.items.get(REDIRECT_URI_KEY)

    @redirect_uri.setter
    def redirect_uri(self, value: Optional[str]) -> None:
        if value is None:
            self.items.pop(REDIRECT_URI_KEY, None)
        else:
            self.items[REDIRECT_URI_KEY] = value

    def copy(self) -> "AuthenticationProperties":
        return AuthenticationProperties(self.items)

    def to_dict(self) -> Dict[str, str]:
        return dict(self.items)

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, AuthenticationProperties):
            return NotImplemented
        return self.items == other.items

    def __repr__(self) -> str:
        return f"AuthenticationProperties({self.items!r})"


@dataclass
class AuthenticationTicket:
    """Результат успешной аутентификации, готовый к sign-in."""
    principal: ClaimsPrincipal
    properties: AuthenticationProperties
    authentication_scheme: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "principal": self.principal.to_dict(),
            "properties": self.properties.to_dict(),
            "authentication_scheme": self.authentication_scheme,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "AuthenticationTicket":
        return cls(
            principal=ClaimsPrincipal.from_dict(data.get("principal", {})),
            properties=AuthenticationProperties(data.get("properties", {})),
            authentication_scheme=data["authentication_scheme"],
        )


@dataclass
class AuthenticateResult:
    """
    Результат handler.authenticate().

    Ровно одно из: ticket (success), failure (fail), ни того ни другого (none).
    """
    ticket: Optional[AuthenticationTicket] = None
    failure: Optional[Exception] = None
    _none: bool = field(default=False, repr=False)

    @property
    def succeeded(self) -> bool:
        return self.ticket is not None

    @property
    def is_none(self) -> bool:
        return self._none

    @property
    def principal(self) -> Optional[ClaimsPrincipal]:
        return self.ticket.principal if self.ticket else None

    @property
    def properties(self) -> Optional[AuthenticationProperties]:
        return self.ticket.properties if self.ticket else None

    @classmethod
    def success(cls, ticket: AuthenticationTicket) -> "AuthenticateResult":
        if ticket is None:
            raise ValueError("ticket is required for success result")
        return cls(ticket=ticket)

    @classmethod
    def fail(cls, failure: Exception) -> "AuthenticateResult":
        return cls(failure=failure)

    @classmethod
    def none(cls) -> "AuthenticateResult":
        return cls(_none=True)
