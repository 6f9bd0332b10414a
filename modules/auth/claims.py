"""
Claims model — Claim, ClaimsIdentity, ClaimsPrincipal.

Identity — упорядоченная неизменяемая последовательность claims.
Principal — список identities, куда можно только ДОБАВЛЯТЬ (add_identity).
Существующие identities не изменяются: это снимки.

Модель сериализуется в dict (to_dict/from_dict) для хранения тикета в storage.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple, Union

DEFAULT_ISSUER = "LOCAL AUTHORITY"


class ClaimTypes:
    """Общие (не протокол-специфичные) типы claims."""
    NAME = "http://schemas.xmlsoap.org/ws/2005/05/identity/claims/name"
    NAME_IDENTIFIER = "http://schemas.xmlsoap.org/ws/2005/05/identity/claims/nameidentifier"
    EMAIL = "http://schemas.xmlsoap.org/ws/2005/05/identity/claims/emailaddress"
    ROLE = "http://schemas.microsoft.com/ws/2008/06/identity/claims/role"


class ClaimValueType(str, Enum):
    """Тип значения claim (XML Schema типы, как в SAML атрибутах)."""
    STRING = "http://www.w3.org/2001/XMLSchema#string"
    INTEGER = "http://www.w3.org/2001/XMLSchema#integer"
    BOOLEAN = "http://www.w3.org/2001/XMLSchema#boolean"
    DATETIME = "http://www.w3.org/2001/XMLSchema#dateTime"


@dataclass(frozen=True)
class Claim:
    """
    Утверждение об identity.

    properties — упорядоченные метаданные claim (например, формат NameID
    и NameQualifier); порядок ключей сохраняется при копировании и сериализации.

    value_type — ClaimValueType или строка XSD типа; известные строки
    приводятся к ClaimValueType, остальные хранятся как есть.
    """
    type: str
    value: str
    value_type: Union[ClaimValueType, str] = ClaimValueType.STRING
    issuer: str = DEFAULT_ISSUER
    properties: Dict[str, str] = field(default_factory=dict, hash=False)

    def __post_init__(self):
        if not isinstance(self.value_type, ClaimValueType):
            try:
                object.__setattr__(self, "value_type", ClaimValueType(self.value_type))
            except ValueError:
                object.__setattr__(self, "value_type", str(self.value_type))

    @property
    def value_type_uri(self) -> str:
        if isinstance(self.value_type, ClaimValueType):
            return self.value_type.value
        return self.value_type

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "value": self.value,
            "value_type": self.value_type_uri,
            "issuer": self.issuer,
            # Список пар, чтобы порядок пережил любой JSON backend
            "properties": [[k, v] for k, v in self.properties.items()],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Claim":
        return cls(
            type=data["type"],
            value=data["value"],
            value_type=data.get("value_type", ClaimValueType.STRING.value),
            issuer=data.get("issuer", DEFAULT_ISSUER),
            properties={k: v for k, v in data.get("properties", [])},
        )


@dataclass(frozen=True)
class ClaimsIdentity:
    """
    Identity: тип аутентификации + упорядоченные claims.

    Identity без authentication_type считается неаутентифицированной.
    """
    authentication_type: Optional[str] = None
    claims: Tuple[Claim, ...] = ()

    def __post_init__(self):
        # Принимаем любой Sequence, храним tuple
        if not isinstance(self.claims, tuple):
            object.__setattr__(self, "claims", tuple(self.claims))

    @property
    def is_authenticated(self) -> bool:
        return bool(self.authentication_type)

    @property
    def name(self) -> Optional[str]:
        claim = self.find_first(ClaimTypes.NAME)
        return claim.value if claim else None

    def find_first(self, claim_type: str) -> Optional[Claim]:
        """Первый claim указанного типа или None."""
        for claim in self.claims:
            if claim.type == claim_type:
                return claim
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "authentication_type": self.authentication_type,
            "claims": [c.to_dict() for c in self.claims],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ClaimsIdentity":
        return cls(
            authentication_type=data.get("authentication_type"),
            claims=tuple(Claim.from_dict(c) for c in data.get("claims", [])),
        )


class ClaimsPrincipal:
    """
    Principal — набор identities.

    Первая identity — основная. Новые identities только добавляются
    (add_identity); удаление и изменение не поддерживаются.
    """

    def __init__(self, identities: Optional[Sequence[ClaimsIdentity]] = None):
        self._identities: List[ClaimsIdentity] = list(identities or [])

    @property
    def identities(self) -> Tuple[ClaimsIdentity, ...]:
        return tuple(self._identities)

    @property
    def identity(self) -> Optional[ClaimsIdentity]:
        """Основная identity (первая) или None."""
        return self._identities[0] if self._identities else None

    @property
    def claims(self) -> Iterator[Claim]:
        """Все claims всех identities по порядку."""
        for identity in self._identities:
            yield from identity.claims

    def find_first(self, claim_type: str) -> Optional[Claim]:
        for identity in self._identities:
            claim = identity.find_first(claim_type)
            if claim is not None:
                return claim
        return None

    def add_identity(self, identity: ClaimsIdentity) -> None:
        if not isinstance(identity, ClaimsIdentity):
            raise TypeError(f"identity must be ClaimsIdentity, got {type(identity).__name__}")
        self._identities.append(identity)

    def to_dict(self) -> Dict[str, Any]:
        return {"identities": [i.to_dict() for i in self._identities]}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ClaimsPrincipal":
        return cls([ClaimsIdentity.from_dict(i) for i in data.get("identities", [])])

    def __repr__(self) -> str:
        name = self.identity.name if self.identity else None
        return f"ClaimsPrincipal(name={name!r}, identities={len(self._identities)})"
