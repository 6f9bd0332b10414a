"""
Session correlation — перенос SessionIndex и NameID внешней identity в локальный grant.

Logout-запрос приходит аутентифицированным только локальной cookie, а не
исходной SAML сессией. Без этих claims в grant нельзя сформировать
LogoutRequest с правильной парой SessionIndex / NameID.
"""

from typing import Optional

from core import logger_helper
from modules.auth.claims import Claim, ClaimsIdentity, ClaimsPrincipal, ClaimTypes
from .constants import Saml2ClaimTypes


def augment_grant_with_logout_claims(
    grant: Optional[ClaimsPrincipal],
    external: Optional[ClaimsPrincipal],
) -> bool:
    """
    Добавить в grant sub-identity с SessionIndex и LogoutNameIdentifier.

    Требует grant, external, SessionIndex и NameIdentifier во внешней identity;
    если чего-то нет — ничего не делает (корреляция best-effort, sign-in
    не должен падать).

    Claims внешней identity копируются, а не переносятся; существующие
    identities grant не изменяются.

    Returns:
        True если grant дополнен
    """
    session_index = external.find_first(Saml2ClaimTypes.SESSION_INDEX) if external else None
    name_id = external.find_first(ClaimTypes.NAME_IDENTIFIER) if external else None

    if grant is None or external is None or session_index is None or name_id is None:
        logger_helper.debug(
            "Logout correlation skipped",
            module="saml2",
            has_grant=grant is not None,
            has_external=external is not None,
            has_session_index=session_index is not None,
            has_name_id=name_id is not None,
        )
        return False

    session_claim = Claim(
        type=session_index.type,
        value=session_index.value,
        value_type=session_index.value_type,
        issuer=session_index.issuer,
        properties=dict(session_index.properties),
    )
    logout_name_id_claim = Claim(
        type=Saml2ClaimTypes.LOGOUT_NAME_IDENTIFIER,
        value=name_id.value,
        value_type=name_id.value_type,
        issuer=name_id.issuer,
        properties=dict(name_id.properties),
    )

    # Связываем sub-identity с основной identity grant через тип аутентификации
    primary = grant.identity
    grant.add_identity(ClaimsIdentity(
        authentication_type=primary.authentication_type if primary else None,
        claims=(session_claim, logout_name_id_claim),
    ))
    return True
