"""
Тесты согласования CommandResult с ответом (result reconciler).
"""

import pytest

from modules.saml2 import (
    CommandResult,
    LOGIN_PROVIDER_KEY,
    PlaintextDataProtector,
    ReconciliationError,
    reconcile_result,
)
from tests.conftest import make_external_principal


class TestReconcileResult:

    def test_handled_result_performs_no_writes(self, make_context, options):
        """Тест: handled_result — ни одной записи в ответ, даже при location и cookies."""
        context = make_context(path="/Saml2/signin")
        result = CommandResult(
            handled_result=True,
            location="/ignored",
            content="ignored",
            request_state={"k": "v"},
            set_cookie_name="Saml2.abc",
            clear_cookie_name="Saml2.old",
        )

        outcome = reconcile_result(result, context, options)

        assert outcome is None
        assert context.response.has_started is False
        assert context.response.cookies == []
        assert context.response.deleted_cookies == []
        assert context.response.headers == {}

    def test_principal_produces_outcome(self, make_context, options):
        """Тест: principal -> outcome с LoginProvider, relay data и redirect = location."""
        context = make_context(path="/Saml2/acs")
        principal = make_external_principal()
        result = CommandResult(
            principal=principal,
            location="https://sp.example.com/after",
            relay_data={"state": "42", "flow": "sso"},
        )

        outcome = reconcile_result(result, context, options)

        assert outcome.succeeded is True
        assert outcome.principal is principal
        assert outcome.ticket.authentication_scheme == options.sign_in_as_scheme
        assert outcome.properties.redirect_uri == "https://sp.example.com/after"
        assert outcome.properties.items[LOGIN_PROVIDER_KEY] == options.authentication_scheme
        assert outcome.properties.items["state"] == "42"
        assert outcome.properties.items["flow"] == "sso"
        # Outcome, а не прямой redirect
        assert context.response.has_started is False

    def test_principal_without_location(self, make_context, options):
        context = make_context(path="/Saml2/acs")

        outcome = reconcile_result(CommandResult(principal=make_external_principal()), context, options)

        assert outcome.properties.redirect_uri is None
        assert outcome.properties.items == {LOGIN_PROVIDER_KEY: options.authentication_scheme}

    def test_location_writes_redirect(self, make_context, options):
        context = make_context(path="/Saml2/signin")

        outcome = reconcile_result(CommandResult(location="https://idp.example.com/sso?x=1"), context, options)

        assert outcome is None
        assert context.response.status_code == 303
        assert context.response.location == "https://idp.example.com/sso?x=1"

    def test_location_with_custom_status(self, make_context, options):
        context = make_context(path="/Saml2/signin")
        reconcile_result(CommandResult(location="/x", http_status=302), context, options)
        assert context.response.status_code == 302

    def test_request_state_protected_into_cookie(self, make_context, options):
        """Тест: состояние запроса защищается data protector'ом и кладётся в cookie."""
        context = make_context(path="/Saml2/signin")
        result = CommandResult(
            location="https://idp.example.com/sso",
            request_state={"ReturnUrl": "/home", "idp": "https://idp"},
            set_cookie_name="Saml2.abc",
            clear_cookie_name="Saml2.old",
        )

        reconcile_result(result, context, options)

        cookie = context.response.cookies[0]
        assert cookie.name == "Saml2.abc"
        assert PlaintextDataProtector().unprotect(cookie.value) == {"ReturnUrl": "/home", "idp": "https://idp"}
        assert context.response.deleted_cookies[0][0] == "Saml2.old"

    def test_content_written(self, make_context, options):
        context = make_context(path="/Saml2")

        reconcile_result(CommandResult(content="<md/>", content_type="application/xml"), context, options)

        assert context.response.status_code == 200
        assert context.response.body == b"<md/>"

    def test_empty_result_is_error(self, make_context, options):
        """Тест: нет principal, location и content, не handled — ошибка реализации команды."""
        context = make_context(path="/Saml2/acs")
        with pytest.raises(ReconciliationError):
            reconcile_result(CommandResult(), context, options)
        assert context.response.has_started is False
