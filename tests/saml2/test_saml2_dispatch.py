"""
Тесты маршрутизации SAML2 запросов (module path -> команда).
"""

import pytest

from modules.saml2 import (
    CommandName,
    CommandResult,
    Saml2Handler,
    UnknownOperation,
    split_module_path,
)
from tests.conftest import make_external_principal


class TestSplitModulePath:

    @pytest.mark.parametrize("path,expected", [
        ("/Saml2", ""),
        ("/saml2", ""),
        ("/Saml2/", "/"),
        ("/Saml2/acs", "/acs"),
        ("/SAML2/Acs/", "/Acs/"),
        ("/Saml2x", None),
        ("/Saml2x/acs", None),
        ("/", None),
        ("/app/Saml2/acs", None),
    ])
    def test_split(self, path, expected):
        assert split_module_path(path, "/Saml2") == expected


class TestCommandName:

    @pytest.mark.parametrize("remaining,expected", [
        ("/acs", CommandName.ACS),
        ("/ACS/", CommandName.ACS),
        ("/SignIn", CommandName.SIGN_IN),
        ("/logout", CommandName.LOGOUT),
        ("", CommandName.METADATA),
        ("/", CommandName.METADATA),
        ("/metadata", CommandName.METADATA),
    ])
    def test_from_path(self, remaining, expected):
        assert CommandName.from_path(remaining) is expected

    def test_unknown(self):
        with pytest.raises(UnknownOperation) as exc_info:
            CommandName.from_path("/bogus")
        assert exc_info.value.name == "/bogus"


class TestDispatch:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("path", ["/", "/home", "/Saml2x/acs", "/other/Saml2/acs"])
    async def test_not_applicable_has_no_side_effects(self, make_context, options, commands, path):
        """Тест: путь вне module path — не наш запрос, ответ не трогается."""
        context = make_context(path=path)

        handled = await Saml2Handler(options).handle_request(context)

        assert handled is False
        assert context.response.has_started is False
        assert context.response.cookies == []
        assert all(not c.calls for c in commands.values())

    @pytest.mark.asyncio
    async def test_metadata_served_as_content(self, make_context, options):
        context = make_context(path="/Saml2")

        handled = await Saml2Handler(options).handle_request(context)

        assert handled is True
        assert context.response.status_code == 200
        assert context.response.body == b"<EntityDescriptor/>"
        assert context.response.media_type == "application/samlmetadata+xml"

    @pytest.mark.asyncio
    async def test_unknown_operation(self, make_context, options):
        context = make_context(path="/Saml2/bogus")
        with pytest.raises(UnknownOperation):
            await Saml2Handler(options).handle_request(context)

    @pytest.mark.asyncio
    async def test_unregistered_operation(self, make_context, commands):
        """Тест: имя из набора, но команда не зарегистрирована — UnknownOperation."""
        from modules.saml2 import CommandRegistry, PlaintextDataProtector, Saml2Options

        commands.pop("metadata")
        options = Saml2Options(data_protector=PlaintextDataProtector(), commands=CommandRegistry(commands))
        context = make_context(path="/Saml2/metadata")

        with pytest.raises(UnknownOperation):
            await Saml2Handler(options).handle_request(context)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("path", ["/Saml2/acs", "/Saml2/ACS", "/saml2/acs/"])
    async def test_acs_signs_in_external_and_redirects(self, make_context, options, commands, path):
        """Тест: ACS -> principal -> sign-in External -> redirect на ReturnUrl."""
        commands["acs"].result = CommandResult(
            principal=make_external_principal(),
            location="/login-callback",
            relay_data={"state": "1"},
        )
        context = make_context(path=path, method="POST")

        handled = await Saml2Handler(options).handle_request(context)

        assert handled is True
        assert len(commands["acs"].calls) == 1
        assert context.response.status_code == 303
        assert context.response.location == "/login-callback"
        assert context.response.cookies[-1].name == "auth.External"

        external = await context.authentication.get_principal("External")
        assert external.find_first("http://kentor.se/causeway/2014/04/identity/claims/SessionIndex").value == "s-1"

    @pytest.mark.asyncio
    async def test_acs_without_location_uses_application_url(self, make_context, options, commands):
        commands["acs"].result = CommandResult(principal=make_external_principal())
        context = make_context(path="/Saml2/acs", method="POST")

        await Saml2Handler(options).handle_request(context)

        assert context.response.location == "https://sp.example.com/"

    @pytest.mark.asyncio
    async def test_acs_handled_result_falls_through(self, make_context, options, commands):
        """Тест: ACS без principal и без ответа — запрос передаётся приложению."""
        context = make_context(path="/Saml2/acs", method="POST")

        handled = await Saml2Handler(options).handle_request(context)

        assert handled is False
        assert context.response.has_started is False
        assert len(commands["acs"].calls) == 1

    @pytest.mark.asyncio
    async def test_acs_error_redirect_written(self, make_context, options, commands):
        commands["acs"].result = CommandResult(location="/error")
        context = make_context(path="/Saml2/acs", method="POST")

        handled = await Saml2Handler(options).handle_request(context)

        assert handled is True
        assert context.response.location == "/error"

    @pytest.mark.asyncio
    async def test_authenticate_only_on_acs_path(self, make_context, options, commands):
        context = make_context(path="/Saml2/signin")

        result = await Saml2Handler(options).authenticate(context)

        assert result.is_none is True
        assert commands["acs"].calls == []

    @pytest.mark.asyncio
    async def test_signin_link(self, make_context, options, commands):
        """Тест: /Saml2/signin?idp=...&ReturnUrl=... запускает SSO."""
        context = make_context(path="/Saml2/signin", query="idp=https%3A%2F%2Fidp2&ReturnUrl=%2Fhome")

        handled = await Saml2Handler(options).handle_request(context)

        assert handled is True
        call = commands["signin"].calls[0]
        assert call["idp"] == "https://idp2"
        assert call["return_url"] == "/home"
        assert context.response.location == "https://idp.example.com/sso"


def _write_post_binding(request, options):
    request.response.write("<html>post binding</html>", media_type="text/html")
    return CommandResult(handled_result=True)


class TestCommandResponseSink:

    @pytest.mark.asyncio
    async def test_command_writes_response_itself(self, make_context, options, commands, monkeypatch):
        """Тест: ответ, записанный командой через request.response, уходит клиенту."""
        seen = []

        def run(request, options):
            seen.append(request)
            return _write_post_binding(request, options)

        monkeypatch.setattr(commands["metadata"], "run", run)
        context = make_context(path="/Saml2/metadata")

        handled = await Saml2Handler(options).handle_request(context)

        assert handled is True
        assert seen[0].response is context.response
        assert context.response.has_started is True
        assert context.response.body == b"<html>post binding</html>"
        assert context.response.media_type == "text/html"

    @pytest.mark.asyncio
    async def test_acs_response_written_by_command_is_final(self, make_context, options, commands, monkeypatch):
        monkeypatch.setattr(commands["acs"], "run", _write_post_binding)
        context = make_context(path="/Saml2/acs", method="POST")

        handled = await Saml2Handler(options).handle_request(context)

        assert handled is True
        assert context.response.body == b"<html>post binding</html>"
        assert context.response.cookies == []
