import json

import pytest
import requests

from panel import commands
from panel.backend_client import AdminBackendClient
from panel.commands import CommandDispatcher, Failure, Success, extract_error_detail, raise_for_command_status
from panel.errors import CommandError, ConfirmationMismatch
from panel.groups import render_editable_groups
from panel.toggles import LiveForm
from panel.view import ViewController


class FakeResponse:
    def __init__(self, status_code=200, body=None, text=None, reason="OK"):
        self.status_code = status_code
        self.reason = reason
        self._body = body
        self.text = text if text is not None else (json.dumps(body) if body is not None else "")

    @property
    def ok(self):
        return self.status_code < 400

    def json(self):
        if self._body is None:
            raise ValueError("No JSON object could be decoded")
        return self._body


def _client():
    return AdminBackendClient(base_url="http://backend.test", token="t0ken")


def _record_posts(monkeypatch, response):
    calls = []

    def fake_post(self, endpoint, payload=None):
        calls.append((endpoint, payload))
        if isinstance(response, Exception):
            raise response
        return response

    monkeypatch.setattr(AdminBackendClient, "post", fake_post)
    return calls


class ViewSpy:
    def __init__(self):
        self.notices = []
        self.reloads = 0

    def notify(self, text, level):
        self.notices.append((text, level))

    def reload(self):
        self.reloads += 1
        return "reloaded"


def _view(spy):
    return ViewController(CommandDispatcher(_client()), spy.notify, spy.reload)


def test_error_detail_from_error_model():
    resp = FakeResponse(400, {"ErrorModel": {"Message": "User not found"}}, reason="Bad Request")
    assert extract_error_detail(resp) == "User not found"


def test_error_detail_unknown_shape():
    assert extract_error_detail(FakeResponse(400, {"error": "nope"})) == commands.UNKNOWN_ERROR


def test_error_detail_non_json_uses_status_line():
    resp = FakeResponse(502, None, text="<html>bad gateway</html>", reason="Bad Gateway")
    assert extract_error_detail(resp) == "502 - Bad Gateway"


def test_dispatch_success(monkeypatch):
    calls = _record_posts(monkeypatch, FakeResponse(200, {}))
    outcome = CommandDispatcher(_client()).dispatch("/admin/config/backup_db", "Backup ok", "Backup failed")
    assert outcome == Success("Backup ok")
    assert outcome.ok is True
    assert calls == [("/admin/config/backup_db", None)]


def test_dispatch_failure_concatenates_detail(monkeypatch):
    _record_posts(monkeypatch, FakeResponse(400, {"ErrorModel": {"Message": "Invalid email"}}))
    outcome = commands.invite_user().send(CommandDispatcher(_client()), {"email": "x"})
    assert isinstance(outcome, Failure)
    assert outcome.notice == "Error inviting user\nInvalid email"
    assert outcome.status_code == 400


def test_raise_for_command_status_carries_detail():
    raise_for_command_status(FakeResponse(204), "Error saving config")
    with pytest.raises(CommandError) as exc:
        raise_for_command_status(FakeResponse(500, reason="Internal Server Error"), "Error saving config")
    assert exc.value.message == "Error saving config"
    assert exc.value.detail == "500 - Internal Server Error"
    assert exc.value.status_code == 500
    assert str(exc.value) == "Error saving config\n500 - Internal Server Error"


def test_dispatch_transport_error_is_a_failure(monkeypatch):
    _record_posts(monkeypatch, requests.ConnectionError("connection refused"))
    outcome = commands.update_revision().send(CommandDispatcher(_client()))
    assert outcome.ok is False
    assert "connection refused" in outcome.detail


def test_user_endpoints_quote_ids():
    assert commands.delete_user("a/b", "a@x.com").endpoint == "/admin/users/a%2Fb/delete"
    assert commands.remove_two_factor("u1").endpoint == "/admin/users/u1/remove-2fa"
    assert commands.deauthorize_sessions("u1").endpoint == "/admin/users/u1/deauth"
    assert commands.resend_invite("u1").endpoint == "/admin/users/u1/invite/resend"


@pytest.mark.parametrize("status", [200, 500])
def test_view_reloads_exactly_once_per_command(monkeypatch, status):
    calls = _record_posts(monkeypatch, FakeResponse(status, {"ErrorModel": {"Message": "boom"}}))
    spy = ViewSpy()
    result = _view(spy).run(commands.deauthorize_sessions("u1"))
    assert result == "reloaded"
    assert spy.reloads == 1
    assert len(calls) == 1
    text, level = spy.notices[-1]
    if status == 200:
        assert (text, level) == ("Sessions deauthorized correctly", "success")
    else:
        assert (text, level) == ("Error deauthorizing sessions\nboom", "error")


def test_delete_user_requires_matching_email(monkeypatch):
    calls = _record_posts(monkeypatch, FakeResponse(200, {}))
    spy = ViewSpy()
    view = _view(spy)

    view.run(commands.delete_user("u1", "a@x.com"), confirmation="b@x.com")
    assert calls == []
    assert spy.notices[-1][1] == "warning"

    view.run(commands.delete_user("u1", "a@x.com"), confirmation="a@x.com")
    assert calls == [("/admin/users/u1/delete", None)]
    assert spy.reloads == 2


def test_reset_config_requires_keyword(monkeypatch):
    calls = _record_posts(monkeypatch, FakeResponse(200, {}))
    spy = ViewSpy()
    _view(spy).run(commands.reset_config(), confirmation="delete")
    assert calls == []
    _view(spy).run(commands.reset_config(), confirmation=commands.RESET_CONFIRM_KEYWORD)
    assert calls == [("/admin/config/delete", None)]


def test_require_confirmation_rejects_missing_input():
    with pytest.raises(ConfirmationMismatch):
        commands.require_confirmation("a@x.com", None)
    commands.require_confirmation("a@x.com", "a@x.com")


def test_save_config_sends_typed_payload(monkeypatch, schema):
    calls = _record_posts(monkeypatch, FakeResponse(200, {}))
    spy = ViewSpy()
    form = LiveForm.from_sections(render_editable_groups(schema))
    form.set_value("smtp_port", "42")

    _view(spy).save_config(commands.save_config(), form)

    endpoint, payload = calls[0]
    assert endpoint == "/admin/config/"
    assert payload["smtp_port"] == 42
    assert payload["signups_allowed"] is True
    assert payload["invitation_org_name"] is None
    assert "web_vault_enabled" not in payload
    assert spy.notices[-1] == ("Config saved correctly", "success")


def test_save_config_with_invalid_number_sends_nothing(monkeypatch, schema):
    calls = _record_posts(monkeypatch, FakeResponse(200, {}))
    spy = ViewSpy()
    form = LiveForm.from_sections(render_editable_groups(schema))
    form.set_value("smtp_port", "forty-two")

    _view(spy).save_config(commands.save_config(), form)

    assert calls == []
    assert spy.reloads == 1
    text, level = spy.notices[-1]
    assert level == "error"
    assert text.startswith("Error saving config\n")
    assert "smtp_port" in text
