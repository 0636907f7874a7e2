from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Union
from urllib.parse import quote

import requests

from panel.backend_client import AdminBackendClient
from panel.config import dlog
from panel.errors import CommandError, ConfirmationMismatch


UNKNOWN_ERROR = "Unknown error"
RESET_CONFIRM_KEYWORD = "DELETE"


@dataclass(frozen=True)
class Success:
    message: str
    ok = True

    @property
    def notice(self) -> str:
        return self.message


@dataclass(frozen=True)
class Failure:
    message: str
    detail: str
    status_code: Optional[int] = None
    ok = False

    @property
    def notice(self) -> str:
        return f"{self.message}\n{self.detail}"


Outcome = Union[Success, Failure]


def extract_error_detail(resp: requests.Response) -> str:
    """Pull ErrorModel.Message out of a failure body.

    JSON without that shape reads as an unknown error; a body that is not
    JSON at all falls back to the HTTP status line.
    """
    try:
        body = resp.json()
    except ValueError:
        return f"{resp.status_code} - {resp.reason or ''}".rstrip(" -")
    if isinstance(body, dict):
        model = body.get("ErrorModel")
        if isinstance(model, dict) and model.get("Message"):
            return str(model["Message"])
    return UNKNOWN_ERROR


def raise_for_command_status(resp: requests.Response, failure_message: str) -> None:
    if not resp.ok:
        raise CommandError(failure_message, extract_error_detail(resp), resp.status_code)


class CommandDispatcher:
    """Sends one mutating request per call and reports it as an Outcome.

    No reload or notice happens here; callers own that policy.
    """

    def __init__(self, client: AdminBackendClient) -> None:
        self._client = client

    def dispatch(
        self,
        endpoint: str,
        success_message: str,
        failure_message: str,
        payload: Optional[Dict[str, Any]] = None,
    ) -> Outcome:
        try:
            resp = self._client.post(endpoint, payload)
        except requests.RequestException as e:
            dlog("command_transport_error", {"endpoint": endpoint, "error": str(e)})
            return Failure(failure_message, str(e))

        try:
            raise_for_command_status(resp, failure_message)
        except CommandError as e:
            dlog("command_failed", {"endpoint": endpoint, "status": e.status_code, "detail": e.detail})
            return Failure(e.message, e.detail, e.status_code)

        dlog("command_ok", {"endpoint": endpoint, "status": resp.status_code})
        return Success(success_message)


def require_confirmation(expected: str, provided: Optional[str]) -> None:
    """Raise ConfirmationMismatch unless the operator typed exactly `expected`."""
    if provided is None or provided != expected:
        dlog("confirmation_mismatch", {"expected_len": len(expected), "provided": provided is not None})
        raise ConfirmationMismatch("Wrong input, please try again")


@dataclass(frozen=True)
class Command:
    endpoint: str
    success_message: str
    failure_message: str
    confirm_with: Optional[str] = None

    def send(self, dispatcher: CommandDispatcher, payload: Optional[Dict[str, Any]] = None) -> Outcome:
        return dispatcher.dispatch(self.endpoint, self.success_message, self.failure_message, payload)


def _user_path(user_id: str, action: str) -> str:
    return f"/admin/users/{quote(user_id, safe='')}/{action}"


def delete_user(user_id: str, email: str) -> Command:
    return Command(_user_path(user_id, "delete"), "User deleted correctly", "Error deleting user", confirm_with=email)


def remove_two_factor(user_id: str) -> Command:
    return Command(_user_path(user_id, "remove-2fa"), "2FA removed correctly", "Error removing 2FA")


def deauthorize_sessions(user_id: str) -> Command:
    return Command(_user_path(user_id, "deauth"), "Sessions deauthorized correctly", "Error deauthorizing sessions")


def disable_user(user_id: str) -> Command:
    return Command(_user_path(user_id, "disable"), "User disabled successfully", "Error disabling user")


def enable_user(user_id: str) -> Command:
    return Command(_user_path(user_id, "enable"), "User enabled successfully", "Error enabling user")


def resend_invite(user_id: str) -> Command:
    return Command(_user_path(user_id, "invite/resend"), "Invite sent successfully", "Error resending invite")


def update_revision() -> Command:
    return Command(
        "/admin/users/update_revision",
        "Success, clients will sync next time they connect",
        "Error forcing clients to sync",
    )


def invite_user() -> Command:
    return Command("/admin/invite/", "User invited correctly", "Error inviting user")


def save_config() -> Command:
    return Command("/admin/config/", "Config saved correctly", "Error saving config")


def reset_config() -> Command:
    return Command(
        "/admin/config/delete",
        "Config deleted correctly",
        "Error deleting config",
        confirm_with=RESET_CONFIRM_KEYWORD,
    )


def backup_database() -> Command:
    return Command("/admin/config/backup_db", "Backup created successfully", "Error creating backup")


def send_test_email() -> Command:
    return Command("/admin/test/smtp", "SMTP Test email sent correctly", "Error sending SMTP test email")
