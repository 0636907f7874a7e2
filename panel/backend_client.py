from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import requests

from panel.config import dlog
from panel.errors import BackendError
from panel.schema import SchemaModel


DEFAULT_BACKEND_URL = "http://127.0.0.1:8000"
DEFAULT_BACKEND_TIMEOUT = 30.0


@dataclass(frozen=True)
class BackendSettings:
    base_url: str = DEFAULT_BACKEND_URL
    token: Optional[str] = None
    timeout: float = DEFAULT_BACKEND_TIMEOUT


def load_backend_settings() -> BackendSettings:
    """Read backend connection settings from env."""
    base_url = (os.environ.get("PANEL_BACKEND_URL") or DEFAULT_BACKEND_URL).strip().rstrip("/")
    token = os.environ.get("PANEL_BACKEND_TOKEN") or None
    raw_timeout = os.environ.get("PANEL_BACKEND_TIMEOUT")
    try:
        timeout = float(raw_timeout) if raw_timeout else DEFAULT_BACKEND_TIMEOUT
    except ValueError:
        dlog("backend_timeout_invalid", raw_timeout)
        timeout = DEFAULT_BACKEND_TIMEOUT
    settings = BackendSettings(base_url=base_url or DEFAULT_BACKEND_URL, token=token, timeout=timeout)
    dlog("backend_settings", {"base_url": settings.base_url, "has_token": bool(token), "timeout": timeout})
    return settings


@dataclass(frozen=True)
class UserSummary:
    id: str
    email: str
    name: str = ""
    two_factor_enabled: bool = False
    enabled: bool = True
    invited: bool = False

    @classmethod
    def from_payload(cls, raw: Dict[str, Any]) -> "UserSummary":
        def pick(*keys: str, default: Any = None) -> Any:
            for key in keys:
                if key in raw and raw[key] is not None:
                    return raw[key]
            return default

        return cls(
            id=str(pick("id", "Id", default="")),
            email=str(pick("email", "Email", default="")),
            name=str(pick("name", "Name", default="")),
            two_factor_enabled=bool(pick("twoFactorEnabled", "TwoFactorEnabled", default=False)),
            enabled=bool(pick("userEnabled", "UserEnabled", default=True)),
            invited=pick("status", "_Status", default=0) == 1,
        )


class AdminBackendClient:
    """Minimal requests-based client for the backend /admin API."""

    def __init__(self, *, base_url: str, token: Optional[str] = None, timeout: float = DEFAULT_BACKEND_TIMEOUT) -> None:
        self._base_url = base_url.rstrip("/")
        self._token = token
        self._timeout = timeout

    @classmethod
    def from_settings(cls, settings: BackendSettings) -> "AdminBackendClient":
        return cls(base_url=settings.base_url, token=settings.token, timeout=settings.timeout)

    @property
    def base_url(self) -> str:
        return self._base_url

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    def url(self, endpoint: str) -> str:
        return f"{self._base_url}{endpoint}"

    def post(self, endpoint: str, payload: Optional[Dict[str, Any]] = None) -> requests.Response:
        """Issue one POST; transport errors propagate as requests exceptions."""
        url = self.url(endpoint)
        dlog("backend_post", {"url": url, "has_payload": payload is not None})
        return requests.post(url, json=payload, headers=self._headers(), timeout=self._timeout)

    def get_json(self, endpoint: str) -> Any:
        url = self.url(endpoint)
        try:
            resp = requests.get(url, headers=self._headers(), timeout=self._timeout)
        except requests.RequestException as e:
            raise BackendError(f"Could not reach backend at {self._base_url}: {e}") from e
        if resp.status_code >= 400:
            raise BackendError(f"Backend error ({resp.status_code}) for {endpoint}: {resp.text[:200]}")
        try:
            return resp.json()
        except ValueError as e:
            raise BackendError(f"Invalid JSON from {endpoint}: {e}") from e

    def list_users(self) -> List[UserSummary]:
        raw = self.get_json("/admin/users")
        if isinstance(raw, dict):
            raw = raw.get("data") or raw.get("users") or []
        if not isinstance(raw, list):
            raise BackendError("Users list must be a JSON array")
        return [UserSummary.from_payload(u) for u in raw if isinstance(u, dict)]

    def fetch_schema(self) -> SchemaModel:
        return SchemaModel.from_payload(self.get_json("/admin/config/"))
