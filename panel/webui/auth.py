from __future__ import annotations

import hmac
import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, FrozenSet, Optional

import bcrypt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from panel.config import dlog


security = HTTPBasic(auto_error=False)


class Capability(str, Enum):
    """Operator actions that can be switched off with PANEL_ALLOW_*."""

    CONFIG_EDIT = "config_edit"
    USER_MGMT = "user_mgmt"
    BACKUP = "backup"

    @property
    def env_key(self) -> str:
        return f"PANEL_ALLOW_{self.name}"

    @property
    def denied_detail(self) -> str:
        return _DENIED_DETAIL[self]


_DENIED_DETAIL = {
    Capability.CONFIG_EDIT: "Config editing not enabled.",
    Capability.USER_MGMT: "User management not enabled.",
    Capability.BACKUP: "Database backup not enabled.",
}


def _truthy(val: Optional[str], default: bool = False) -> bool:
    if val is None or not val.strip():
        return default
    return val.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class PanelAuthConfig:
    enabled: bool
    username: str
    password_hash: Optional[str]
    password_plain: Optional[str]
    capabilities: FrozenSet[Capability] = field(default_factory=lambda: frozenset(Capability))
    disabled_reason: Optional[str] = None

    @property
    def auth_mode(self) -> str:
        if not self.enabled:
            return "disabled"
        if self.password_hash:
            return "hash"
        if self.password_plain:
            return "password"
        return "unknown"

    def allows(self, capability: Capability) -> bool:
        return capability in self.capabilities


def load_panel_auth_config() -> PanelAuthConfig:
    """Read the panel login and its capability switches from env.

    The panel only mounts when enabled *and* a password is configured;
    capabilities stay on unless their PANEL_ALLOW_* variable is falsy.
    """
    enabled = _truthy(os.environ.get("ENABLE_PANEL") or os.environ.get("PANEL_ENABLED"))
    username = os.environ.get("PANEL_USERNAME", "admin").strip() or "admin"
    password_hash = os.environ.get("PANEL_PASSWORD_HASH") or None
    password_plain = os.environ.get("PANEL_PASSWORD") or None
    capabilities = frozenset(c for c in Capability if _truthy(os.environ.get(c.env_key), default=True))

    disabled_reason = None
    if enabled and not (password_hash or password_plain):
        disabled_reason = "Panel disabled: ENABLE_PANEL set but no PANEL_PASSWORD_HASH or PANEL_PASSWORD provided."
        enabled = False

    cfg = PanelAuthConfig(
        enabled=enabled,
        username=username,
        password_hash=password_hash,
        password_plain=password_plain,
        capabilities=capabilities,
        disabled_reason=disabled_reason,
    )
    dlog(
        "panel_auth_config",
        {
            "enabled": cfg.enabled,
            "auth_mode": cfg.auth_mode,
            "capabilities": sorted(c.value for c in cfg.capabilities),
            "disabled_reason": cfg.disabled_reason,
        },
    )
    return cfg


def _verify_password(config: PanelAuthConfig, provided: str) -> bool:
    if config.password_hash:
        try:
            return bcrypt.checkpw(provided.encode("utf-8"), config.password_hash.encode("utf-8"))
        except ValueError:
            # not a bcrypt hash
            return False
    if config.password_plain:
        return hmac.compare_digest(config.password_plain, provided or "")
    return False


def require_operator(config: PanelAuthConfig) -> Callable[..., str]:
    """Router dependency: 404 while the panel is off, 401 until Basic auth passes."""

    def dependency(credentials: Optional[HTTPBasicCredentials] = Depends(security)) -> str:
        if not config.enabled:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not found")

        if credentials is None:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Authentication required",
                headers={"WWW-Authenticate": "Basic"},
            )

        user_ok = hmac.compare_digest(config.username, credentials.username or "")
        if not (user_ok and _verify_password(config, credentials.password or "")):
            dlog("panel_login_failed", {"username": credentials.username})
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid credentials",
                headers={"WWW-Authenticate": "Basic"},
            )

        return config.username

    return dependency


def require_capability(config: PanelAuthConfig, capability: Capability) -> Callable[[], None]:
    """Route dependency answering 403 when `capability` is switched off."""

    def dependency() -> None:
        if not config.allows(capability):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=capability.denied_detail)

    return dependency


def public_panel_config(config: PanelAuthConfig) -> Dict[str, Any]:
    """Redacted login settings for the health endpoint."""
    return {
        "enabled": config.enabled,
        "username": config.username if config.enabled else None,
        "auth_mode": config.auth_mode,
        "capabilities": sorted(c.value for c in config.capabilities),
        "disabled_reason": config.disabled_reason,
    }
