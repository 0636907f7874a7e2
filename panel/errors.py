from __future__ import annotations

from typing import Optional


class PanelError(Exception):
    """Base class for every error the panel reports to the operator."""


class SchemaError(PanelError):
    """Malformed or unsupported configuration schema element."""

    def __init__(self, message: str, *, field: Optional[str] = None) -> None:
        super().__init__(message)
        self.field = field


class ValidationError(PanelError):
    """A live control value cannot be coerced to its declared type."""

    def __init__(self, field: str, raw: str, expected: str) -> None:
        super().__init__(f"Invalid value for '{field}': expected {expected}, got {raw!r}")
        self.field = field
        self.raw = raw
        self.expected = expected


class CommandError(PanelError):
    """The backend rejected a dispatched command."""

    def __init__(self, message: str, detail: str, status_code: Optional[int] = None) -> None:
        super().__init__(f"{message}\n{detail}")
        self.message = message
        self.detail = detail
        self.status_code = status_code


class BackendError(PanelError):
    """A read from the backend (users list, config schema) failed."""


class ConfirmationMismatch(PanelError):
    """Operator challenge text did not match; nothing was sent."""
