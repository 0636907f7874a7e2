from __future__ import annotations

from typing import Any, Callable, Dict, Generic, Optional, TypeVar

from panel.commands import Command, CommandDispatcher, require_confirmation
from panel.config import dlog
from panel.errors import ConfirmationMismatch, ValidationError
from panel.serializer import serialize
from panel.toggles import LiveForm


T = TypeVar("T")

Notify = Callable[[str, str], None]


class ViewController(Generic[T]):
    """Runs operator commands and owns the reload-after-every-command policy.

    `notify(text, level)` surfaces a notice; `reload()` re-renders the view
    and its return value is handed back to the caller (a redirect response
    in the web UI).
    """

    def __init__(self, dispatcher: CommandDispatcher, notify: Notify, reload: Callable[[], T]) -> None:
        self._dispatcher = dispatcher
        self._notify = notify
        self._reload = reload

    def run(
        self,
        command: Command,
        payload: Optional[Dict[str, Any]] = None,
        *,
        confirmation: Optional[str] = None,
    ) -> T:
        if command.confirm_with is not None:
            try:
                require_confirmation(command.confirm_with, confirmation)
            except ConfirmationMismatch as e:
                self._notify(str(e), "warning")
                return self._reload()

        outcome = command.send(self._dispatcher, payload)
        self._notify(outcome.notice, "success" if outcome.ok else "error")
        return self._reload()

    def save_config(self, command: Command, form: LiveForm) -> T:
        try:
            payload = serialize(form.live_fields())
        except ValidationError as e:
            dlog("config_save_invalid", {"field": e.field, "raw": e.raw})
            self._notify(f"{command.failure_message}\n{e}", "error")
            return self._reload()
        return self.run(command, payload)
