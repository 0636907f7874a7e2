from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Dict, Any, List, Optional

from panel.backend_client import AdminBackendClient
from panel.commands import CommandDispatcher


@dataclass
class Notice:
    ts: float
    text: str
    level: str = "info"
    seen: bool = False


class NoticeLog:
    """In-memory ring buffer of operator notices. Not persisted."""

    def __init__(self, max_notices: int = 100) -> None:
        self.max_notices = max_notices
        self.notices: List[Notice] = []

    def add(self, text: str, level: str = "info") -> None:
        self.notices.append(Notice(ts=time.time(), text=text, level=level))
        if len(self.notices) > self.max_notices:
            self.notices = self.notices[-self.max_notices :]

    def take_pending(self) -> Optional[Notice]:
        """Return the newest unseen notice and mark everything seen."""
        pending = next((n for n in reversed(self.notices) if not n.seen), None)
        for n in self.notices:
            n.seen = True
        return pending

    def snapshot(self) -> List[Dict[str, Any]]:
        return [
            {"ts": n.ts, "text": n.text, "level": n.level}
            for n in reversed(self.notices)
        ]


@dataclass
class PanelRuntimeState:
    start_time: float
    client: AdminBackendClient
    dispatcher: CommandDispatcher
    notices: NoticeLog = field(default_factory=NoticeLog)


def init_panel_state(client: AdminBackendClient) -> PanelRuntimeState:
    """Capture startup time and wire the dispatcher to the backend client."""
    return PanelRuntimeState(
        start_time=time.time(),
        client=client,
        dispatcher=CommandDispatcher(client),
        notices=NoticeLog(),
    )
