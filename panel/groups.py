from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple, Union

from panel.config import dlog
from panel.fields import Control, render_field
from panel.schema import ConfigElement, ConfigGroup, SchemaModel


READ_ONLY_KEY = "readonly"
READ_ONLY_TITLE = "Read-Only Config"
READ_ONLY_NOTE = (
    "These options can't be modified in the editor because they would require "
    "the server to be restarted. To modify them, you need to set the correct "
    "environment variables."
)

GroupsLike = Union[SchemaModel, Iterable[ConfigGroup]]


@dataclass(frozen=True)
class Section:
    """A collapsible block of controls. Sections open and close independently."""

    key: str
    title: str
    controls: Tuple[Control, ...]
    read_only: bool = False
    toggle: Optional[str] = None
    note: Optional[str] = None

    @property
    def dom_id(self) -> str:
        return f"g_{self.key}"


def _groups(groups: GroupsLike) -> Tuple[ConfigGroup, ...]:
    if isinstance(groups, SchemaModel):
        return groups.groups()
    return tuple(groups)


def render_editable_groups(groups: GroupsLike) -> List[Section]:
    sections = []
    for group in _groups(groups):
        if not group.groupdoc:
            continue
        controls = tuple(render_field(e, True) for e in group.elements if e.editable)
        sections.append(
            Section(
                key=group.group,
                title=group.groupdoc,
                controls=controls,
                toggle=group.grouptoggle,
            )
        )
    orphans = orphaned_elements(groups)
    if orphans:
        dlog("schema_orphaned_elements", [e.name for e in orphans])
    return sections


def render_read_only_section(groups: GroupsLike) -> Section:
    controls = tuple(
        render_field(e, False)
        for group in _groups(groups)
        for e in group.elements
        if not e.editable
    )
    return Section(
        key=READ_ONLY_KEY,
        title=READ_ONLY_TITLE,
        controls=controls,
        read_only=True,
        note=READ_ONLY_NOTE,
    )


def orphaned_elements(groups: GroupsLike) -> List[ConfigElement]:
    """Editable elements unreachable in the UI because their group has no groupdoc."""
    return [
        e
        for group in _groups(groups)
        if not group.groupdoc
        for e in group.elements
        if e.editable
    ]
