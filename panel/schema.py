from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from panel.config import dlog
from panel.errors import SchemaError


class FieldType(str, Enum):
    """Closed set of control kinds a schema element may declare."""

    TEXT = "text"
    NUMBER = "number"
    PASSWORD = "password"
    CHECKBOX = "checkbox"

    @classmethod
    def parse(cls, raw: Any, *, field_name: Optional[str] = None) -> "FieldType":
        try:
            return cls(raw)
        except ValueError:
            raise SchemaError(f"Unsupported field type {raw!r}", field=field_name) from None


@dataclass(frozen=True)
class FieldDoc:
    name: str
    description: str = ""


@dataclass(frozen=True)
class ConfigElement:
    name: str
    type: FieldType
    value: Any
    editable: bool
    doc: FieldDoc
    default: Any = None

    @classmethod
    def from_payload(cls, raw: Dict[str, Any]) -> "ConfigElement":
        if not isinstance(raw, dict):
            raise SchemaError("Config element must be an object")
        name = raw.get("name")
        if not isinstance(name, str) or not name:
            raise SchemaError("Config element without a name")
        doc_raw = raw.get("doc") or {}
        if not isinstance(doc_raw, dict):
            raise SchemaError("Element doc must be an object", field=name)
        return cls(
            name=name,
            type=FieldType.parse(raw.get("type"), field_name=name),
            value=raw.get("value"),
            editable=bool(raw.get("editable", False)),
            doc=FieldDoc(
                name=doc_raw.get("name") or name,
                description=doc_raw.get("description") or "",
            ),
            default=raw.get("default"),
        )


@dataclass(frozen=True)
class ConfigGroup:
    group: str
    elements: Tuple[ConfigElement, ...] = ()
    groupdoc: Optional[str] = None
    grouptoggle: Optional[str] = None

    @classmethod
    def from_payload(cls, raw: Dict[str, Any]) -> "ConfigGroup":
        if not isinstance(raw, dict):
            raise SchemaError("Config group must be an object")
        group = raw.get("group")
        if not isinstance(group, str) or not group:
            raise SchemaError("Config group without an identifier")
        elements_raw = raw.get("elements") or []
        if not isinstance(elements_raw, list):
            raise SchemaError(f"Elements of group '{group}' must be a list")
        return cls(
            group=group,
            elements=tuple(ConfigElement.from_payload(e) for e in elements_raw),
            groupdoc=raw.get("groupdoc") or None,
            grouptoggle=raw.get("grouptoggle") or None,
        )

    def element(self, name: str) -> Optional[ConfigElement]:
        for element in self.elements:
            if element.name == name:
                return element
        return None


@dataclass(frozen=True)
class SchemaModel:
    """Immutable snapshot of the backend's grouped configuration schema."""

    _groups: Tuple[ConfigGroup, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        seen: Dict[str, str] = {}
        for group in self._groups:
            for element in group.elements:
                if element.name in seen:
                    raise SchemaError(
                        f"Duplicate config name '{element.name}' in groups "
                        f"'{seen[element.name]}' and '{group.group}'",
                        field=element.name,
                    )
                seen[element.name] = group.group

    @classmethod
    def from_payload(cls, payload: Any) -> "SchemaModel":
        """Build the model from `[group, ...]` or `{"config": [group, ...]}`."""
        raw_groups = payload.get("config") if isinstance(payload, dict) else payload
        if not isinstance(raw_groups, list):
            raise SchemaError("Config schema must be a list of groups")
        model = cls(tuple(ConfigGroup.from_payload(g) for g in raw_groups))
        dlog(
            "schema_loaded",
            {
                "groups": len(model.groups()),
                "elements": len(model.all_elements()),
                "read_only": len(model.read_only_elements()),
            },
        )
        return model

    def groups(self) -> Tuple[ConfigGroup, ...]:
        return self._groups

    def all_elements(self) -> List[ConfigElement]:
        return [element for group in self._groups for element in group.elements]

    def read_only_elements(self) -> List[ConfigElement]:
        return [element for element in self.all_elements() if not element.editable]
