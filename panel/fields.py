from __future__ import annotations

import math
import re
from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, Optional, Union

from panel.errors import ValidationError
from panel.schema import ConfigElement, FieldType


Number = Union[int, float]

_INT_RE = re.compile(r"^[+-]?\d+$")


@dataclass(frozen=True)
class Control:
    """One renderable input derived from a schema element.

    `name` is the submission name; it is None for read-only controls, which
    keeps them out of the serialized payload.
    """

    element: str
    field_type: FieldType
    label: str
    title: str
    value: Any
    name: Optional[str] = None
    placeholder: Optional[str] = None
    disabled: bool = False
    visibility_toggle: bool = False

    @property
    def input_id(self) -> str:
        return f"input_{self.element}"

    @property
    def checked(self) -> bool:
        return self.field_type is FieldType.CHECKBOX and bool(self.value)

    @property
    def submittable(self) -> bool:
        return self.name is not None


def _title(element: ConfigElement) -> str:
    return f"[{element.name}] {element.doc.description}".rstrip()


def _placeholder(element: ConfigElement) -> Optional[str]:
    if element.default is None or element.default == "":
        return None
    return f"Default: {element.default}"


def _render_input(element: ConfigElement, editable: bool) -> Control:
    value = "" if element.value is None else element.value
    return Control(
        element=element.name,
        field_type=element.type,
        label=element.doc.name,
        title=_title(element),
        value=value,
        name=element.name if editable else None,
        placeholder=_placeholder(element),
        disabled=not editable,
        visibility_toggle=element.type is FieldType.PASSWORD,
    )


def _render_checkbox(element: ConfigElement, editable: bool) -> Control:
    return Control(
        element=element.name,
        field_type=FieldType.CHECKBOX,
        label=element.doc.name,
        title=_title(element),
        value=bool(element.value),
        name=element.name if editable else None,
        disabled=not editable,
    )


def _coerce_checkbox(name: str, raw: Any) -> bool:
    if isinstance(raw, str):
        return raw.strip().lower() in {"1", "true", "on", "yes"}
    return bool(raw)


def _coerce_number(name: str, raw: Any) -> Optional[Number]:
    if raw is None:
        return None
    if isinstance(raw, bool):
        raise ValidationError(name, str(raw), "a number")
    if isinstance(raw, (int, float)):
        if not math.isfinite(raw):
            raise ValidationError(name, str(raw), "a finite number")
        return raw
    text = str(raw).strip()
    if not text:
        return None
    if _INT_RE.match(text):
        return int(text)
    if "_" in text:
        raise ValidationError(name, text, "a number")
    try:
        number = float(text)
    except ValueError:
        raise ValidationError(name, text, "a number") from None
    if not math.isfinite(number):
        raise ValidationError(name, text, "a finite number")
    return number


def _coerce_text(name: str, raw: Any) -> Optional[str]:
    if raw is None:
        return None
    text = str(raw)
    return text or None


@dataclass(frozen=True)
class FieldKind:
    render: Callable[[ConfigElement, bool], Control]
    coerce: Callable[[str, Any], Any]
    input_type: str


FIELD_KINDS: Dict[FieldType, FieldKind] = {
    FieldType.TEXT: FieldKind(_render_input, _coerce_text, "text"),
    FieldType.NUMBER: FieldKind(_render_input, _coerce_number, "number"),
    FieldType.PASSWORD: FieldKind(_render_input, _coerce_text, "password"),
    FieldType.CHECKBOX: FieldKind(_render_checkbox, _coerce_checkbox, "checkbox"),
}


def field_kind(field_type: Any, *, field_name: Optional[str] = None) -> FieldKind:
    return FIELD_KINDS[FieldType.parse(field_type, field_name=field_name)]


def render_field(element: ConfigElement, editable: bool) -> Control:
    """Map one schema element to its control; unknown types raise SchemaError."""
    field_type = FieldType.parse(element.type, field_name=element.name)
    if element.type is not field_type:
        element = replace(element, type=field_type)
    return field_kind(field_type, field_name=element.name).render(element, editable)
