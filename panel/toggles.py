from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple

from panel.config import dlog
from panel.errors import SchemaError
from panel.fields import Control
from panel.groups import Section
from panel.schema import FieldType, SchemaModel


ChangeListener = Callable[["LiveForm", str], None]

_CHECKED_VALUES = {"on", "true", "1", "yes"}


@dataclass
class LiveControl:
    """Current state of one rendered control, as the operator sees it."""

    element: str
    field_type: FieldType
    name: Optional[str]
    value: Any
    disabled: bool = False

    @property
    def checked(self) -> bool:
        return self.field_type is FieldType.CHECKBOX and bool(self.value)

    def clear(self) -> None:
        self.value = False if self.field_type is FieldType.CHECKBOX else ""


def _initial_value(control: Control) -> Any:
    if control.field_type is FieldType.CHECKBOX:
        return bool(control.value)
    return "" if control.value is None else str(control.value)


class LiveForm:
    """Mutable form state built from rendered sections.

    Change listeners fire on `set_checked`/`set_value`, the way a browser
    fires change events on user input.
    """

    def __init__(self, controls: Iterable[LiveControl]) -> None:
        self._controls: Dict[str, LiveControl] = {}
        for control in controls:
            self._controls[control.element] = control
        self._listeners: Dict[str, List[ChangeListener]] = {}

    @classmethod
    def from_sections(cls, sections: Iterable[Section]) -> "LiveForm":
        return cls(
            LiveControl(
                element=c.element,
                field_type=c.field_type,
                name=c.name,
                value=_initial_value(c),
                disabled=c.disabled,
            )
            for section in sections
            for c in section.controls
        )

    @classmethod
    def from_submission(cls, sections: Iterable[Section], data: Mapping[str, Any]) -> "LiveForm":
        """Rebuild live state from a posted HTML form.

        Browsers omit unchecked checkboxes and disabled inputs from the post,
        so a missing editable field reads as unchecked or empty.
        """
        controls = []
        for section in sections:
            for c in section.controls:
                value = _initial_value(c)
                if c.name is not None:
                    raw = data.get(c.name)
                    if c.field_type is FieldType.CHECKBOX:
                        value = raw is not None and str(raw).strip().lower() in _CHECKED_VALUES
                    else:
                        value = "" if raw is None else str(raw)
                controls.append(
                    LiveControl(
                        element=c.element,
                        field_type=c.field_type,
                        name=c.name,
                        value=value,
                        disabled=c.disabled,
                    )
                )
        return cls(controls)

    def __contains__(self, element: str) -> bool:
        return element in self._controls

    def control(self, element: str) -> LiveControl:
        try:
            return self._controls[element]
        except KeyError:
            raise KeyError(f"No control named '{element}' in form") from None

    def controls(self) -> List[LiveControl]:
        return list(self._controls.values())

    def on_change(self, element: str, listener: ChangeListener) -> None:
        self._listeners.setdefault(element, []).append(listener)

    def set_checked(self, element: str, checked: bool) -> None:
        control = self.control(element)
        if control.field_type is not FieldType.CHECKBOX:
            raise TypeError(f"Control '{element}' is not a checkbox")
        control.value = bool(checked)
        self._fire(element)

    def set_value(self, element: str, value: str) -> None:
        control = self.control(element)
        if control.field_type is FieldType.CHECKBOX:
            raise TypeError(f"Control '{element}' is a checkbox; use set_checked")
        control.value = value
        self._fire(element)

    def live_fields(self) -> List[Tuple[Optional[str], FieldType, Any]]:
        """(submission name, type, raw value) triples for the serializer."""
        return [(c.name, c.field_type, c.value) for c in self._controls.values()]

    def _fire(self, element: str) -> None:
        for listener in self._listeners.get(element, []):
            listener(self, element)


@dataclass(frozen=True)
class ToggleBinding:
    group: str
    toggle: str
    dependents: Tuple[str, ...] = field(default_factory=tuple)


class ToggleController:
    """Binds each group's master checkbox to the other inputs of its group."""

    def __init__(self, bindings: Iterable[ToggleBinding]) -> None:
        self.bindings: Tuple[ToggleBinding, ...] = tuple(bindings)
        self._by_toggle: Dict[str, ToggleBinding] = {b.toggle: b for b in self.bindings}

    @classmethod
    def from_schema(cls, schema: SchemaModel) -> "ToggleController":
        bindings = []
        for group in schema.groups():
            if not group.grouptoggle or not group.groupdoc:
                continue
            toggle = group.element(group.grouptoggle)
            if toggle is None:
                raise SchemaError(
                    f"Group '{group.group}' toggle '{group.grouptoggle}' is not one of its elements",
                    field=group.grouptoggle,
                )
            if toggle.type is not FieldType.CHECKBOX or not toggle.editable:
                raise SchemaError(
                    f"Group '{group.group}' toggle '{toggle.name}' must be an editable checkbox",
                    field=toggle.name,
                )
            dependents = tuple(e.name for e in group.elements if e.editable and e.name != toggle.name)
            bindings.append(ToggleBinding(group=group.group, toggle=toggle.name, dependents=dependents))
        dlog("toggle_bindings", [{"group": b.group, "toggle": b.toggle, "dependents": list(b.dependents)} for b in bindings])
        return cls(bindings)

    def attach(self, form: LiveForm) -> None:
        """Register change listeners and apply each toggle's current state.

        The initial pass only sets enabled/disabled flags; values are cleared
        only on an actual change to unchecked.
        """
        for binding in self.bindings:
            if binding.toggle not in form:
                continue
            form.on_change(binding.toggle, self.on_change)
            self._apply(form, binding, clear=False)

    def on_change(self, form: LiveForm, toggle: str) -> None:
        binding = self._by_toggle.get(toggle)
        if binding is None:
            return
        self._apply(form, binding, clear=True)

    def reconcile(self, form: LiveForm, rendered: LiveForm) -> None:
        """Apply toggle transitions between the rendered page and a posted form.

        Dependents are cleared only when their toggle went from checked to
        unchecked. A group that was already disabled keeps its rendered
        values, since the browser does not post disabled inputs.
        """
        for binding in self.bindings:
            if binding.toggle not in form or binding.toggle not in rendered:
                continue
            was_enabled = rendered.control(binding.toggle).checked
            enabled = form.control(binding.toggle).checked
            if not was_enabled and not enabled:
                for name in binding.dependents:
                    if name in form and name in rendered:
                        form.control(name).value = rendered.control(name).value
            self._apply(form, binding, clear=was_enabled and not enabled)

    def to_dict(self) -> List[Dict[str, Any]]:
        return [
            {"group": b.group, "toggle": b.toggle, "dependents": list(b.dependents)}
            for b in self.bindings
        ]

    def _apply(self, form: LiveForm, binding: ToggleBinding, *, clear: bool) -> None:
        toggle = form.control(binding.toggle)
        enabled = toggle.checked
        toggle.disabled = False
        for name in binding.dependents:
            if name not in form:
                continue
            dependent = form.control(name)
            dependent.disabled = not enabled
            if clear and not enabled:
                dependent.clear()
