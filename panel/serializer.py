from __future__ import annotations

from typing import Any, Dict, Iterable, Optional, Tuple

from panel.config import dlog
from panel.fields import field_kind
from panel.schema import FieldType


LiveField = Tuple[Optional[str], FieldType, Any]


def serialize(live_fields: Iterable[LiveField]) -> Dict[str, Any]:
    """Build the typed config payload from live control state.

    Controls without a submission name (rendered read-only) are skipped.
    Any coercion failure raises ValidationError and nothing is returned, so
    a partially typed payload never reaches the backend.
    """
    data: Dict[str, Any] = {}
    for name, field_type, raw in live_fields:
        if name is None:
            continue
        value = field_kind(field_type, field_name=name).coerce(name, raw)
        if name in data:
            dlog("serialize_duplicate_name", {"name": name, "previous": data[name], "value": value})
        data[name] = value
    return data
