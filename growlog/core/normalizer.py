"""
Conversion from stored rows to canonical record dicts.

Every function here is pure: it returns a new dict and never mutates its
input, and running it over its own output returns an equal value.
"""

from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, Mapping, Optional

ENVIRONMENT_DEFAULTS: Dict[str, Callable[[], Any]] = {
    "type": lambda: None,
    "capacity": lambda: None,
    "equipment": list,
}

DIARY_ENTRY_DEFAULTS: Dict[str, Callable[[], Any]] = {
    "stage": lambda: None,
    "height_cm": lambda: None,
    "ec": lambda: None,
    "ph": lambda: None,
    "temp": lambda: None,
    "humidity": lambda: None,
    "photo_url": lambda: None,
    "ai_summary": lambda: None,
}


def normalize_timestamp(value: Any) -> Any:
    """Render native timestamps as ISO-8601 strings; pass anything else through."""
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.isoformat()
    return value


def normalize_date(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.date()
    return value


def _apply_defaults(data: Dict[str, Any], defaults: Mapping[str, Callable[[], Any]]) -> None:
    for field, factory in defaults.items():
        if data.get(field) is None:
            data[field] = factory()


def normalize_document(
    document: Mapping[str, Any],
    timestamp_field: str = "created_at",
    defaults: Optional[Mapping[str, Callable[[], Any]]] = None,
) -> Dict[str, Any]:
    data = dict(document)
    if timestamp_field in data:
        data[timestamp_field] = normalize_timestamp(data[timestamp_field])
    if defaults:
        _apply_defaults(data, defaults)
    return data


def normalize_environment(document: Mapping[str, Any]) -> Dict[str, Any]:
    data = normalize_document(document, defaults=ENVIRONMENT_DEFAULTS)
    if data.get("equipment") is not None:
        data["equipment"] = list(data["equipment"])
    return data


def normalize_plant(document: Mapping[str, Any]) -> Dict[str, Any]:
    data = normalize_document(document)
    if "birth_date" in data:
        data["birth_date"] = normalize_date(data["birth_date"])
    return data


def normalize_diary_entry(document: Mapping[str, Any]) -> Dict[str, Any]:
    return normalize_document(document, timestamp_field="timestamp", defaults=DIARY_ENTRY_DEFAULTS)


def to_store_value(value: Any) -> Any:
    """Make a value JSON-safe for the store (dates become ISO strings)."""
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, list):
        return [to_store_value(v) for v in value]
    if isinstance(value, Enum):
        return value.value
    return value
