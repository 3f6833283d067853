"""Typed field extraction from JSON objects.

Every getter takes the owning object, the key and the document path of the
object (used in error context). Absent optional fields return the default;
present fields of the wrong JSON type raise
``Error.INVALID_OR_MISSING_REQUIRED_FIELD``.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from .errors import missing_field

__all__ = [
    "is_number",
    "join",
    "get_object",
    "get_array",
    "get_index",
    "get_optional_index",
    "get_index_list",
    "get_uint",
    "get_float",
    "get_bool",
    "get_string",
    "get_float_list",
]

_MISSING = object()


def is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_uint(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


def join(path: str, key: str) -> str:
    return f"{path}.{key}" if path else key


def get_object(
    obj: Dict[str, Any], key: str, path: str, required: bool = False
) -> Optional[Dict[str, Any]]:
    value = obj.get(key, _MISSING)
    if value is _MISSING:
        if required:
            raise missing_field(join(path, key), "object")
        return None
    if not isinstance(value, dict):
        raise missing_field(join(path, key), "object")
    return value


def get_array(
    obj: Dict[str, Any], key: str, path: str, required: bool = False
) -> List[Any]:
    value = obj.get(key, _MISSING)
    if value is _MISSING:
        if required:
            raise missing_field(join(path, key), "array")
        return []
    if not isinstance(value, list):
        raise missing_field(join(path, key), "array")
    return value


def get_index(obj: Dict[str, Any], key: str, path: str) -> int:
    value = obj.get(key, _MISSING)
    if not _is_uint(value):
        raise missing_field(join(path, key), "non-negative integer")
    return value


def get_optional_index(
    obj: Dict[str, Any], key: str, path: str
) -> Optional[int]:
    if key not in obj:
        return None
    return get_index(obj, key, path)


def get_uint(
    obj: Dict[str, Any], key: str, path: str, default: Optional[int] = None
) -> int:
    if key not in obj:
        if default is None:
            raise missing_field(join(path, key), "non-negative integer")
        return default
    return get_index(obj, key, path)


def get_index_list(
    obj: Dict[str, Any], key: str, path: str, required: bool = False
) -> List[int]:
    values = get_array(obj, key, path, required)
    for i, v in enumerate(values):
        if not _is_uint(v):
            raise missing_field(f"{join(path, key)}[{i}]", "non-negative integer")
    return list(values)


def get_float(
    obj: Dict[str, Any], key: str, path: str, default: Optional[float] = None
) -> float:
    value = obj.get(key, _MISSING)
    if value is _MISSING:
        if default is None:
            raise missing_field(join(path, key), "number")
        return default
    if not is_number(value):
        raise missing_field(join(path, key), "number")
    return float(value)


def get_bool(obj: Dict[str, Any], key: str, path: str, default: bool) -> bool:
    value = obj.get(key, default)
    if not isinstance(value, bool):
        raise missing_field(join(path, key), "boolean")
    return value


def get_string(
    obj: Dict[str, Any], key: str, path: str, required: bool = False
) -> Optional[str]:
    value = obj.get(key, _MISSING)
    if value is _MISSING:
        if required:
            raise missing_field(join(path, key), "string")
        return None
    if not isinstance(value, str):
        raise missing_field(join(path, key), "string")
    return value


def get_float_list(
    obj: Dict[str, Any],
    key: str,
    path: str,
    length: Optional[int] = None,
    default: Optional[List[float]] = None,
) -> Optional[List[float]]:
    value = obj.get(key, _MISSING)
    if value is _MISSING:
        return list(default) if default is not None else None
    expected = f"array of {length} numbers" if length else "array of numbers"
    if not isinstance(value, list) or not all(is_number(v) for v in value):
        raise missing_field(join(path, key), expected)
    if length is not None and len(value) != length:
        raise missing_field(join(path, key), expected)
    return [float(v) for v in value]
