"""Argument extraction for tool calls.

Every helper raises :class:`InvalidArgument`, which the tool layer turns into
a structured failure instead of letting it reach the session.
"""
from typing import Any, Dict, List, Optional

from ..errors import InvalidArgument


def as_object(arguments: Any) -> Dict[str, Any]:
    if arguments is None:
        return {}
    if not isinstance(arguments, dict):
        raise InvalidArgument("Tool arguments must be a JSON object")
    return arguments


def require_str(arguments: Any, name: str) -> str:
    value = as_object(arguments).get(name)
    if value is None:
        raise InvalidArgument(f"Missing required parameter: {name}")
    if not isinstance(value, str):
        raise InvalidArgument(f"Parameter {name} must be a string")
    return value


def optional_str(arguments: Any, name: str) -> Optional[str]:
    value = as_object(arguments).get(name)
    if value is None:
        return None
    if not isinstance(value, str):
        raise InvalidArgument(f"Parameter {name} must be a string")
    return value


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def require_number(arguments: Any, name: str) -> float:
    value = as_object(arguments).get(name)
    if value is None:
        raise InvalidArgument(f"Missing required parameter: {name}")
    if not _is_number(value):
        raise InvalidArgument(f"Parameter {name} must be a number")
    return value


def optional_number(arguments: Any, name: str) -> Optional[float]:
    value = as_object(arguments).get(name)
    if value is None:
        return None
    if not _is_number(value):
        raise InvalidArgument(f"Parameter {name} must be a number")
    return value


def require_str_list(arguments: Any, name: str) -> List[str]:
    value = as_object(arguments).get(name)
    if value is None:
        raise InvalidArgument(f"Missing required parameter: {name}")
    return _str_list(value, name)


def optional_str_list(arguments: Any, name: str) -> Optional[List[str]]:
    value = as_object(arguments).get(name)
    if value is None:
        return None
    return _str_list(value, name)


def _str_list(value: Any, name: str) -> List[str]:
    if not isinstance(value, list):
        raise InvalidArgument(f"Parameter {name} must be an array")
    if not all(isinstance(item, str) for item in value):
        raise InvalidArgument(f"All items in {name} must be strings")
    return list(value)
