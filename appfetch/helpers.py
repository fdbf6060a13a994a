"""Small helpers for capability handling and gesture parameters."""

from __future__ import annotations

import json
import math
import re
from typing import Any, Dict, List, Mapping, Union

from loguru import logger

JSONValue = Union[None, bool, int, float, str, List["JSONValue"], Dict[str, "JSONValue"]]

DEFAULT_COORDINATE = 0.5
DEFAULT_SWIPE_DURATION = 0.8
MIN_SWIPE_DURATION = 0.1

_PACKAGE_PATTERN = re.compile(r"^([a-zA-Z0-9\-_]+\.[a-zA-Z0-9\-_]+)+$")


class CapabilityParseError(ValueError):
    """Raised when a capability is neither a string nor a JSON array."""


def is_package_or_bundle(value: str) -> bool:
    """Tell whether ``value`` looks like ``com.example.app`` rather than a path."""

    return bool(_PACKAGE_PATTERN.match(value))


def get_coord_default(value: Any) -> Any:
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return DEFAULT_COORDINATE
    return value


def get_swipe_touch_duration(wait_gesture: Mapping[str, Any]) -> float:
    """Convert the wait gesture duration from milliseconds to seconds."""

    options = wait_gesture.get("options") or {}
    ms = options.get("ms")
    if not ms:
        return DEFAULT_SWIPE_DURATION
    duration = ms / 1000
    # below 0.1s the swipe gets zero steps
    return duration if duration != 0 else MIN_SWIPE_DURATION


def duplicate_keys(value: JSONValue, first_key: str, second_key: str) -> JSONValue:
    """Mirror ``first_key`` and ``second_key`` in every mapping of ``value``.

    Wherever a mapping holds one of the keys, the result also holds the other
    one with the same (recursively transformed) value. If both are present the
    one appearing later in the mapping wins for both names.
    """

    if isinstance(value, list):
        return [duplicate_keys(item, first_key, second_key) for item in value]

    if isinstance(value, dict):
        result: dict[str, JSONValue] = {}
        for key, item in value.items():
            transformed = duplicate_keys(item, first_key, second_key)
            if key == first_key:
                result[second_key] = transformed
            elif key == second_key:
                result[first_key] = transformed
            result[key] = transformed
        return result

    return value


def parse_caps_array(cap: Any) -> list[Any]:
    """Parse a capability given as a JSON array string, a list or a plain string."""

    if isinstance(cap, list):
        return cap

    try:
        parsed = json.loads(cap)
    except (TypeError, ValueError):
        logger.warning("Failed to parse capability as JSON array")
    else:
        if isinstance(parsed, list):
            return parsed

    if isinstance(cap, str):
        return [cap]
    raise CapabilityParseError(f"must provide a string or JSON Array; received {cap!r}")


__all__ = [
    "JSONValue",
    "CapabilityParseError",
    "is_package_or_bundle",
    "get_coord_default",
    "get_swipe_touch_duration",
    "duplicate_keys",
    "parse_caps_array",
]
