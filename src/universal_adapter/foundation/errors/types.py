"""JSON type aliases shared across the bridge."""

from __future__ import annotations

from typing import Any, Union

# Any in the recursive slots keeps Pydantic from chasing forward refs
JsonPrimitive = Union[str, int, float, bool, None]
JsonValue = Union[JsonPrimitive, list[Any], dict[str, Any]]
JsonDict = dict[str, Any]
