"""Input contract validation for tool arguments.

A tool's input schema is a Pydantic model. Leaf fields use strict types so
a string is never coerced into a number; unknown fields are ignored so
callers may send extras. Nested lists and objects are validated by the
model itself.

Violations are reported in schema order: the error message names the
first one, ``ValidationError.violations`` keeps them all.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TypeVar

import pydantic
from pydantic import BaseModel

from ..errors import JsonDict, ValidationError

M = TypeVar("M", bound=BaseModel)

_SCHEMA_NOISE = frozenset({"title"})


def validate(schema: type[BaseModel], payload: object) -> JsonDict:
    """Check ``payload`` against ``schema`` and return it unchanged.

    Raises:
        ValidationError: describing the first violation found
    """
    parse(schema, payload)
    return payload  # type: ignore[return-value]


def parse(schema: type[M], payload: object) -> M:
    """Validate ``payload`` and return the populated schema instance."""
    if not isinstance(payload, Mapping):
        raise ValidationError("arguments must be an object", field=None)
    try:
        return schema.model_validate(dict(payload))
    except pydantic.ValidationError as e:
        violations = tuple(_describe(err) for err in e.errors(include_url=False))
        first = e.errors(include_url=False)[0]
        raise ValidationError(violations[0], field=_path(first["loc"]) or None, violations=violations) from None


def input_schema(schema: type[BaseModel]) -> JsonDict:
    """JSON Schema advertised for a tool, with Pydantic titles stripped."""
    return _strip(schema.model_json_schema(by_alias=True))  # type: ignore[return-value]


def _describe(err: Mapping[str, object]) -> str:
    path = _path(err["loc"])  # type: ignore[arg-type]
    if err["type"] == "missing":
        return f"{path} is required"
    return f"{path}: {err['msg']}" if path else str(err["msg"])


def _path(loc: tuple[str | int, ...]) -> str:
    return ".".join(str(part) for part in loc)


def _strip(node: object) -> object:
    match node:
        case dict():
            return {k: _strip(v) for k, v in node.items() if k not in _SCHEMA_NOISE or not isinstance(v, str)}
        case list():
            return [_strip(v) for v in node]
        case _:
            return node
