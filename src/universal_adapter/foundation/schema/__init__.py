"""Tool input schemas: validation and JSON Schema export."""

from .validator import input_schema, parse, validate

__all__ = ["validate", "parse", "input_schema"]
