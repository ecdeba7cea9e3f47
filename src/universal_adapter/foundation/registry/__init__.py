"""Tool registry: descriptors keyed by name."""

from .registry import Handler, ToolDescriptor, ToolRegistry

__all__ = ["ToolDescriptor", "ToolRegistry", "Handler"]
