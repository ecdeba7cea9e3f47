"""Central registry for tool discovery and lookup.

The registry provides:
- Tool registration (duplicate names rejected)
- Lookup by name for dispatch
- Ordered descriptor listing for capability discovery

Registration is expected to finish at startup before requests are served;
after that the registry is only read, so no locking is done.
"""

from __future__ import annotations

import re
from collections.abc import Awaitable, Callable, Iterator
from dataclasses import dataclass, field
from typing import Generic, TypeVar

from pydantic import BaseModel

from ..errors import DuplicateToolError, JsonDict, JsonValue, UnknownToolError
from ..schema import input_schema

P = TypeVar("P", bound=BaseModel)

Handler = Callable[[P], Awaitable[JsonValue]]

_NAME_RE = re.compile(r"^[a-z][a-z0-9_]*$")


@dataclass(frozen=True, slots=True)
class ToolDescriptor(Generic[P]):
    """Immutable description of a callable tool.

    Attributes:
        name: Unique identifier (snake_case, e.g. "pinecone_query")
        description: What the tool does, shown to the client
        params_schema: Pydantic model describing accepted arguments
        handler: Coroutine function receiving the validated params
    """

    name: str
    description: str
    params_schema: type[P]
    handler: Handler[P] = field(repr=False, compare=False)

    def __post_init__(self) -> None:
        if not _NAME_RE.match(self.name):
            raise ValueError(f"Invalid tool name '{self.name}': use lowercase snake_case")
        if not self.description.strip():
            raise ValueError(f"Tool '{self.name}' needs a description")

    @property
    def input_schema(self) -> JsonDict:
        """JSON Schema of the accepted arguments."""
        return input_schema(self.params_schema)

    def advertise(self) -> JsonDict:
        """Capability-advertisement entry for this tool."""
        return {"name": self.name, "description": self.description, "input_schema": self.input_schema}


class ToolRegistry:
    """Registry of every tool the bridge exposes.

    Example:
        >>> registry = ToolRegistry()
        >>> @registry.tool("notion_get_page", "Get a Notion page", PageParams)
        ... async def get_page(params: PageParams) -> dict:
        ...     return await backend.fetch_document(params.page_id)
        >>> registry.resolve("notion_get_page").name
        'notion_get_page'
    """

    __slots__ = ("_tools",)

    def __init__(self) -> None:
        self._tools: dict[str, ToolDescriptor[BaseModel]] = {}

    def register(self, descriptor: ToolDescriptor[P]) -> ToolDescriptor[P]:
        """Add a descriptor. Raises DuplicateToolError if the name is taken."""
        if descriptor.name in self._tools:
            raise DuplicateToolError(descriptor.name)
        self._tools[descriptor.name] = descriptor  # type: ignore[assignment]
        return descriptor

    def tool(self, name: str, description: str, params_schema: type[P]) -> Callable[[Handler[P]], Handler[P]]:
        """Decorator form of register()."""
        def decorator(handler: Handler[P]) -> Handler[P]:
            self.register(ToolDescriptor(name, description, params_schema, handler))
            return handler
        return decorator

    def resolve(self, name: str) -> ToolDescriptor[BaseModel]:
        """Get descriptor by name. Raises UnknownToolError if absent."""
        try:
            return self._tools[name]
        except KeyError:
            raise UnknownToolError(name) from None

    def list(self) -> list[ToolDescriptor[BaseModel]]:
        """All descriptors in registration order."""
        return list(self._tools.values())

    def advertise(self) -> list[JsonDict]:
        """Capability-advertisement entries for every tool."""
        return [d.advertise() for d in self._tools.values()]

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    def __iter__(self) -> Iterator[ToolDescriptor[BaseModel]]:
        return iter(self._tools.values())
