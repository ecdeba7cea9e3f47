"""Invocation request and outcome models.

An outcome is what gets pushed to streaming clients: it carries the
correlation id so a client can match it against its pending request.
"""

from __future__ import annotations

import uuid
from enum import StrEnum
from typing import Annotated, Self

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ...foundation.errors import JsonDict, JsonValue, ToolError
from ...io import pretty


def new_correlation_id() -> str:
    return uuid.uuid4().hex


class InvocationRequest(BaseModel):
    """Body of an invocation-channel request.

    ``id`` is generated when the caller does not supply one. ``sessionId``
    optionally pins delivery to one streaming connection.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    id: str = Field(default_factory=new_correlation_id)
    name: Annotated[str, Field(min_length=1)]
    arguments: JsonDict = Field(default_factory=dict)
    session_id: str | None = Field(default=None, alias="sessionId")

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, v: object) -> object:
        """JSON-RPC style numeric ids are accepted and kept as text."""
        if v is None:
            return new_correlation_id()
        return str(v) if isinstance(v, int) and not isinstance(v, bool) else v

    @field_validator("arguments", mode="before")
    @classmethod
    def _default_arguments(cls, v: object) -> object:
        return {} if v is None else v


class OutcomeStatus(StrEnum):
    SUCCESS = "success"
    ERROR = "error"


class InvocationOutcome(BaseModel):
    """Result of one dispatch: a success payload or a structured error.

    Attributes:
        id: Correlation id, attached by the front door
        name: Tool that was invoked
        status: success or error
        result: Raw backend result (success only)
        error: Structured failure (error only)
    """

    model_config = ConfigDict(frozen=True)

    id: str | None = None
    name: str
    status: OutcomeStatus
    result: JsonValue = None
    error: ToolError | None = None

    @classmethod
    def success(cls, name: str, result: JsonValue) -> Self:
        return cls(name=name, status=OutcomeStatus.SUCCESS, result=result)

    @classmethod
    def failure(cls, name: str, error: ToolError) -> Self:
        return cls(name=name, status=OutcomeStatus.ERROR, error=error)

    @property
    def ok(self) -> bool:
        return self.status is OutcomeStatus.SUCCESS

    def correlate(self, correlation_id: str) -> Self:
        """Copy of this outcome tagged with the request's correlation id."""
        return self.model_copy(update={"id": correlation_id})

    def content(self) -> list[JsonDict]:
        """Text content block holding the JSON-encoded result."""
        text = pretty(self.result) if self.ok else (self.error.message if self.error else "")
        return [{"type": "text", "text": text}]

    def to_event(self) -> JsonDict:
        """Wire form pushed over the streaming channel."""
        event: JsonDict = {"id": self.id, "name": self.name, "status": self.status.value}
        if self.ok:
            event["result"] = self.result
            event["content"] = self.content()
        else:
            assert self.error is not None
            event["error"] = self.error.message
            event["code"] = self.error.code.value
            event["recoverable"] = self.error.recoverable
        return event
