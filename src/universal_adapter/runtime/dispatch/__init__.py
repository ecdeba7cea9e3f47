"""Invocation dispatch and outcome types."""

from .dispatcher import Dispatcher
from .outcome import InvocationOutcome, InvocationRequest, OutcomeStatus, new_correlation_id

__all__ = ["Dispatcher", "InvocationOutcome", "InvocationRequest", "OutcomeStatus", "new_correlation_id"]
