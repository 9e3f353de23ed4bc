"""Throttled batching engine for notify_slack."""

from .accumulator import BatchAccumulator
from .completion import Completion, CompletionOutcome
from .coordinator import RunReport, ShutdownCoordinator
from .graceful_shutdown import GracefulShutdown
from .scheduler import Deliverer, FlushScheduler, RunState
from .tee import EchoTee

__all__ = [
    "BatchAccumulator",
    "Completion",
    "CompletionOutcome",
    "Deliverer",
    "EchoTee",
    "FlushScheduler",
    "GracefulShutdown",
    "RunReport",
    "RunState",
    "ShutdownCoordinator",
]
