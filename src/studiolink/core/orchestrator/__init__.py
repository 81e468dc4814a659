"""Orchestrator - batch invocation over the operation adapters."""

from .driver import (
    RESOURCE_FAMILIES,
    BatchStats,
    InvocationDriver,
    ItemExecutionError,
    UnknownResourceError,
    resolve_options,
    run_batch,
)

__all__ = [
    "InvocationDriver",
    "BatchStats",
    "ItemExecutionError",
    "UnknownResourceError",
    "RESOURCE_FAMILIES",
    "resolve_options",
    "run_batch",
]
