"""CLI command modules."""

from . import batch, common, operations

__all__ = [
    "batch",
    "common",
    "operations",
]
