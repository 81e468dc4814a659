"""Run lifecycle - submit, poll, fetch."""

from .base import RunHandle, RunResult, StatusReport
from .client import RunClient
from .errors import (
    InvalidHandleError,
    PollTimeout,
    RemoteRunFailure,
    StudioError,
    SubmissionError,
    UnexpectedRunState,
)
from .families import (
    BROWSE,
    CRAWL,
    FAMILIES,
    SCRAPE,
    SEARCH,
    FamilySpec,
    RunState,
)

__all__ = [
    # Data
    "RunHandle",
    "RunResult",
    "StatusReport",
    "RunState",
    # Client
    "RunClient",
    # Families
    "FamilySpec",
    "FAMILIES",
    "SCRAPE",
    "CRAWL",
    "BROWSE",
    "SEARCH",
    # Errors
    "StudioError",
    "SubmissionError",
    "InvalidHandleError",
    "RemoteRunFailure",
    "UnexpectedRunState",
    "PollTimeout",
]
