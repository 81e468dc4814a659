"""
Per-family run configuration.

Each operation family talks to its own endpoints and reports status in
its own shape. The differences are captured in a FamilySpec record that
the generic RunClient consumes.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from studiolink.core.config.models import Family


class RunState(str, Enum):
    """Canonical run state."""

    IN_PROGRESS = "in_progress"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


DEFAULT_SUCCESS_STATES = frozenset({"completed", "success"})
DEFAULT_FAILURE_STATES = frozenset({"failed", "error"})
DEFAULT_IN_PROGRESS_STATES = frozenset({"pending", "running", "processing"})


@dataclass(frozen=True)
class FamilySpec:
    """Endpoints and status vocabulary of one operation family."""

    family: Family
    label: str  # Used in error messages, e.g. "Scraping failed: ..."
    submit_path: str
    data_path: str
    # None means status and data come back from data_path in one call
    status_path: str | None
    # Dotted location of the status value in the status response
    status_field: str = "status"
    success_states: frozenset[str] = DEFAULT_SUCCESS_STATES
    failure_states: frozenset[str] = DEFAULT_FAILURE_STATES
    in_progress_states: frozenset[str] = DEFAULT_IN_PROGRESS_STATES
    # Unknown states are a hard failure instead of "still running"
    strict_states: bool = False

    @property
    def name(self) -> str:
        return self.family.value

    @property
    def combined_status(self) -> bool:
        """Whether status arrives together with the data."""
        return self.status_path is None

    @property
    def poll_path(self) -> str:
        return self.status_path or self.data_path

    def status_container(self, body: Any) -> dict[str, Any]:
        """Return the mapping that holds the status field."""
        container = body if isinstance(body, dict) else {}
        for part in self.status_field.split(".")[:-1]:
            inner = container.get(part)
            container = inner if isinstance(inner, dict) else {}
        return container

    def extract_status(self, body: Any) -> str | None:
        """Read the raw status value from a status response."""
        key = self.status_field.rsplit(".", 1)[-1]
        value = self.status_container(body).get(key)
        return None if value is None else str(value)

    def classify(self, status: str | None) -> RunState | None:
        """Map a raw status to the canonical state.

        Returns None for a status outside the family's vocabulary.
        """
        if status in self.success_states:
            return RunState.SUCCEEDED
        if status in self.failure_states:
            return RunState.FAILED
        if status in self.in_progress_states:
            return RunState.IN_PROGRESS
        return None


SCRAPE = FamilySpec(
    family=Family.SCRAPE,
    label="Scraping",
    submit_path="/scrape",
    status_path="/scrape/run",
    data_path="/scrape/run/data",
)

CRAWL = FamilySpec(
    family=Family.CRAWL,
    label="Crawling",
    submit_path="/extract/run",
    status_path="/extract/run/steps",
    data_path="/extract/run/data",
    status_field="run.status",
)

BROWSE = FamilySpec(
    family=Family.BROWSE,
    label="Browsing",
    submit_path="/browser-agent/run",
    status_path="/browser-agent/run/steps",
    data_path="/browser-agent/run/data",
    status_field="run.status",
)

SEARCH = FamilySpec(
    family=Family.SEARCH,
    label="Search",
    submit_path="/search/run",
    status_path=None,
    data_path="/search/run/data",
    success_states=frozenset({"completed"}),
    failure_states=frozenset({"failed"}),
    in_progress_states=frozenset({"processing"}),
    strict_states=True,
)

FAMILIES: dict[Family, FamilySpec] = {
    spec.family: spec for spec in (SCRAPE, CRAWL, BROWSE, SEARCH)
}
