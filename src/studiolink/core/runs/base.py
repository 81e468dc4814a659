"""
Run data structures.

Handles, status reports and terminal results exchanged between the
run client and its callers.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .families import RunState


RUN_ID_KEYS = ("run_id", "id")


@dataclass(frozen=True)
class RunHandle:
    """Identifier of one remote run, bound to the family that issued it."""

    run_id: str
    family: str

    def __bool__(self) -> bool:
        return bool(self.run_id)

    def __str__(self) -> str:
        return self.run_id


@dataclass
class StatusReport:
    """Outcome of one status check."""

    state: RunState | None  # None: status outside the family vocabulary
    status: str | None  # Raw remote value
    body: Any = None

    @property
    def terminal(self) -> bool:
        return self.state in (RunState.SUCCEEDED, RunState.FAILED)


@dataclass
class RunResult:
    """Terminal payload of a run.

    `raw` is the remote body exactly as received; `status`, `data` and
    `message` are the normalized view handed to callers.
    """

    status: str | None = None
    data: Any = None
    message: str | None = None
    raw: Any = field(default=None, repr=False)

    @classmethod
    def from_payload(cls, payload: Any) -> "RunResult":
        """Normalize a remote result body."""
        if not isinstance(payload, dict):
            return cls(data=payload, raw=payload)
        return cls(
            status=payload.get("status"),
            data=payload.get("data"),
            message=payload.get("message") or None,
            raw=payload,
        )

    def to_record(self) -> dict[str, Any]:
        """Output record for one invocation item."""
        return {
            "status": self.status,
            "data": self.data,
            "message": self.message,
        }
