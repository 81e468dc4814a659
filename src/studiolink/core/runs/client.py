"""
Generic submit / poll / fetch client.

One RunClient serves one operation family. It submits a payload,
checks run status at a fixed interval until the run reaches a terminal
state or the wall-clock budget runs out, then retrieves the result.

Flow:
    submit -> loop(poll_status, sleep) -> fetch_result
"""

from __future__ import annotations

import asyncio
import time
from typing import Any, Awaitable, Callable

from studiolink.core.logging import get_contextual_logger
from studiolink.core.transport.base import Transport

from .base import RUN_ID_KEYS, RunHandle, RunResult, StatusReport
from .errors import (
    InvalidHandleError,
    PollTimeout,
    RemoteRunFailure,
    SubmissionError,
    UnexpectedRunState,
)
from .families import FamilySpec, RunState


SleepFunc = Callable[[float], Awaitable[Any]]
ClockFunc = Callable[[], float]

UNKNOWN_ERROR = "Unknown error"


class RunClient:
    """Submit-then-poll client for one operation family.

    The sleep function and clock are injectable so the polling loop can
    be driven without real waiting.
    """

    def __init__(
        self,
        transport: Transport,
        family: FamilySpec,
        *,
        sleep: SleepFunc = asyncio.sleep,
        clock: ClockFunc = time.monotonic,
    ):
        self.transport = transport
        self.family = family
        self._sleep = sleep
        self._clock = clock
        self.logger = get_contextual_logger("runs", family=family.name)

    # -------------------------------------------------------------------------
    # Primitives
    # -------------------------------------------------------------------------

    async def submit(self, payload: dict[str, Any]) -> RunHandle:
        """Submit a run and return its handle.

        Raises:
            SubmissionError: If the response carries neither run_id nor id
        """
        body = await self.transport.post(self.family.submit_path, payload)

        run_id = None
        if isinstance(body, dict):
            run_id = next((body[key] for key in RUN_ID_KEYS if body.get(key)), None)

        if not run_id:
            raise SubmissionError(
                f"No run ID returned from {self.family.name} request",
                family=self.family.name,
            )

        handle = RunHandle(run_id=str(run_id), family=self.family.name)
        self.logger.with_context(run_id=handle.run_id).info("Run submitted")
        return handle

    async def poll_status(self, handle: RunHandle | str) -> StatusReport:
        """Check the current status of a run once."""
        handle = self._check_handle(handle)
        body = await self.transport.get(self.family.poll_path, {"run_id": handle.run_id})

        status = self.family.extract_status(body)
        state = self.family.classify(status)
        if state is None and not self.family.strict_states:
            state = RunState.IN_PROGRESS

        return StatusReport(state=state, status=status, body=body)

    async def fetch_result(self, handle: RunHandle | str) -> Any:
        """Retrieve the raw result body of a run."""
        handle = self._check_handle(handle)
        return await self.transport.get(self.family.data_path, {"run_id": handle.run_id})

    # -------------------------------------------------------------------------
    # Orchestration
    # -------------------------------------------------------------------------

    async def run_to_completion(
        self,
        payload: dict[str, Any],
        timeout: float,
        poll_interval: float,
    ) -> RunResult:
        """Submit a run and wait for its result.

        The budget is measured from submission. The check happens before
        each status call, so the last wait may overshoot the budget by up
        to one interval.

        Args:
            payload: Request body for the submit endpoint
            timeout: Wall-clock budget in seconds
            poll_interval: Fixed wait between status checks in seconds

        Returns:
            Normalized RunResult wrapping the remote result body

        Raises:
            SubmissionError: No run identifier in the submit response
            RemoteRunFailure: Remote reported a failure state
            UnexpectedRunState: Strict family reported an unknown state
            PollTimeout: Budget exhausted before a terminal state
        """
        handle = await self.submit(payload)
        log = self.logger.with_context(run_id=handle.run_id)

        started = self._clock()
        polls = 0

        while self._clock() - started < timeout:
            report = await self.poll_status(handle)
            polls += 1
            log.debug(f"Poll {polls}: status={report.status!r}")

            if report.state is RunState.SUCCEEDED:
                log.info(f"Run {report.status} after {polls} poll(s)")
                if self.family.combined_status:
                    return RunResult.from_payload(report.body)
                return RunResult.from_payload(await self.fetch_result(handle))

            if report.state is RunState.FAILED:
                reason = self._failure_reason(report.body)
                log.warning(f"Run {report.status}: {reason}")
                raise RemoteRunFailure(
                    f"{self.family.label} failed: {reason}",
                    remote_message=reason,
                    family=self.family.name,
                    run_id=handle.run_id,
                )

            if report.state is None:
                log.warning(f"Unknown run status {report.status!r}")
                raise UnexpectedRunState(
                    f"{self.family.label} failed: Unknown status {report.status}",
                    state=report.status,
                    family=self.family.name,
                    run_id=handle.run_id,
                )

            await self._sleep(poll_interval)

        log.warning(f"Gave up after {polls} poll(s)")
        raise PollTimeout(
            f"{self.family.label} timeout after {timeout:.2f} seconds",
            timeout=timeout,
            family=self.family.name,
            run_id=handle.run_id,
        )

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _check_handle(self, handle: RunHandle | str | None) -> RunHandle:
        if not handle:
            raise InvalidHandleError("run_id is required", family=self.family.name)
        if isinstance(handle, str):
            return RunHandle(run_id=handle, family=self.family.name)
        if handle.family != self.family.name:
            raise InvalidHandleError(
                f"Run {handle.run_id} belongs to {handle.family}, not {self.family.name}",
                family=self.family.name,
                run_id=handle.run_id,
            )
        return handle

    def _failure_reason(self, body: Any) -> str:
        """Remote error text: error, then message, then a fallback.

        For each key the mapping holding the status field is searched
        before the top level of the body, so an `error` anywhere wins
        over any `message`.
        """
        top = body if isinstance(body, dict) else {}
        sources = (self.family.status_container(body), top)
        for key in ("error", "message"):
            for source in sources:
                if source.get(key):
                    return str(source[key])
        return UNKNOWN_ERROR
