"""
Run lifecycle errors.

All of these propagate uncaught through the adapters; only the
invocation driver decides whether a failure aborts the batch.
"""

from __future__ import annotations


class StudioError(Exception):
    """Base exception for run lifecycle errors."""

    def __init__(
        self,
        message: str,
        family: str | None = None,
        run_id: str | None = None,
    ):
        super().__init__(message)
        self.family = family
        self.run_id = run_id


class SubmissionError(StudioError):
    """Submission was accepted but returned no usable run identifier."""
    pass


class InvalidHandleError(StudioError):
    """Empty handle, or a handle issued by another family."""
    pass


class RemoteRunFailure(StudioError):
    """The remote service reported a terminal failure for the run."""

    def __init__(
        self,
        message: str,
        remote_message: str,
        family: str | None = None,
        run_id: str | None = None,
    ):
        super().__init__(message, family=family, run_id=run_id)
        self.remote_message = remote_message


class UnexpectedRunState(RemoteRunFailure):
    """A strict family reported a status outside its vocabulary."""

    def __init__(
        self,
        message: str,
        state: str | None,
        family: str | None = None,
        run_id: str | None = None,
    ):
        super().__init__(
            message,
            remote_message=f"Unknown status {state}",
            family=family,
            run_id=run_id,
        )
        self.state = state


class PollTimeout(StudioError):
    """The local polling budget ran out before a terminal state.

    The remote run is not cancelled and may still complete.
    """

    def __init__(
        self,
        message: str,
        timeout: float,
        family: str | None = None,
        run_id: str | None = None,
    ):
        super().__init__(message, family=family, run_id=run_id)
        self.timeout = timeout
