"""
Transport base classes and data structures.

Defines the contract between the run client and whatever executes
authenticated HTTP calls against the API.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any


@dataclass
class ApiRequest:
    """Specification for one API call."""

    path: str
    method: str = "GET"
    params: dict[str, str] = field(default_factory=dict)
    json_body: dict[str, Any] | None = None


class Transport(ABC):
    """Abstract base class for API transports.

    Implementations own authentication, headers, TLS and timeouts.
    They perform exactly one round trip per call and never retry.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Transport identifier."""
        pass

    @abstractmethod
    async def send(self, request: ApiRequest) -> Any:
        """Execute a request and return the parsed JSON body.

        Raises:
            TransportError: On network failure, HTTP error status or
                an undecodable body
        """
        pass

    async def get(self, path: str, params: dict[str, str] | None = None) -> Any:
        return await self.send(ApiRequest(path=path, method="GET", params=params or {}))

    async def post(self, path: str, json_body: dict[str, Any]) -> Any:
        return await self.send(ApiRequest(path=path, method="POST", json_body=json_body))

    async def close(self) -> None:
        """Release transport resources."""
        pass

    async def __aenter__(self) -> "Transport":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()


class TransportError(Exception):
    """Network or HTTP level failure talking to the API."""

    def __init__(
        self,
        message: str,
        url: str | None = None,
        status_code: int | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.url = url
        self.status_code = status_code
        self.cause = cause
