"""Transports for talking to the API."""

from .base import ApiRequest, Transport, TransportError
from .http_transport import HttpxTransport

__all__ = [
    "ApiRequest",
    "Transport",
    "TransportError",
    "HttpxTransport",
]
