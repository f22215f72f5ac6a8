"""
Session transports for quiz-flow

Common interface over the public quiz API.
Transports: HTTP (httpx) and an in-memory mock.
"""

from .base import (
    SessionTransport, TransportError, SessionTransportError,
    DefinitionLoadError, Attribution
)
from .http import HttpSessionTransport
from .mock import MockTransport, TransportCall

__all__ = [
    # Base classes and types
    "SessionTransport",
    "TransportError",
    "SessionTransportError",
    "DefinitionLoadError",
    "Attribution",
    # Transports
    "HttpSessionTransport",
    "MockTransport",
    "TransportCall",
]


def get_transport(name: str, **kwargs) -> SessionTransport:
    """
    Factory function to get a transport by name.

    Args:
        name: Transport name ('http', 'mock')
        **kwargs: Transport-specific options

    Returns:
        Configured SessionTransport instance

    Raises:
        ValueError: If transport name is unknown
    """
    transports = {
        "http": HttpSessionTransport,
        "mock": MockTransport,
    }

    if name not in transports:
        raise ValueError(f"Unknown transport: {name}. Valid options: {list(transports.keys())}")

    return transports[name](**kwargs)
