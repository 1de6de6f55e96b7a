"""
Adapters package for the traffic proxy.

Contains the HTTP client for the proxied upstream API. The adapter
encapsulates:

- Base URL and request shape
- The per-request timeout
- Classification of responses into fetch outcomes

Keep adapters thin and side-effect free outside of explicit calls.
"""

from .upstream_client import (
    FetchOutcome,
    FetchSuccess,
    FetchTimeout,
    FetchTransportError,
    FetchUpstreamError,
    UpstreamClient,
)

__all__ = [
    "FetchOutcome",
    "FetchSuccess",
    "FetchTimeout",
    "FetchTransportError",
    "FetchUpstreamError",
    "UpstreamClient",
]
