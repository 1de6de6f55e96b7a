"""
Load limiting package for the traffic proxy.

Holds the concurrency limiter that caps how many upstream calls are in
flight at once, regardless of the inbound request rate.
"""

from .concurrency_limiter import ConcurrencyLimiter

__all__ = ["ConcurrencyLimiter"]
