"""
Request orchestration layer for the traffic proxy.
"""

from .proxy import STALE_WARNING, CacheStatus, ProxyResult, TrafficProxy, with_stale_warning

__all__ = ["STALE_WARNING", "CacheStatus", "ProxyResult", "TrafficProxy", "with_stale_warning"]
