"""
Request orchestration for the traffic proxy.

Each request walks: validate resource -> fresh cache -> limiter slot ->
upstream fetch -> (store both tiers | stale fallback | error). Nothing is
retried; the stale tier is the only resilience mechanism.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, Iterable, Optional, Tuple
from urllib.parse import urlencode

from shared.errors import (
    InternalProxyError,
    ProxyError,
    UpstreamHTTPError,
    UpstreamTimeoutError,
    UpstreamTransportError,
    ValidationError,
)
from shared.logging import get_logger

from service_traffic.app.adapters.upstream_client import (
    FetchOutcome,
    FetchSuccess,
    FetchTimeout,
    FetchUpstreamError,
    UpstreamClient,
)
from service_traffic.app.caching.cache_manager import TieredCache
from service_traffic.app.domain.resources import is_allowed
from service_traffic.app.ratelimit.concurrency_limiter import ConcurrencyLimiter

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector


STALE_WARNING = "Upstream error, served stale cache"

_MISSING = object()


class CacheStatus(str, Enum):
    """Which path served a response; sent to callers as ``X-Cache``."""

    HIT = "HIT"
    MISS = "MISS"
    STALE = "STALE"


@dataclass(frozen=True)
class ProxyResult:
    status_code: int
    body: Any
    cache_status: CacheStatus


def with_stale_warning(value: Any) -> Dict[str, Any]:
    """Copy of a stale value annotated with the stale-served warning."""
    meta = {"warning": STALE_WARNING}
    if isinstance(value, dict):
        return {**value, "meta": meta}
    return {"data": value, "meta": meta}


def _outcome_label(outcome: FetchOutcome) -> str:
    if isinstance(outcome, FetchSuccess):
        return "success"
    if isinstance(outcome, FetchUpstreamError):
        return "http_error"
    if isinstance(outcome, FetchTimeout):
        return "timeout"
    return "transport_error"


class TrafficProxy:
    """Serves whitelisted upstream resources through the two-tier cache."""

    def __init__(
        self,
        cache: TieredCache,
        limiter: ConcurrencyLimiter,
        upstream: UpstreamClient,
        *,
        metrics: Optional["MetricsCollector"] = None,
    ) -> None:
        self.cache = cache
        self.limiter = limiter
        self.upstream = upstream
        self.metrics = metrics
        self.logger = get_logger("traffic.proxy")

    async def handle(
        self,
        resource: str,
        params: Iterable[Tuple[str, str]] = (),
    ) -> ProxyResult:
        """Serve ``resource`` for the given query parameters.

        The parameters are re-encoded in caller order for the upstream call,
        so the forwarded query and the cache key always derive from the same
        pairs. Failures surface as ``ProxyError`` subclasses carrying the HTTP
        status to respond with.
        """
        if not is_allowed(resource):
            self.logger.info("Rejected unsupported resource", resource=resource)
            raise ValidationError("Unsupported resource", details={"resource": resource})

        pairs = list(params)
        key = self.cache.build_key(resource, pairs)
        query = urlencode(pairs)

        try:
            return await self._serve(resource, key, query)
        except ProxyError:
            raise
        except asyncio.TimeoutError as exc:
            self.logger.error("Upstream timeout escaped fetch", resource=resource, key=key)
            raise UpstreamTimeoutError() from exc
        except Exception as exc:
            self.logger.error("Proxy pipeline failed", resource=resource, key=key, error=str(exc), exc_info=True)
            raise InternalProxyError() from exc

    async def _serve(self, resource: str, key: str, query: str) -> ProxyResult:
        cached = self.cache.get_fresh(key, _MISSING)
        if cached is not _MISSING:
            self.logger.debug("Cache hit", resource=resource, key=key)
            self._record_cache_result(CacheStatus.HIT)
            return ProxyResult(200, cached, CacheStatus.HIT)

        # One budget covers both the wait for a limiter slot and the fetch
        budget = self.upstream.timeout_seconds
        deadline = asyncio.get_running_loop().time() + budget
        try:
            outcome = await asyncio.wait_for(
                self.limiter.run(lambda: self._fetch(resource, query, deadline)),
                timeout=budget,
            )
        except asyncio.TimeoutError:
            self.logger.warning("Upstream request budget exhausted", resource=resource, key=key)
            outcome = FetchTimeout(budget)

        if isinstance(outcome, FetchSuccess):
            self.cache.store_value(key, outcome.body)
            self.logger.info("Cache miss served from upstream", resource=resource, key=key)
            self._record_cache_result(CacheStatus.MISS)
            return ProxyResult(200, outcome.body, CacheStatus.MISS)

        return self._fall_back(resource, key, outcome)

    async def _fetch(self, resource: str, query: str, deadline: float) -> FetchOutcome:
        remaining = deadline - asyncio.get_running_loop().time()
        inflight = self.metrics.get_metric("upstream_inflight_requests") if self.metrics else None
        if inflight is not None:
            inflight.inc()
        start = time.perf_counter()
        try:
            outcome = await self.upstream.fetch(resource, query, timeout=remaining)
        finally:
            if inflight is not None:
                inflight.dec()
        self._record_fetch(outcome, time.perf_counter() - start)
        return outcome

    def _fall_back(self, resource: str, key: str, outcome: FetchOutcome) -> ProxyResult:
        stale = self.cache.get_stale(key, _MISSING)
        if stale is not _MISSING:
            self.logger.warning(
                "Serving stale cache after upstream failure",
                resource=resource,
                key=key,
                outcome=_outcome_label(outcome),
            )
            self._record_cache_result(CacheStatus.STALE)
            return ProxyResult(200, with_stale_warning(stale), CacheStatus.STALE)

        self.logger.warning(
            "Upstream failure with no stale fallback",
            resource=resource,
            key=key,
            outcome=_outcome_label(outcome),
        )
        if isinstance(outcome, FetchUpstreamError):
            raise UpstreamHTTPError(outcome.status_code, outcome.raw_body)
        if isinstance(outcome, FetchTimeout):
            raise UpstreamTimeoutError(details={"timeout_seconds": outcome.timeout_seconds})
        raise UpstreamTransportError(outcome.reason)

    def _record_cache_result(self, status: CacheStatus) -> None:
        if self.metrics:
            self.metrics.record_cache_result(status.value.lower())

    def _record_fetch(self, outcome: FetchOutcome, duration: float) -> None:
        if not self.metrics:
            return
        label = _outcome_label(outcome)
        self.metrics.increment_counter("upstream_requests_total", outcome=label)
        self.metrics.observe_histogram("upstream_request_duration_seconds", duration, outcome=label)
