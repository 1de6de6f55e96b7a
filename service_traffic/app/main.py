"""
Traffic proxy service.
"""

import time
from typing import Callable, Optional

import httpx
from fastapi import Request
from fastapi.responses import JSONResponse

from shared.base_service import BaseService
from shared.config import ServiceConfig
from shared.logging import set_resource

from service_traffic.app.adapters.upstream_client import UpstreamClient
from service_traffic.app.caching.cache_manager import TieredCache
from service_traffic.app.caching.memory_cache import CacheSweeper, MemoryCache
from service_traffic.app.domain.resources import allowed_resources
from service_traffic.app.ratelimit.concurrency_limiter import ConcurrencyLimiter
from service_traffic.app.traffic.proxy import TrafficProxy


class TrafficService(BaseService):
    """Caching reverse proxy for the traffic API."""

    def __init__(
        self,
        config: Optional[ServiceConfig] = None,
        *,
        http_client: Optional[httpx.AsyncClient] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        super().__init__("traffic", config)

        self.cache_store = MemoryCache(clock=clock)
        self.cache = TieredCache(
            self.cache_store,
            self.config.cache_ttl_seconds,
            stale_multiplier=self.config.stale_ttl_multiplier,
        )
        self.sweeper = CacheSweeper(self.cache_store, self.config.sweep_interval_seconds)
        self.limiter = ConcurrencyLimiter(self.config.concurrency)
        self.upstream_client = UpstreamClient(
            self.config.upstream_base_url,
            self.config.request_timeout_seconds,
            client=http_client,
        )
        self.proxy = TrafficProxy(
            self.cache,
            self.limiter,
            self.upstream_client,
            metrics=self.metrics,
        )

        self._setup_traffic_routes()

        # Expose service instance via app state for introspection/testing
        self.app.state.traffic_service = self

    async def on_startup(self) -> None:
        self.sweeper.start()
        self.logger.info(
            "Traffic proxy configured",
            upstream=self.config.upstream_base_url,
            cache_ttl_seconds=self.config.cache_ttl_seconds,
            stale_ttl_seconds=self.config.stale_ttl_seconds,
            request_timeout_ms=self.config.request_timeout_ms,
            concurrency=self.config.concurrency,
        )

    async def on_shutdown(self) -> None:
        await self.sweeper.stop()
        await self.upstream_client.close()

    def _setup_traffic_routes(self):
        """Set up proxy routes."""

        @self.app.get("/")
        async def root():
            """Root endpoint."""
            return {
                **self.describe(),
                "message": "Traffic API caching proxy",
                "endpoints": {
                    "traffic": "/api/traffic/{resource}",
                    "health": "/health",
                    "cache_stats": "/cache/stats",
                    "metrics": "/metrics",
                },
                "resources": list(allowed_resources()),
            }

        @self.app.get("/api/traffic/{resource}")
        async def get_traffic_resource(resource: str, request: Request):
            """Proxy a whitelisted upstream resource through the cache."""
            set_resource(resource)
            result = await self.proxy.handle(resource, request.query_params.multi_items())
            return JSONResponse(
                status_code=result.status_code,
                content=result.body,
                headers={"X-Cache": result.cache_status.value},
            )

        @self.app.get("/cache/stats")
        async def get_cache_stats():
            """Cache and limiter statistics."""
            return {
                "cache": self.cache.stats(),
                "limiter": self.limiter.stats(),
                "sweeper_running": self.sweeper.running,
            }


def create_app(config: Optional[ServiceConfig] = None, **kwargs):
    """Create FastAPI application."""
    service = TrafficService(config, **kwargs)
    return service.app


def main() -> None:
    TrafficService().run()


if __name__ == "__main__":
    main()
