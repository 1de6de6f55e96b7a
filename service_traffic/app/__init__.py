"""
Traffic proxy service package.

The proxy fronts a single read-only traffic API, enforcing:
- A fixed whitelist of upstream resources
- Fresh/stale two-tier caching of successful responses
- A bound on concurrent upstream calls
- Stale fallback when the upstream errors or times out

Structure:
- app.main: FastAPI app, routes, and lifecycle wiring.
- app.domain: Resource whitelist.
- app.caching: TTL store, sweeper and fresh/stale tiers.
- app.ratelimit: Concurrency limiter for upstream calls.
- app.adapters: HTTP client for the upstream API.
- app.traffic: Request orchestration and fallback decisions.
"""
