"""
HTTP client for the proxied traffic API.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Optional, Union

import httpx

from shared.logging import get_logger


@dataclass(frozen=True)
class FetchSuccess:
    """2xx response with its body normalized to a JSON-compatible value."""

    status_code: int
    body: Any


@dataclass(frozen=True)
class FetchUpstreamError:
    """Non-2xx response; the body is kept verbatim as text."""

    status_code: int
    raw_body: str


@dataclass(frozen=True)
class FetchTimeout:
    """The exchange did not finish within the configured request timeout."""

    timeout_seconds: float


@dataclass(frozen=True)
class FetchTransportError:
    """Connection, protocol or body decoding failure."""

    reason: str


FetchOutcome = Union[FetchSuccess, FetchUpstreamError, FetchTimeout, FetchTransportError]


def is_json_content_type(content_type: str) -> bool:
    media_type = content_type.split(";", 1)[0].strip().lower()
    return media_type == "application/json" or media_type.endswith("+json")


class UpstreamClient:
    """Issues single, non-retried GETs against the upstream API.

    ``fetch_url`` never raises for upstream-originated failures; it returns
    one of the ``FetchOutcome`` variants instead.
    """

    def __init__(
        self,
        base_url: str,
        timeout_seconds: float,
        *,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        if timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be positive")
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self.logger = get_logger("traffic.upstream_client")
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(timeout_seconds),
            follow_redirects=True,
        )

    async def close(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_client:
            await self._client.aclose()

    def build_url(self, resource: str, query: str = "") -> str:
        url = f"{self.base_url}/{resource}"
        return f"{url}?{query}" if query else url

    async def fetch(self, resource: str, query: str = "", *, timeout: Optional[float] = None) -> FetchOutcome:
        return await self.fetch_url(self.build_url(resource, query), timeout=timeout)

    async def fetch_url(self, url: str, *, timeout: Optional[float] = None) -> FetchOutcome:
        """GET ``url`` and classify the result.

        The whole exchange, headers and body, must finish within ``timeout``
        seconds (the client's configured timeout by default).
        """
        budget = self.timeout_seconds if timeout is None else timeout
        request = self._client.build_request("GET", url, headers={"Accept": "application/json"})
        response: Optional[httpx.Response] = None

        try:
            async with asyncio.timeout(budget):
                response = await self._client.send(request, stream=True)
                await response.aread()
        except (asyncio.TimeoutError, httpx.TimeoutException):
            self.logger.warning("Upstream request timed out", url=url, timeout_seconds=budget)
            return FetchTimeout(self.timeout_seconds)
        except httpx.HTTPError as exc:
            self.logger.warning("Upstream request failed", url=url, error=str(exc))
            return FetchTransportError(str(exc) or exc.__class__.__name__)
        finally:
            if response is not None:
                await response.aclose()

        return self._classify(url, response)

    def _classify(self, url: str, response: httpx.Response) -> FetchOutcome:
        if not response.is_success:
            self.logger.warning(
                "Upstream returned error status",
                url=url,
                status_code=response.status_code,
            )
            return FetchUpstreamError(response.status_code, response.text)

        if is_json_content_type(response.headers.get("content-type", "")):
            try:
                body = response.json()
            except ValueError as exc:
                self.logger.warning("Upstream returned invalid JSON", url=url, error=str(exc))
                return FetchTransportError(f"Invalid JSON from upstream: {exc}")
        else:
            body = {"raw": response.text}

        self.logger.debug("Upstream response received", url=url, status_code=response.status_code)
        return FetchSuccess(response.status_code, body)
