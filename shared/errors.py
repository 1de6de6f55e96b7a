"""
Shared error handling for the traffic proxy.

Every failure path renders as a JSON object carrying an ``error`` field.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Standard error response format."""

    error: str
    detail: Optional[Any] = None


class ProxyError(Exception):
    """Base exception for proxy failures that map to an HTTP response."""

    status_code: int = 500

    def __init__(
        self,
        code: str,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        *,
        status_code: Optional[int] = None,
    ):
        self.code = code
        self.message = message
        self.details = details or {}
        if status_code is not None:
            self.status_code = status_code
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(error=self.message, detail=self.details.get("detail"))

    def to_content(self) -> Dict[str, Any]:
        """JSON-ready body, omitting an empty detail."""
        return self.to_response().model_dump(exclude_none=True)


class ValidationError(ProxyError):
    """Request rejected before reaching the upstream."""

    status_code = 400

    def __init__(self, message: str = "Unsupported resource", details: Optional[Dict[str, Any]] = None):
        super().__init__("VALIDATION_ERROR", message, details)


class UpstreamHTTPError(ProxyError):
    """Upstream answered with a non-2xx status."""

    def __init__(self, status_code: int, detail: Any = None, message: str = "Upstream error"):
        super().__init__(
            "UPSTREAM_HTTP_ERROR",
            message,
            {"detail": detail, "upstream_status": status_code},
            status_code=status_code,
        )


class UpstreamTransportError(ProxyError):
    """Network, protocol or body parse failure talking to the upstream."""

    status_code = 502

    def __init__(self, detail: Any = None, message: str = "Upstream error"):
        super().__init__("UPSTREAM_TRANSPORT_ERROR", message, {"detail": detail})


class UpstreamTimeoutError(ProxyError):
    """Upstream did not respond within the request budget."""

    status_code = 504

    def __init__(self, message: str = "Upstream timeout", details: Optional[Dict[str, Any]] = None):
        super().__init__("UPSTREAM_TIMEOUT", message, details)


class InternalProxyError(ProxyError):
    """Unexpected failure inside the proxy pipeline."""

    status_code = 504

    def __init__(self, message: str = "Proxy error", details: Optional[Dict[str, Any]] = None):
        super().__init__("INTERNAL_ERROR", message, details)
