"""
Test helpers for the traffic proxy.
"""

import asyncio
import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import httpx


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@dataclass
class StubReply:
    """Canned upstream reply."""

    status_code: int = 200
    body: Any = None
    content_type: str = "application/json"
    delay: float = 0.0
    raise_error: Optional[Exception] = None
    stream: Optional[httpx.AsyncByteStream] = None

    def encode(self) -> bytes:
        if isinstance(self.body, (bytes, bytearray)):
            return bytes(self.body)
        if isinstance(self.body, str):
            return self.body.encode("utf-8")
        return json.dumps(self.body).encode("utf-8")


@dataclass
class UpstreamStub:
    """httpx transport handler that records calls and replays a configurable reply."""

    reply: StubReply = field(default_factory=StubReply)
    requests: List[httpx.Request] = field(default_factory=list)
    in_flight: int = 0
    peak_in_flight: int = 0

    @property
    def call_count(self) -> int:
        return len(self.requests)

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        self.in_flight += 1
        self.peak_in_flight = max(self.peak_in_flight, self.in_flight)
        try:
            reply = self.reply
            if reply.delay:
                await asyncio.sleep(reply.delay)
            if reply.raise_error is not None:
                raise reply.raise_error
            headers: Dict[str, str] = {}
            if reply.content_type:
                headers["content-type"] = reply.content_type
            if reply.stream is not None:
                return httpx.Response(reply.status_code, headers=headers, stream=reply.stream)
            return httpx.Response(reply.status_code, headers=headers, content=reply.encode())
        finally:
            self.in_flight -= 1

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self))


class StallingStream(httpx.AsyncByteStream):
    """Body stream that sends one chunk and then stalls; records whether it was closed."""

    def __init__(self, first_chunk: bytes = b'{"partial": ', stall_seconds: float = 1.0):
        self.first_chunk = first_chunk
        self.stall_seconds = stall_seconds
        self.closed = False

    async def __aiter__(self):
        yield self.first_chunk
        await asyncio.sleep(self.stall_seconds)
        yield b"}"

    async def aclose(self) -> None:
        self.closed = True
