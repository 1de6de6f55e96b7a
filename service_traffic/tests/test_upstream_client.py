"""
Unit tests for the upstream traffic API client.
"""

import httpx
import pytest

from service_traffic.app.adapters.upstream_client import (
    FetchSuccess,
    FetchTimeout,
    FetchTransportError,
    FetchUpstreamError,
    UpstreamClient,
    is_json_content_type,
)
from shared.test_helpers import StallingStream, StubReply, UpstreamStub


BASE_URL = "http://upstream.test/rest/4"


class TestUpstreamClient:
    """Test cases for UpstreamClient."""

    @pytest.fixture
    def stub(self):
        return UpstreamStub()

    @pytest.fixture
    def upstream(self, stub):
        return UpstreamClient(BASE_URL, 0.5, client=stub.client())

    def test_build_url(self, upstream):
        assert upstream.build_url("findRegionsAll") == f"{BASE_URL}/findRegionsAll"
        assert upstream.build_url("findCamerasByRegion", "regionId=3") == f"{BASE_URL}/findCamerasByRegion?regionId=3"

    def test_trailing_slash_on_base_url_is_ignored(self):
        upstream = UpstreamClient(BASE_URL + "/", 1.0)
        assert upstream.build_url("findWaysAll") == f"{BASE_URL}/findWaysAll"

    @pytest.mark.asyncio
    async def test_json_success(self, upstream, stub):
        stub.reply = StubReply(body={"foo": 1})

        outcome = await upstream.fetch("findRegionsAll")

        assert outcome == FetchSuccess(200, {"foo": 1})
        assert stub.call_count == 1
        request = stub.requests[0]
        assert str(request.url) == f"{BASE_URL}/findRegionsAll"
        assert request.method == "GET"
        assert request.headers["Accept"] == "application/json"

    @pytest.mark.asyncio
    async def test_query_string_passed_through(self, upstream, stub):
        stub.reply = StubReply(body=[])

        await upstream.fetch("findCamerasWithinBounds", "lat=-41.2&lng=174.7")

        assert stub.requests[0].url.query == b"lat=-41.2&lng=174.7"

    @pytest.mark.asyncio
    async def test_json_with_charset(self, upstream, stub):
        stub.reply = StubReply(body={"a": [1, 2]}, content_type="application/json; charset=utf-8")

        outcome = await upstream.fetch("findWaysAll")

        assert outcome == FetchSuccess(200, {"a": [1, 2]})

    @pytest.mark.asyncio
    async def test_text_body_normalized_to_raw_object(self, upstream, stub):
        stub.reply = StubReply(body="<response>ok</response>", content_type="application/xml")

        outcome = await upstream.fetch("findWaysAll")

        assert isinstance(outcome, FetchSuccess)
        assert outcome.body == {"raw": "<response>ok</response>"}

    @pytest.mark.asyncio
    async def test_missing_content_type_treated_as_text(self, upstream, stub):
        stub.reply = StubReply(body="plain words", content_type="")

        outcome = await upstream.fetch("findWaysAll")

        assert outcome == FetchSuccess(200, {"raw": "plain words"})

    @pytest.mark.asyncio
    async def test_invalid_json_is_transport_error(self, upstream, stub):
        stub.reply = StubReply(body="{not json", content_type="application/json")

        outcome = await upstream.fetch("findWaysAll")

        assert isinstance(outcome, FetchTransportError)
        assert "Invalid JSON" in outcome.reason

    @pytest.mark.asyncio
    async def test_non_2xx_is_upstream_error_with_raw_body(self, upstream, stub):
        stub.reply = StubReply(status_code=503, body="Service Unavailable", content_type="text/plain")

        outcome = await upstream.fetch("findRoadEventsAll")

        assert outcome == FetchUpstreamError(503, "Service Unavailable")
        assert stub.call_count == 1

    @pytest.mark.asyncio
    async def test_json_error_body_kept_as_text(self, upstream, stub):
        stub.reply = StubReply(status_code=404, body={"message": "nope"})

        outcome = await upstream.fetch("findRoadEventsAll")

        assert outcome == FetchUpstreamError(404, '{"message": "nope"}')

    @pytest.mark.asyncio
    async def test_slow_upstream_times_out(self, stub):
        stub.reply = StubReply(body={"late": True}, delay=1.0)
        upstream = UpstreamClient(BASE_URL, 0.05, client=stub.client())

        outcome = await upstream.fetch("findCamerasAll")

        assert outcome == FetchTimeout(0.05)
        assert stub.call_count == 1
        assert stub.in_flight == 0

    @pytest.mark.asyncio
    async def test_stalled_body_times_out_and_closes_stream(self, stub):
        stream = StallingStream()
        stub.reply = StubReply(stream=stream)
        upstream = UpstreamClient(BASE_URL, 0.05, client=stub.client())

        outcome = await upstream.fetch("findCamerasAll")

        assert outcome == FetchTimeout(0.05)
        assert stream.closed is True

    @pytest.mark.asyncio
    async def test_per_call_timeout_overrides_default(self, upstream, stub):
        stub.reply = StubReply(body={"late": True}, delay=1.0)

        outcome = await upstream.fetch("findCamerasAll", timeout=0.05)

        assert outcome == FetchTimeout(0.5)
        assert stub.in_flight == 0

    @pytest.mark.asyncio
    async def test_client_timeout_exception_is_timeout(self, upstream, stub):
        stub.reply = StubReply(raise_error=httpx.ReadTimeout("read timed out"))

        outcome = await upstream.fetch("findCamerasAll")

        assert isinstance(outcome, FetchTimeout)

    @pytest.mark.asyncio
    async def test_connection_failure_is_transport_error(self, upstream, stub):
        stub.reply = StubReply(raise_error=httpx.ConnectError("connection refused"))

        outcome = await upstream.fetch("findCamerasAll")

        assert outcome == FetchTransportError("connection refused")

    @pytest.mark.asyncio
    async def test_close_leaves_injected_client_open(self, stub):
        client = stub.client()
        upstream = UpstreamClient(BASE_URL, 1.0, client=client)

        await upstream.close()

        assert client.is_closed is False
        await client.aclose()

    def test_invalid_timeout_rejected(self):
        with pytest.raises(ValueError):
            UpstreamClient(BASE_URL, 0)


@pytest.mark.parametrize(
    "content_type, expected",
    [
        ("application/json", True),
        ("application/json; charset=utf-8", True),
        ("APPLICATION/JSON", True),
        ("application/geo+json", True),
        ("text/plain", False),
        ("text/html; charset=utf-8", False),
        ("", False),
    ],
)
def test_is_json_content_type(content_type, expected):
    assert is_json_content_type(content_type) is expected
