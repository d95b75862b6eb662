"""Tests for error classification and retry logic."""

import httpx
import pytest

from pokedex.data.resilience import (
    ErrorCategory,
    classify_error,
    get_user_message,
    with_retry,
)
from pokedex.data.source import MalformedResponseError, TransportError


def status_error(status: int) -> httpx.HTTPStatusError:
    request = httpx.Request("POST", "https://beta.pokeapi.co/graphql/v1beta")
    response = httpx.Response(status, request=request)
    return httpx.HTTPStatusError(f"HTTP {status}", request=request, response=response)


class TestClassifyError:
    """Test error classification for retry decisions."""

    def test_malformed_response_is_permanent(self):
        assert classify_error(MalformedResponseError("bad shape")) == ErrorCategory.PERMANENT

    @pytest.mark.parametrize("status", [500, 502, 503, 504, 408, 429])
    def test_server_and_throttle_statuses_are_transient(self, status):
        assert classify_error(status_error(status)) == ErrorCategory.TRANSIENT

    @pytest.mark.parametrize("status", [400, 401, 403, 404])
    def test_client_statuses_are_permanent(self, status):
        assert classify_error(status_error(status)) == ErrorCategory.PERMANENT

    def test_transport_error_status_is_used(self):
        assert classify_error(TransportError("HTTP 503", status_code=503)) == ErrorCategory.TRANSIENT
        assert classify_error(TransportError("HTTP 400", status_code=400)) == ErrorCategory.PERMANENT

    def test_httpx_timeout_is_transient(self):
        assert classify_error(httpx.ReadTimeout("read timed out")) == ErrorCategory.TRANSIENT

    def test_httpx_connect_error_is_transient(self):
        assert classify_error(httpx.ConnectError("connection refused")) == ErrorCategory.TRANSIENT

    def test_builtin_connection_error_is_transient(self):
        assert classify_error(ConnectionResetError("reset")) == ErrorCategory.TRANSIENT

    def test_message_indicator_is_transient(self):
        assert classify_error(Exception("network is unreachable")) == ErrorCategory.TRANSIENT

    def test_unknown_error_is_permanent(self):
        assert classify_error(Exception("something completely unexpected")) == ErrorCategory.PERMANENT


class TestGetUserMessage:
    """Test user-friendly error messages."""

    def test_malformed_message(self):
        assert "unexpected response" in get_user_message(MalformedResponseError("x"))

    def test_throttle_message(self):
        assert "too many requests" in get_user_message(status_error(429)).lower()

    def test_server_error_message(self):
        assert "server" in get_user_message(status_error(503)).lower()

    def test_timeout_message(self):
        assert "too long to respond" in get_user_message(TimeoutError("timeout")).lower()

    def test_connection_message(self):
        msg = get_user_message(ConnectionRefusedError("Connection refused"))
        assert "internet connection" in msg.lower()

    def test_permanent_fallback(self):
        assert get_user_message(Exception("bad query")) == "Request failed: bad query"


class TestWithRetry:
    """Test retry logic with exponential backoff."""

    @pytest.mark.asyncio
    async def test_success_on_first_try(self):
        call_count = 0

        async def operation():
            nonlocal call_count
            call_count += 1
            return "ok"

        result = await with_retry(operation, max_retries=3, initial_delay=0.01)
        assert result == "ok"
        assert call_count == 1

    @pytest.mark.asyncio
    async def test_success_after_transient_failure(self):
        call_count = 0

        async def operation():
            nonlocal call_count
            call_count += 1
            if call_count < 3:
                raise httpx.ConnectError("connection reset")
            return "ok"

        result = await with_retry(operation, max_retries=3, initial_delay=0.01)
        assert result == "ok"
        assert call_count == 3

    @pytest.mark.asyncio
    async def test_permanent_error_not_retried(self):
        call_count = 0

        async def operation():
            nonlocal call_count
            call_count += 1
            raise status_error(400)

        with pytest.raises(httpx.HTTPStatusError):
            await with_retry(operation, max_retries=3, initial_delay=0.01)

        assert call_count == 1

    @pytest.mark.asyncio
    async def test_max_retries_exceeded(self):
        call_count = 0

        async def operation():
            nonlocal call_count
            call_count += 1
            raise status_error(503)

        with pytest.raises(httpx.HTTPStatusError):
            await with_retry(operation, max_retries=2, initial_delay=0.01)

        assert call_count == 3  # 1 initial + 2 retries

    @pytest.mark.asyncio
    async def test_on_retry_callback(self):
        retries = []

        async def operation():
            raise ConnectionError("fail")

        def on_retry(attempt, delay, error):
            retries.append(attempt)

        with pytest.raises(ConnectionError):
            await with_retry(
                operation, max_retries=2, initial_delay=0.01, on_retry=on_retry,
            )

        assert retries == [1, 2]
