"""Tests for HTTP helpers including retry logic and error handling."""

from unittest.mock import AsyncMock

import httpx
import pytest

from typing import TYPE_CHECKING

from harvest.helpers import http
from harvest.helpers.http import create_http_client, is_retryable, retry_with_backoff
from harvest.helpers.rpc import RPCClient


if TYPE_CHECKING:
    from pytest_httpx import HTTPXMock


RPC_URL = "https://test.rpc/"


def status_error(status: int, headers: dict[str, str] | None = None) -> httpx.HTTPStatusError:
    request = httpx.Request("POST", RPC_URL)
    response = httpx.Response(status, request=request, headers=headers)
    return httpx.HTTPStatusError("boom", request=request, response=response)


@pytest.fixture
def no_sleep(monkeypatch: pytest.MonkeyPatch) -> AsyncMock:
    """Replace the backoff sleep with a recorder."""
    sleeper = AsyncMock()
    monkeypatch.setattr(http, "sleep", sleeper)
    return sleeper


class TestIsRetryable:
    """Tests for is_retryable."""

    @pytest.mark.parametrize("status", [429, 500, 502, 503])
    def test_retryable_statuses(self, status: int) -> None:
        """Test rate limiting and server errors are retryable."""
        assert is_retryable(status_error(status))

    @pytest.mark.parametrize("status", [400, 401, 404])
    def test_client_errors_not_retryable(self, status: int) -> None:
        """Test other 4xx responses are not retryable."""
        assert not is_retryable(status_error(status))

    def test_transport_errors_retryable(self) -> None:
        """Test timeouts and connection errors are retryable."""
        assert is_retryable(httpx.ReadTimeout("slow"))
        assert is_retryable(httpx.ConnectError("down"))

    def test_other_exceptions_not_retryable(self) -> None:
        """Test unrelated exceptions are not retryable."""
        assert not is_retryable(ValueError("bad payload"))


@pytest.mark.usefixtures("no_sleep")
class TestRetryWithBackoff:
    """Tests for retry_with_backoff decorator."""

    @pytest.mark.asyncio
    async def test_succeeds_on_first_try(self) -> None:
        """Test function succeeds without retries."""
        call_count = 0

        @retry_with_backoff(max_retries=3, log_errors=False)
        async def success_func() -> str:
            nonlocal call_count
            call_count += 1
            return "success"

        assert await success_func() == "success"
        assert call_count == 1

    @pytest.mark.asyncio
    async def test_retries_transport_errors(self, no_sleep: AsyncMock) -> None:
        """Test transport errors are retried with exponential delays."""
        call_count = 0

        @retry_with_backoff(max_retries=4, base_delay=1.0, log_errors=False)
        async def flaky() -> str:
            nonlocal call_count
            call_count += 1
            if call_count < 3:
                raise httpx.ConnectError("reset")
            return "ok"

        assert await flaky() == "ok"
        assert call_count == 3
        assert [call.args[0] for call in no_sleep.await_args_list] == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_delay_is_capped(self, no_sleep: AsyncMock) -> None:
        """Test the backoff never exceeds max_delay."""

        @retry_with_backoff(max_retries=4, base_delay=10.0, max_delay=15.0, log_errors=False)
        async def always_down() -> None:
            raise httpx.ConnectError("down")

        with pytest.raises(httpx.ConnectError):
            await always_down()

        assert [call.args[0] for call in no_sleep.await_args_list] == [10.0, 15.0, 15.0]

    @pytest.mark.asyncio
    async def test_honours_retry_after(self, no_sleep: AsyncMock) -> None:
        """Test a Retry-After header overrides the computed delay."""
        attempts = 0

        @retry_with_backoff(max_retries=2, log_errors=False)
        async def limited() -> str:
            nonlocal attempts
            attempts += 1
            if attempts == 1:
                raise status_error(429, {"Retry-After": "7"})
            return "ok"

        assert await limited() == "ok"
        no_sleep.assert_awaited_once_with(7.0)

    @pytest.mark.asyncio
    async def test_non_retryable_raised_immediately(self, no_sleep: AsyncMock) -> None:
        """Test a 400 response is not retried."""
        call_count = 0

        @retry_with_backoff(max_retries=5, log_errors=False)
        async def bad_request() -> None:
            nonlocal call_count
            call_count += 1
            raise status_error(400)

        with pytest.raises(httpx.HTTPStatusError):
            await bad_request()

        assert call_count == 1
        no_sleep.assert_not_awaited()


class TestCreateHttpClient:
    """Tests for create_http_client."""

    @pytest.mark.asyncio
    async def test_sets_timeout(self) -> None:
        """Test the default timeout is applied."""
        async with create_http_client(timeout=12.0) as client:
            assert client.timeout.read == 12.0

    @pytest.mark.asyncio
    async def test_accepts_custom_limits(self) -> None:
        """Test caller-provided limits are not overridden."""
        limits = httpx.Limits(max_connections=1)
        async with create_http_client(limits=limits) as client:
            assert isinstance(client, httpx.AsyncClient)


@pytest.mark.usefixtures("no_sleep")
class TestRPCClientOverHTTP:
    """Tests for RPCClient against a mocked transport."""

    @pytest.mark.asyncio
    async def test_retries_rate_limit(self, httpx_mock: "HTTPXMock") -> None:
        """Test a 429 response is retried and the next answer returned."""
        httpx_mock.add_response(url=RPC_URL, method="POST", status_code=429)
        httpx_mock.add_response(
            url=RPC_URL, method="POST", json={"jsonrpc": "2.0", "id": 1, "result": "0x10"}
        )

        async with httpx.AsyncClient() as client:
            block = await RPCClient(RPC_URL).get_block_number(client)

        assert block == 16
        assert len(httpx_mock.get_requests()) == 2

    @pytest.mark.asyncio
    async def test_request_payload(self, httpx_mock: "HTTPXMock") -> None:
        """Test the JSON-RPC envelope sent for eth_getLogs."""
        httpx_mock.add_response(
            url=RPC_URL, method="POST", json={"jsonrpc": "2.0", "id": 1, "result": []}
        )

        async with httpx.AsyncClient() as client:
            logs = await RPCClient(RPC_URL).get_logs(
                client, "0xabc", ["0xtopic"], 16, 31
            )

        assert logs == []
        body = httpx_mock.get_requests()[0].read()
        assert b'"method":"eth_getLogs"' in body.replace(b" ", b"")
        assert b'"fromBlock":"0x10"' in body.replace(b" ", b"")
        assert b'"toBlock":"0x1f"' in body.replace(b" ", b"")
