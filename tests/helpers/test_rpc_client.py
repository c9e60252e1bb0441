"""Tests for RPC client."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from typing import Any

import httpx

from harvest.helpers.errors import RPCError, TransportError
from harvest.helpers.parsers import normalize_address
from harvest.helpers.rpc import (
    BALANCE_OF_AT_SELECTOR,
    BALANCE_OF_SELECTOR,
    TOKEN_SELECTOR,
    RPCBalanceQuery,
    RPCClient,
    RPCLogQuery,
    encode_address,
    encode_uint,
)


HOLDER = "0x0000000000000000000000000000000000000001"
TOKEN = "0x0000000000000000000000000000000000000abc"


def mock_client(*payloads: Any) -> AsyncMock:
    """AsyncClient whose post() returns the given JSON payloads in order."""
    client = AsyncMock(spec=httpx.AsyncClient)
    responses = []
    for payload in payloads:
        response = MagicMock()
        response.json.return_value = payload
        responses.append(response)
    client.post.side_effect = responses
    return client


def result(value: Any) -> dict[str, Any]:
    return {"jsonrpc": "2.0", "id": 1, "result": value}


def sent(client: AsyncMock, index: int = 0) -> dict[str, Any]:
    """JSON body of the index-th post()."""
    return client.post.call_args_list[index].kwargs["json"]


class TestSelectors:
    """Tests for ABI selectors and encoders."""

    def test_known_selectors(self) -> None:
        """Test the 4-byte selectors of the called views."""
        assert TOKEN_SELECTOR == "0xfc0c546a"
        assert BALANCE_OF_SELECTOR == "0x70a08231"
        assert BALANCE_OF_AT_SELECTOR == "0x4ee2cd7e"

    def test_encode_address(self) -> None:
        """Test addresses are left-padded to 32 bytes."""
        assert encode_address(HOLDER) == "0" * 63 + "1"

    def test_encode_uint(self) -> None:
        """Test integers are encoded as 32-byte words."""
        assert encode_uint(255) == "0" * 62 + "ff"

    def test_encode_negative_raises(self) -> None:
        """Test negative integers cannot be encoded."""
        with pytest.raises(ValueError, match="negative"):
            encode_uint(-1)


class TestRPCClient:
    """Tests for RPCClient class."""

    def test_init_with_valid_url(self) -> None:
        """Test RPCClient initialization with valid URL."""
        client = RPCClient("https://mainnet.optimism.io")

        assert client.rpc_url == "https://mainnet.optimism.io"
        assert client.timeout == 30.0

    def test_init_with_empty_url_raises(self) -> None:
        """Test that empty URL raises ValueError."""
        with pytest.raises(ValueError, match="RPC URL cannot be empty"):
            RPCClient("")

    @pytest.mark.asyncio
    async def test_call_single_method(self) -> None:
        """Test making a single RPC call."""
        http_client = mock_client(result("0x1000"))

        value = await RPCClient("https://test.rpc").call(http_client, "eth_blockNumber")

        assert value == "0x1000"
        assert sent(http_client)["method"] == "eth_blockNumber"

    @pytest.mark.asyncio
    async def test_rpc_error_raises(self) -> None:
        """Test an error member becomes RPCError, a TransportError."""
        http_client = mock_client(
            {"jsonrpc": "2.0", "id": 1, "error": {"code": -32005, "message": "limit"}}
        )

        with pytest.raises(RPCError, match="limit") as exc_info:
            await RPCClient("https://test.rpc").call(http_client, "eth_getLogs")

        assert isinstance(exc_info.value, TransportError)
        assert exc_info.value.error == {"code": -32005, "message": "limit"}

    @pytest.mark.asyncio
    async def test_null_body_raises(self) -> None:
        """Test a null JSON body becomes RPCError."""
        http_client = mock_client(None)

        with pytest.raises(RPCError, match="malformed response None"):
            await RPCClient("https://test.rpc").call(http_client, "eth_blockNumber")

    @pytest.mark.asyncio
    async def test_get_logs_parses_entries(self) -> None:
        """Test eth_getLogs results are parsed into LogEntry models."""
        http_client = mock_client(
            result(
                [
                    {
                        "address": TOKEN,
                        "blockNumber": "0x5",
                        "transactionHash": "0x" + "aa" * 32,
                        "logIndex": "0x0",
                        "topics": ["0x01"],
                        "data": "0x",
                    }
                ]
            )
        )

        logs = await RPCClient("https://test.rpc").get_logs(
            http_client, TOKEN, ["0x01"], 5, 9
        )

        assert logs[0].block_number == 5
        params = sent(http_client)["params"][0]
        assert params == {
            "address": TOKEN,
            "fromBlock": "0x5",
            "toBlock": "0x9",
            "topics": ["0x01"],
        }

    @pytest.mark.asyncio
    async def test_get_token_address(self) -> None:
        """Test token() output is decoded into a checksummed address."""
        http_client = mock_client(
            result("0x" + "0" * 24 + "00000000000000000000000000000000000000ab")
        )

        token = await RPCClient("https://test.rpc").get_token_address(http_client, TOKEN)

        assert token == normalize_address("0x00000000000000000000000000000000000000ab")
        assert sent(http_client)["params"][0]["data"] == TOKEN_SELECTOR

    @pytest.mark.asyncio
    async def test_balance_of_at_uses_latest(self) -> None:
        """Test balanceOfAt carries the block in calldata and runs at latest."""
        http_client = mock_client(result("0x" + f"{10**20:064x}"))

        balance = await RPCClient("https://test.rpc").balance_of_at(
            http_client, TOKEN, HOLDER, 255
        )

        assert balance == 10**20
        call, block = sent(http_client)["params"]
        assert call["data"] == (
            BALANCE_OF_AT_SELECTOR + encode_address(HOLDER) + encode_uint(255)
        )
        assert block == "latest"

    @pytest.mark.asyncio
    async def test_balance_of_at_block(self) -> None:
        """Test balanceOf is evaluated at the requested block."""
        http_client = mock_client(result("0x" + f"{7:064x}"))

        balance = await RPCClient("https://test.rpc").balance_of(
            http_client, TOKEN, HOLDER, 255
        )

        assert balance == 7
        call, block = sent(http_client)["params"]
        assert call["data"] == BALANCE_OF_SELECTOR + encode_address(HOLDER)
        assert block == "0xff"


class TestRPCLogQuery:
    """Tests for the eth_getLogs capability."""

    @pytest.mark.asyncio
    async def test_rpc_error_carries_range(self) -> None:
        """Test provider errors surface as TransportError with the block range."""
        http_client = mock_client({"jsonrpc": "2.0", "id": 1, "error": "too many"})
        query = RPCLogQuery(RPCClient("https://test.rpc"), http_client)

        with pytest.raises(TransportError) as exc_info:
            await query.query_logs(TOKEN, "Transfer(address,address,uint256)", 10, 20)

        assert (exc_info.value.from_block, exc_info.value.to_block) == (10, 20)

    @pytest.mark.asyncio
    async def test_non_object_body_is_transport_error(self) -> None:
        """Test a JSON body that is not an object surfaces as TransportError."""
        http_client = mock_client("upstream unavailable")
        query = RPCLogQuery(RPCClient("https://test.rpc"), http_client)

        with pytest.raises(RPCError, match="malformed response") as exc_info:
            await query.query_logs(TOKEN, "Transfer(address,address,uint256)", 3, 4)

        assert (exc_info.value.from_block, exc_info.value.to_block) == (3, 4)

    @pytest.mark.asyncio
    async def test_http_error_wrapped(self) -> None:
        """Test non-retryable HTTP failures are wrapped into TransportError."""
        http_client = AsyncMock(spec=httpx.AsyncClient)
        request = httpx.Request("POST", "https://test.rpc")
        response = MagicMock()
        response.raise_for_status.side_effect = httpx.HTTPStatusError(
            "bad", request=request, response=httpx.Response(400, request=request)
        )
        http_client.post.return_value = response
        query = RPCLogQuery(RPCClient("https://test.rpc"), http_client)

        with pytest.raises(TransportError, match="eth_getLogs 1-2 failed"):
            await query.query_logs(TOKEN, "Transfer(address,address,uint256)", 1, 2)

    @pytest.mark.asyncio
    async def test_sends_transfer_topic(self) -> None:
        """Test topic0 of the event is used as filter."""
        http_client = mock_client(result([]))
        query = RPCLogQuery(RPCClient("https://test.rpc"), http_client)

        await query.query_logs(TOKEN, "Transfer(address,address,uint256)", 1, 2)

        assert sent(http_client)["params"][0]["topics"] == [
            "0xddf252ad1be2c89b69c2b068fc378daa952ba7f163c4a11628f55a4df523b3ef"
        ]


class TestRPCBalanceQuery:
    """Tests for the historical balance capability."""

    @pytest.mark.asyncio
    async def test_default_method_is_balance_of_at(self) -> None:
        """Test MiniMe balanceOfAt is the default query."""
        http_client = mock_client(result("0x" + f"{3:064x}"))
        query = RPCBalanceQuery(RPCClient("https://test.rpc"), http_client)

        assert await query.balance_at(TOKEN, HOLDER, 100) == 3
        assert sent(http_client)["params"][0]["data"].startswith(BALANCE_OF_AT_SELECTOR)

    @pytest.mark.asyncio
    async def test_balance_of_method(self) -> None:
        """Test the ERC-20 balanceOf variant."""
        http_client = mock_client(result("0x" + f"{4:064x}"))
        query = RPCBalanceQuery(RPCClient("https://test.rpc"), http_client, "balanceOf")

        assert await query.balance_at(TOKEN, HOLDER, 100) == 4
        assert sent(http_client)["params"][1] == "0x64"

    @pytest.mark.asyncio
    async def test_short_result_is_transport_error(self) -> None:
        """Test an empty call result is reported as TransportError."""
        http_client = mock_client(result("0x"))
        query = RPCBalanceQuery(RPCClient("https://test.rpc"), http_client)

        with pytest.raises(TransportError, match="balanceOfAt"):
            await query.balance_at(TOKEN, HOLDER, 100)
