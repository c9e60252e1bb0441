"""Ethereum JSON-RPC client utilities."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Literal

import httpx
from eth_utils import function_signature_to_4byte_selector

from harvest.data.transfers.decoder import event_topic
from harvest.data.transfers.models import LogEntry
from harvest.helpers.constants import DEFAULT_TIMEOUT
from harvest.helpers.errors import RPCError, TransportError
from harvest.helpers.http import retry_with_backoff
from harvest.helpers.parsers import normalize_address, parse_hex_int, word_to_int
from harvest.helpers.rpc_models import (
    EthBlockNumberRequest,
    EthCallRequest,
    EthGetLogsRequest,
    JsonRpcRequest,
)


if TYPE_CHECKING:
    from pydantic import BaseModel


BalanceMethod = Literal["balanceOfAt", "balanceOf"]


def _selector(signature: str) -> str:
    return "0x" + function_signature_to_4byte_selector(signature).hex()


TOKEN_SELECTOR = _selector("token()")
BALANCE_OF_SELECTOR = _selector("balanceOf(address)")
BALANCE_OF_AT_SELECTOR = _selector("balanceOfAt(address,uint256)")


def encode_address(address: str) -> str:
    """ABI-encode an address as a 32-byte word (no 0x)."""
    return normalize_address(address)[2:].lower().rjust(64, "0")


def encode_uint(value: int) -> str:
    """ABI-encode an unsigned integer as a 32-byte word (no 0x)."""
    if value < 0:
        msg = f"Cannot encode negative value {value} as uint256"
        raise ValueError(msg)
    return f"{value:064x}"


class RPCClient:
    """Ethereum JSON-RPC client."""

    def __init__(self, rpc_url: str, timeout: float = DEFAULT_TIMEOUT) -> None:
        """Initialize RPC client.

        Args:
            rpc_url: Ethereum JSON-RPC endpoint URL
            timeout: Default timeout for requests in seconds

        Raises:
            ValueError: If rpc_url is empty or None
        """
        if not rpc_url:
            msg = "RPC URL cannot be empty"
            raise ValueError(msg)

        self.rpc_url = rpc_url
        self.timeout = timeout

    @retry_with_backoff()
    async def _post(
        self,
        client: httpx.AsyncClient,
        payload: dict[str, Any],
        timeout: float | None,
    ) -> Any:
        response = await client.post(
            self.rpc_url, json=payload, timeout=timeout or self.timeout
        )
        response.raise_for_status()
        return response.json()

    async def send(
        self,
        client: httpx.AsyncClient,
        request: BaseModel,
        *,
        timeout: float | None = None,
    ) -> Any:
        """Send a request model and return its ``result``.

        Args:
            client: HTTP client instance
            request: Any JSON-RPC request model
            timeout: Optional timeout override

        Returns:
            RPC result value

        Raises:
            httpx.HTTPError: If the HTTP request fails after retries
            RPCError: If the RPC response contains an error
        """
        result = await self._post(client, request.model_dump(), timeout)

        if not isinstance(result, dict):
            raise RPCError(f"malformed response {result!r}")

        if "error" in result:
            raise RPCError(result["error"])

        return result.get("result")

    async def call(
        self,
        client: httpx.AsyncClient,
        method: str,
        params: list[Any] | None = None,
        *,
        timeout: float | None = None,
    ) -> Any:
        """Make a single JSON-RPC call.

        Args:
            client: HTTP client instance
            method: RPC method name (e.g., "eth_blockNumber")
            params: Method parameters list
            timeout: Optional timeout override

        Returns:
            RPC result value
        """
        request = JsonRpcRequest(method=method, params=params or [], id=1)
        return await self.send(client, request, timeout=timeout)

    async def get_block_number(self, client: httpx.AsyncClient) -> int:
        """Get the latest block number."""
        result = await self.send(client, EthBlockNumberRequest(id=1))
        return parse_hex_int(result)

    async def get_logs(
        self,
        client: httpx.AsyncClient,
        address: str,
        topics: list[str | list[str] | None],
        from_block: int,
        to_block: int,
    ) -> list[LogEntry]:
        """Fetch logs for ``address`` over an inclusive block range.

        Args:
            client: HTTP client instance
            address: Emitting contract
            topics: Topic filter (topic0 first)
            from_block: First block (inclusive)
            to_block: Last block (inclusive)

        Returns:
            Parsed log entries in provider order
        """
        request = EthGetLogsRequest.for_range(address, topics, from_block, to_block)
        result = await self.send(client, request)
        return [LogEntry.model_validate(raw) for raw in result or []]

    async def eth_call(
        self,
        client: httpx.AsyncClient,
        to: str,
        data: str,
        block: int | str = "latest",
    ) -> str:
        """Execute a read-only call and return the raw hex result."""
        result = await self.send(client, EthCallRequest.for_call(to, data, block))
        return result or "0x"

    async def get_token_address(
        self, client: httpx.AsyncClient, token_manager: str
    ) -> str:
        """Resolve the token controlled by a TokenManager via ``token()``.

        Example:
            ```python
            rpc = RPCClient(rpc_url)
            async with httpx.AsyncClient() as client:
                token = await rpc.get_token_address(client, TOKEN_MANAGER_ADDRESS)
            ```
        """
        result = await self.eth_call(client, token_manager, TOKEN_SELECTOR)
        return normalize_address("0x" + result[-40:])

    async def balance_of_at(
        self,
        client: httpx.AsyncClient,
        token: str,
        owner: str,
        block_number: int,
    ) -> int:
        """MiniMe ``balanceOfAt(owner, block)`` evaluated at the latest block."""
        data = BALANCE_OF_AT_SELECTOR + encode_address(owner) + encode_uint(block_number)
        return word_to_int(await self.eth_call(client, token, data))

    async def balance_of(
        self,
        client: httpx.AsyncClient,
        token: str,
        owner: str,
        block_number: int,
    ) -> int:
        """ERC-20 ``balanceOf(owner)`` evaluated at a historical block."""
        data = BALANCE_OF_SELECTOR + encode_address(owner)
        return word_to_int(await self.eth_call(client, token, data, block_number))


class RPCLogQuery:
    """Log query capability backed by eth_getLogs."""

    def __init__(self, rpc_client: RPCClient, client: httpx.AsyncClient) -> None:
        self.rpc_client = rpc_client
        self.client = client

    async def query_logs(
        self,
        contract_address: str,
        event_signature: str,
        from_block: int,
        to_block: int,
    ) -> list[LogEntry]:
        """Return logs of ``event_signature`` in ``[from_block, to_block]``.

        Raises:
            TransportError: On any HTTP, RPC or payload failure
        """
        try:
            return await self.rpc_client.get_logs(
                self.client,
                contract_address,
                [event_topic(event_signature)],
                from_block,
                to_block,
            )
        except TransportError as e:
            e.from_block, e.to_block = from_block, to_block
            raise
        except (httpx.HTTPError, ValueError) as e:
            msg = f"eth_getLogs {from_block}-{to_block} failed: {e}"
            raise TransportError(msg, from_block=from_block, to_block=to_block) from e


class RPCBalanceQuery:
    """Historical balance capability backed by eth_call."""

    def __init__(
        self,
        rpc_client: RPCClient,
        client: httpx.AsyncClient,
        method: BalanceMethod = "balanceOfAt",
    ) -> None:
        self.rpc_client = rpc_client
        self.client = client
        self.method = method

    async def balance_at(
        self, contract_address: str, owner_address: str, block_number: int
    ) -> int:
        """Return the token balance of ``owner_address`` at ``block_number``.

        Raises:
            TransportError: On any HTTP, RPC or payload failure
        """
        query = (
            self.rpc_client.balance_of_at
            if self.method == "balanceOfAt"
            else self.rpc_client.balance_of
        )
        try:
            return await query(self.client, contract_address, owner_address, block_number)
        except TransportError:
            raise
        except (httpx.HTTPError, ValueError) as e:
            msg = f"{self.method}({owner_address}, {block_number}) failed: {e}"
            raise TransportError(msg) from e


__all__ = [
    "BALANCE_OF_AT_SELECTOR",
    "BALANCE_OF_SELECTOR",
    "TOKEN_SELECTOR",
    "RPCBalanceQuery",
    "RPCClient",
    "RPCLogQuery",
    "encode_address",
    "encode_uint",
]
