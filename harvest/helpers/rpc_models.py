"""Pydantic models for JSON-RPC requests and responses."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class JsonRpcRequest(BaseModel):
    """JSON-RPC 2.0 request model."""

    jsonrpc: str = Field(default="2.0", description="JSON-RPC version")
    method: str = Field(..., description="Method name to call")
    params: list[Any] = Field(
        default_factory=list, description="Method parameters"
    )
    id: int | str = Field(..., description="Request ID")


class EthBlockNumberRequest(JsonRpcRequest):
    """JSON-RPC request for eth_blockNumber."""

    method: str = Field(default="eth_blockNumber", frozen=True)
    params: list[Any] = Field(default_factory=list, frozen=True)


class LogFilter(BaseModel):
    """Filter object accepted by eth_getLogs."""

    model_config = ConfigDict(populate_by_name=True)

    address: str
    from_block: str = Field(..., alias="fromBlock", description="Hex block tag")
    to_block: str = Field(..., alias="toBlock", description="Hex block tag")
    topics: list[str | list[str] | None] = Field(default_factory=list)


class EthGetLogsRequest(JsonRpcRequest):
    """JSON-RPC request for eth_getLogs."""

    method: str = Field(default="eth_getLogs", frozen=True)

    @classmethod
    def for_range(
        cls,
        address: str,
        topics: list[str | list[str] | None],
        from_block: int,
        to_block: int,
        request_id: int = 1,
    ) -> "EthGetLogsRequest":
        """Build a request for an inclusive block range."""
        log_filter = LogFilter(
            address=address,
            fromBlock=hex(from_block),
            toBlock=hex(to_block),
            topics=topics,
        )
        return cls(params=[log_filter.model_dump(by_alias=True)], id=request_id)


class EthCallRequest(JsonRpcRequest):
    """JSON-RPC request for eth_call."""

    method: str = Field(default="eth_call", frozen=True)

    @classmethod
    def for_call(
        cls,
        to: str,
        data: str,
        block: int | str = "latest",
        request_id: int = 1,
    ) -> "EthCallRequest":
        """Build a call against ``to`` evaluated at ``block``."""
        block_tag = hex(block) if isinstance(block, int) else block
        return cls(params=[{"to": to, "data": data}, block_tag], id=request_id)


__all__ = [
    "EthBlockNumberRequest",
    "EthCallRequest",
    "EthGetLogsRequest",
    "JsonRpcRequest",
    "LogFilter",
]
