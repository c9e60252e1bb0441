"""Pydantic models for block ranges, raw logs and decoded transfers."""

from typing import Any, Self

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


def _hex_or_int(value: Any) -> Any:
    if isinstance(value, str):
        return int(value, 16) if value[:2].lower() == "0x" else int(value)
    return value


class BlockRange(BaseModel):
    """Inclusive block interval ``[start, end]``."""

    model_config = ConfigDict(frozen=True)

    start: int = Field(..., ge=0)
    end: int = Field(..., ge=0)

    @model_validator(mode="after")
    def _ordered(self) -> Self:
        if self.start > self.end:
            msg = f"start ({self.start}) must be <= end ({self.end})"
            raise ValueError(msg)
        return self

    @property
    def span(self) -> int:
        """Number of blocks covered."""
        return self.end - self.start + 1

    def __str__(self) -> str:
        return f"{self.start}-{self.end}"


class LogEntry(BaseModel):
    """Raw log as returned by eth_getLogs. Not interpreted by the scanner."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    address: str
    block_number: int = Field(..., alias="blockNumber")
    transaction_hash: str = Field(..., alias="transactionHash")
    log_index: int = Field(default=0, alias="logIndex")
    topics: tuple[str, ...] = ()
    data: str = "0x"

    @field_validator("block_number", "log_index", mode="before")
    @classmethod
    def _parse_quantity(cls, value: Any) -> Any:
        return _hex_or_int(value)

    @field_validator("transaction_hash", "address")
    @classmethod
    def _lower(cls, value: str) -> str:
        return value.lower()

    @property
    def key(self) -> tuple[str, int]:
        """Identity of the log within the chain."""
        return (self.transaction_hash, self.log_index)


class TransferRecord(BaseModel):
    """One decoded Transfer event."""

    model_config = ConfigDict(frozen=True)

    transaction_hash: str
    from_address: str
    to_address: str
    value: int = Field(..., ge=0)


class TruncationRisk(BaseModel):
    """A sub-range whose result hit the log limit at the minimum chunk size."""

    model_config = ConfigDict(frozen=True)

    block_range: BlockRange
    log_count: int


class ScanResult(BaseModel):
    """Outcome of one adaptive range scan."""

    block_range: BlockRange
    logs: list[LogEntry] = Field(default_factory=list)
    queried: list[BlockRange] = Field(
        default_factory=list, description="Accepted sub-ranges in ascending order"
    )
    truncation_risks: list[TruncationRisk] = Field(default_factory=list)
    requests: int = 0
    shrinks: int = 0
    grows: int = 0
    transport_failures: int = 0
    duplicates: int = 0

    @property
    def complete(self) -> bool:
        """True when no accepted sub-range may have been truncated."""
        return not self.truncation_risks


class DecodeResult(BaseModel):
    """Decoded transfers plus the entries that could not be decoded."""

    records: list[TransferRecord] = Field(default_factory=list)
    failures: list[tuple[LogEntry, str]] = Field(default_factory=list)

    @property
    def skipped(self) -> int:
        """Number of log entries that failed to decode."""
        return len(self.failures)


__all__ = [
    "BlockRange",
    "DecodeResult",
    "LogEntry",
    "ScanResult",
    "TransferRecord",
    "TruncationRisk",
]
