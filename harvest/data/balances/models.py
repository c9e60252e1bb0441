"""Pydantic models for historical balance samples."""

from pydantic import BaseModel, ConfigDict, Field

from harvest.helpers.errors import PerAddressQueryError


class BalanceSample(BaseModel):
    """Balances of one holder at the two snapshot blocks."""

    model_config = ConfigDict(frozen=True)

    address: str
    before: int = Field(..., ge=0, description="Balance at the earlier block")
    after: int = Field(..., ge=0, description="Balance at the later block")


class SampleResult(BaseModel):
    """Samples collected by one run plus the addresses that failed."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    block_before: int
    block_after: int
    samples: list[BalanceSample] = Field(default_factory=list)
    failures: list[PerAddressQueryError] = Field(default_factory=list)

    @property
    def failed_addresses(self) -> list[str]:
        """Addresses omitted from ``samples``."""
        return [failure.address for failure in self.failures]


__all__ = ["BalanceSample", "SampleResult"]
