"""Pydantic models for balance changes and burn commands."""

from typing import Self

from pydantic import BaseModel, ConfigDict, Field, model_validator

BURN_COMMAND_TEMPLATE = "exec $spender burn(address,uint) {address} {amount} --from $giveth"


class BalanceDiff(BaseModel):
    """Balance change of one holder across the snapshot blocks."""

    model_config = ConfigDict(frozen=True)

    address: str
    before: int = Field(..., ge=0)
    after: int = Field(..., ge=0)
    min: int = Field(..., ge=0)
    diff: int = Field(..., ge=0)

    @model_validator(mode="after")
    def _consistent(self) -> Self:
        if self.min != min(self.before, self.after) or self.diff != self.after - self.min:
            msg = (
                f"Inconsistent diff for {self.address}: before={self.before} "
                f"after={self.after} min={self.min} diff={self.diff}"
            )
            raise ValueError(msg)
        return self


class BurnCommand(BaseModel):
    """Instruction to burn ``amount`` base units from ``address``."""

    model_config = ConfigDict(frozen=True)

    address: str
    amount: int = Field(..., gt=0)

    def render(self) -> str:
        """Console command line for this burn."""
        return BURN_COMMAND_TEMPLATE.format(address=self.address, amount=self.amount)


class BurnPlan(BaseModel):
    """Ordered burn commands and their exact total."""

    commands: list[BurnCommand] = Field(default_factory=list)
    total: int = 0
    skipped_zero: int = 0


__all__ = ["BURN_COMMAND_TEMPLATE", "BalanceDiff", "BurnCommand", "BurnPlan"]
