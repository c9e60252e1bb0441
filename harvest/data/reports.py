"""Pydantic reports returned by the pipeline stages."""

from pathlib import Path

from pydantic import BaseModel, Field

from harvest.data.transfers.models import TruncationRisk


class StageReport(BaseModel):
    """Fields shared by every stage report."""

    output_path: Path
    skipped: bool = Field(default=False, description="Artifact existed; stage not run")


class TransferStageReport(StageReport):
    """Scan and decode accounting."""

    logs: int = 0
    transfers: int = 0
    decode_failures: int = 0
    requests: int = 0
    chunks: int = 0
    shrinks: int = 0
    grows: int = 0
    transport_failures: int = 0
    truncation_risks: list[TruncationRisk] = Field(default_factory=list)


class BalanceStageReport(StageReport):
    """Balance sampling accounting."""

    addresses: int = 0
    sampled: int = 0
    failed_addresses: list[str] = Field(default_factory=list)
    skipped_cells: int = 0


class DiffStageReport(StageReport):
    """Balance change accounting."""

    samples: int = 0
    changed: int = 0


class BurnStageReport(StageReport):
    """Burn plan accounting."""

    commands: int = 0
    total: int = 0
    skipped_zero: int = 0
    summary_path: Path | None = None


class PipelineReport(BaseModel):
    """Reports of all four stages."""

    transfers: TransferStageReport
    balances: BalanceStageReport
    diffs: DiffStageReport
    burns: BurnStageReport

    @property
    def complete(self) -> bool:
        """True when nothing was skipped, truncated or omitted."""
        return (
            not self.transfers.truncation_risks
            and self.transfers.decode_failures == 0
            and not self.balances.failed_addresses
        )


__all__ = [
    "BalanceStageReport",
    "BurnStageReport",
    "DiffStageReport",
    "PipelineReport",
    "StageReport",
    "TransferStageReport",
]
