"""Turn the balances table into balance changes and burn commands."""

from pathlib import Path
from typing import Any

from harvest.data.remediation.burn import BurnCommandGenerator
from harvest.data.remediation.diff import BalanceDiffEngine
from harvest.data.reports import BurnStageReport, DiffStageReport
from harvest.helpers.artifacts import (
    read_balance_diffs,
    read_balance_samples,
    write_balance_diffs,
    write_burn_commands,
    write_burn_summary,
)
from harvest.helpers.constants import (
    BALANCE_CHANGES_FILE,
    BALANCES_FILE,
    BURN_COMMANDS_FILE,
    BURN_SUMMARY_FILE,
    TOKEN_DECIMALS,
)
from harvest.helpers.parsers import format_units
from harvest.helpers.stage import StageBase


class ProcessBalances(StageBase):
    """Keep holders whose balance changed and compute min/diff columns."""

    output_name = BALANCE_CHANGES_FILE

    def __init__(
        self, output_dir: Any, *, balances_path: Path | None = None, **kwargs: Any
    ) -> None:
        super().__init__(output_dir, **kwargs)
        self.balances_path = balances_path or self.path(BALANCES_FILE)

    async def run(self) -> DiffStageReport:
        """Compute and write the balance changes table."""
        samples = read_balance_samples(self.balances_path)
        diffs = BalanceDiffEngine().process(samples)
        rows = write_balance_diffs(self.output_path, diffs)

        self.console.print(
            f"[bold green]✓ Saved {rows:,} changed balances[/bold green] "
            f"to {self.output_path}"
        )
        return DiffStageReport(
            output_path=self.output_path, samples=len(samples), changed=rows
        )


class GenerateBurnCommands(StageBase):
    """Write one burn command per non-zero diff plus a totals summary."""

    output_name = BURN_COMMANDS_FILE

    def __init__(
        self,
        output_dir: Any,
        *,
        diffs_path: Path | None = None,
        decimals: int = TOKEN_DECIMALS,
        **kwargs: Any,
    ) -> None:
        super().__init__(output_dir, **kwargs)
        self.diffs_path = diffs_path or self.path(BALANCE_CHANGES_FILE)
        self.decimals = decimals

    @property
    def summary_path(self) -> Path:
        """Totals written next to the command list."""
        return self.path(BURN_SUMMARY_FILE)

    async def run(self) -> BurnStageReport:
        """Generate and write the burn commands and their summary."""
        diffs = read_balance_diffs(self.diffs_path)
        plan = BurnCommandGenerator().generate(diffs)

        # Summary first: the command list marks the stage as complete.
        write_burn_summary(self.summary_path, plan, self.decimals)
        write_burn_commands(self.output_path, plan)

        self.console.print(
            f"[bold green]✓ Saved {len(plan.commands):,} burn commands[/bold green] "
            f"to {self.output_path}"
        )
        self.console.print(
            f"[cyan]Total to burn: {format_units(plan.total, self.decimals)} "
            f"({plan.total} base units)[/cyan]"
        )
        return BurnStageReport(
            output_path=self.output_path,
            commands=len(plan.commands),
            total=plan.total,
            skipped_zero=plan.skipped_zero,
            summary_path=self.summary_path,
        )


__all__ = ["GenerateBurnCommands", "ProcessBalances"]
