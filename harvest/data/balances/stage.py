"""Sample holder balances at the snapshot blocks and write the balances table."""

from __future__ import annotations

from pathlib import Path

from typing import TYPE_CHECKING, Any

from harvest.data.balances.addresses import address_set
from harvest.data.balances.sampler import BalanceSampler
from harvest.data.reports import BalanceStageReport
from harvest.helpers.artifacts import read_transfers, write_balance_samples
from harvest.helpers.constants import BALANCES_FILE, DEFAULT_CONCURRENCY, TRANSFERS_FILE
from harvest.helpers.logging import get_logger
from harvest.helpers.progress import track_progress
from harvest.helpers.stage import StageBase


if TYPE_CHECKING:
    from harvest.data.balances.sampler import BalanceQuery


logger = get_logger(__name__)


class FetchBalances(StageBase):
    """Read the transfers table and sample every holder's balances."""

    output_name = BALANCES_FILE

    def __init__(
        self,
        output_dir: Any,
        *,
        balance_query: BalanceQuery,
        token_address: str,
        block_before: int,
        block_after: int,
        concurrency: int = DEFAULT_CONCURRENCY,
        transfers_path: Path | None = None,
        **kwargs: Any,
    ) -> None:
        """Initialize stage.

        Args:
            output_dir: Artifact directory
            balance_query: Historical balance capability
            token_address: Token whose balances are read
            block_before: Earlier snapshot block
            block_after: Later snapshot block
            concurrency: Holders queried in parallel
            transfers_path: Transfers table (defaults to the run's artifact)
            **kwargs: Forwarded to StageBase
        """
        super().__init__(output_dir, **kwargs)
        self.balance_query = balance_query
        self.token_address = token_address
        self.block_before = block_before
        self.block_after = block_after
        self.concurrency = concurrency
        self.transfers_path = transfers_path or self.path(TRANSFERS_FILE)

    async def run(self) -> BalanceStageReport:
        """Sample balances and write the balances table."""
        records = read_transfers(self.transfers_path)
        addresses, skipped_cells = address_set(records)

        self.console.print(
            f"[bold blue]Fetching balances at blocks {self.block_before:,} "
            f"and {self.block_after:,}[/bold blue]"
        )
        self.console.print(f"[cyan]Unique addresses: {len(addresses):,}[/cyan]")

        with track_progress(
            "Fetching balances",
            total=len(addresses),
            console=self.console,
            disable=not self.show_progress,
        ) as (progress, task_id):
            sampler = BalanceSampler(
                self.balance_query,
                self.token_address,
                block_before=self.block_before,
                block_after=self.block_after,
                concurrency=self.concurrency,
                on_sampled=lambda _address, _ok: progress.advance(task_id, 1),
            )
            result = await sampler.sample(addresses)

        rows = write_balance_samples(self.output_path, result.samples)

        self.console.print(
            f"[bold green]✓ Saved balances for {rows:,} addresses[/bold green] "
            f"to {self.output_path}"
        )
        if result.failures:
            self.console.print(
                f"[yellow]⚠ {len(result.failures)} addresses omitted after "
                f"query failures[/yellow]"
            )

        return BalanceStageReport(
            output_path=self.output_path,
            addresses=len(addresses),
            sampled=rows,
            failed_addresses=result.failed_addresses,
            skipped_cells=skipped_cells,
        )


__all__ = ["FetchBalances"]
