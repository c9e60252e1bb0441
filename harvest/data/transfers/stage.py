"""Harvest Transfer events for the token and write the transfers table."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from harvest.data.reports import TransferStageReport
from harvest.data.transfers.decoder import TransferDecoder
from harvest.data.transfers.models import BlockRange
from harvest.data.transfers.scanner import RangeScanner
from harvest.helpers.artifacts import write_transfers
from harvest.helpers.constants import (
    INITIAL_CHUNK,
    MIN_CHUNK,
    RPC_LOG_LIMIT,
    TRANSFERS_FILE,
    TRANSFER_EVENT_SIGNATURE,
)
from harvest.helpers.logging import get_logger
from harvest.helpers.progress import track_progress
from harvest.helpers.stage import StageBase


if TYPE_CHECKING:
    from harvest.data.transfers.scanner import LogQueryClient


logger = get_logger(__name__)


class FetchTransfers(StageBase):
    """Scan the token's Transfer logs over a block range."""

    output_name = TRANSFERS_FILE

    def __init__(
        self,
        output_dir: Any,
        *,
        log_query: LogQueryClient,
        token_address: str,
        block_range: BlockRange,
        event_signature: str = TRANSFER_EVENT_SIGNATURE,
        log_limit: int = RPC_LOG_LIMIT,
        min_chunk: int = MIN_CHUNK,
        initial_chunk: int = INITIAL_CHUNK,
        **kwargs: Any,
    ) -> None:
        """Initialize stage.

        Args:
            output_dir: Artifact directory
            log_query: Log query capability
            token_address: Token emitting the Transfer events
            block_range: Inclusive range to scan
            event_signature: Event to harvest
            log_limit: Provider result cap
            min_chunk: Smallest chunk size
            initial_chunk: First and maximum chunk size
            **kwargs: Forwarded to StageBase
        """
        super().__init__(output_dir, **kwargs)
        self.log_query = log_query
        self.token_address = token_address
        self.block_range = block_range
        self.event_signature = event_signature
        self.log_limit = log_limit
        self.min_chunk = min_chunk
        self.initial_chunk = initial_chunk

    async def run(self) -> TransferStageReport:
        """Scan, decode and write the transfers table.

        Raises:
            TransportError: If the scan fails at the minimum chunk size; no
                artifact is written in that case
        """
        self.console.print(
            f"[bold blue]Fetching {self.event_signature} logs of "
            f"{self.token_address}[/bold blue]"
        )
        self.console.print(f"[cyan]Blocks: {self.block_range}[/cyan]")

        with track_progress(
            "Scanning blocks",
            total=self.block_range.span,
            console=self.console,
            disable=not self.show_progress,
        ) as (progress, task_id):
            scanner = RangeScanner(
                self.log_query,
                log_limit=self.log_limit,
                min_chunk=self.min_chunk,
                initial_chunk=self.initial_chunk,
                on_chunk=lambda chunk, _count: progress.advance(task_id, chunk.span),
            )
            scan = await scanner.scan(
                self.token_address, self.event_signature, self.block_range
            )

        decoded = TransferDecoder(self.event_signature).decode_all(scan.logs)
        rows = write_transfers(self.output_path, decoded.records)

        self.console.print(
            f"[bold green]✓ Saved {rows:,} transfers[/bold green] to {self.output_path}"
        )
        if scan.truncation_risks:
            self.console.print(
                f"[yellow]⚠ {len(scan.truncation_risks)} block ranges may be "
                f"missing transfers[/yellow]"
            )
        if decoded.skipped:
            self.console.print(
                f"[yellow]⚠ Skipped {decoded.skipped} undecodable logs[/yellow]"
            )

        return TransferStageReport(
            output_path=self.output_path,
            logs=len(scan.logs),
            transfers=rows,
            decode_failures=decoded.skipped,
            requests=scan.requests,
            chunks=len(scan.queried),
            shrinks=scan.shrinks,
            grows=scan.grows,
            transport_failures=scan.transport_failures,
            truncation_risks=scan.truncation_risks,
        )


__all__ = ["FetchTransfers"]
