"""Run the full harvest: transfers, balances, balance changes, burn commands.

Each stage writes one artifact into ``settings.output_dir``. A stage whose
artifact already exists is skipped, so an interrupted run resumes where it
stopped. Pass ``force=True`` to recompute everything.

Usage:
    ```bash
    python -m harvest.data.pipeline
    ```
"""

from __future__ import annotations

from asyncio import run

from typing import TYPE_CHECKING, TypeVar

from rich.console import Console

from harvest.data.balances.stage import FetchBalances
from harvest.data.remediation.stage import GenerateBurnCommands, ProcessBalances
from harvest.data.reports import (
    BalanceStageReport,
    BurnStageReport,
    DiffStageReport,
    PipelineReport,
    StageReport,
    TransferStageReport,
)
from harvest.data.transfers.models import BlockRange
from harvest.data.transfers.stage import FetchTransfers
from harvest.helpers.config import PipelineSettings
from harvest.helpers.http import create_http_client
from harvest.helpers.logging import get_logger, set_log_level
from harvest.helpers.rpc import RPCBalanceQuery, RPCClient, RPCLogQuery


if TYPE_CHECKING:
    from harvest.data.balances.sampler import BalanceQuery
    from harvest.data.transfers.scanner import LogQueryClient
    from harvest.helpers.stage import StageBase


logger = get_logger(__name__)

R = TypeVar("R", bound=StageReport)


async def _run_stage(
    stage: StageBase, report_type: type[R], *, force: bool
) -> R:
    if stage.is_complete() and not force:
        logger.info("Skipping %s: %s exists", type(stage).__name__, stage.output_path)
        stage.console.print(
            f"[dim]↷ {type(stage).__name__}: {stage.output_path} exists, skipping[/dim]"
        )
        return report_type(output_path=stage.output_path, skipped=True)

    logger.info("Running %s", type(stage).__name__)
    report = await stage.run()
    if not isinstance(report, report_type):
        msg = f"{type(stage).__name__} returned {type(report).__name__}"
        raise TypeError(msg)
    return report


async def run_pipeline(
    settings: PipelineSettings,
    *,
    log_query: LogQueryClient,
    balance_query: BalanceQuery,
    token_address: str | None = None,
    force: bool = False,
    console: Console | None = None,
    show_progress: bool = True,
) -> PipelineReport:
    """Run the four stages in order.

    Args:
        settings: Run parameters
        log_query: Log query capability for the transfer scan
        balance_query: Historical balance capability
        token_address: Token contract (defaults to ``settings.token_address``)
        force: Recompute stages whose artifact already exists
        console: Rich console shared by every stage
        show_progress: Whether progress bars are rendered

    Returns:
        Report of every stage; skipped stages carry ``skipped=True``

    Raises:
        ValueError: If no token address is known
        TransportError: If the transfer scan fails at the minimum chunk size
    """
    token = token_address or settings.token_address
    if not token:
        msg = "token_address must be provided or set in settings"
        raise ValueError(msg)

    settings.output_dir.mkdir(parents=True, exist_ok=True)
    common = {
        "console": console or Console(),
        "show_progress": show_progress,
    }

    transfers = await _run_stage(
        FetchTransfers(
            settings.output_dir,
            log_query=log_query,
            token_address=token,
            block_range=BlockRange(
                start=settings.start_block, end=settings.scan_end_block
            ),
            event_signature=settings.event_signature,
            log_limit=settings.rpc_log_limit,
            min_chunk=settings.min_chunk,
            initial_chunk=settings.initial_chunk,
            **common,
        ),
        TransferStageReport,
        force=force,
    )
    # Downstream artifacts are stale once the transfers are recomputed.
    force = force or not transfers.skipped

    balances = await _run_stage(
        FetchBalances(
            settings.output_dir,
            balance_query=balance_query,
            token_address=token,
            block_before=settings.block_before,
            block_after=settings.block_after,
            concurrency=settings.balance_concurrency,
            **common,
        ),
        BalanceStageReport,
        force=force,
    )
    force = force or not balances.skipped

    diffs = await _run_stage(
        ProcessBalances(settings.output_dir, **common), DiffStageReport, force=force
    )
    force = force or not diffs.skipped

    burns = await _run_stage(
        GenerateBurnCommands(settings.output_dir, **common),
        BurnStageReport,
        force=force,
    )

    report = PipelineReport(
        transfers=transfers, balances=balances, diffs=diffs, burns=burns
    )
    if not report.complete:
        logger.warning(
            "Run finished with gaps: %d truncation risks, %d decode failures, "
            "%d failed addresses",
            len(transfers.truncation_risks),
            transfers.decode_failures,
            len(balances.failed_addresses),
        )
    return report


async def main() -> None:
    """Main entry point."""
    settings = PipelineSettings.from_env()
    set_log_level(settings.log_level)

    rpc = RPCClient(settings.rpc_url)
    async with create_http_client() as client:
        token = settings.token_address or await rpc.get_token_address(
            client, settings.token_manager_address
        )
        logger.info("Token address: %s", token)

        report = await run_pipeline(
            settings,
            log_query=RPCLogQuery(rpc, client),
            balance_query=RPCBalanceQuery(rpc, client, settings.balance_method),
            token_address=token,
        )

    logger.info(
        "Done: %d transfers, %d balances, %d changes, %d burn commands",
        report.transfers.transfers,
        report.balances.sampled,
        report.diffs.changed,
        report.burns.commands,
    )


if __name__ == "__main__":
    run(main())
