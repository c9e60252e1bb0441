"""Adaptive block-range scanner for eth_getLogs style endpoints.

Providers cap the number of logs returned per query (often 10,000) and may
silently drop the rest. The scanner walks a block range in chunks and treats
any response at or above the cap as possibly incomplete: it halves the chunk
and re-queries the same start block until the response fits under the cap or
the chunk reaches its floor. Failed queries shrink the chunk the same way;
a failure at the floor aborts the scan. After a comfortable response the
chunk doubles again, never past the initial size.
"""

from __future__ import annotations

from dataclasses import dataclass

from typing import TYPE_CHECKING, Protocol

from harvest.data.transfers.models import (
    BlockRange,
    LogEntry,
    ScanResult,
    TruncationRisk,
)
from harvest.helpers.constants import INITIAL_CHUNK, MIN_CHUNK, RPC_LOG_LIMIT
from harvest.helpers.errors import TransportError
from harvest.helpers.logging import get_logger


if TYPE_CHECKING:
    from collections.abc import Callable


logger = get_logger(__name__)


class LogQueryClient(Protocol):
    """Capability to fetch logs for one contract and event over a block range."""

    async def query_logs(
        self,
        contract_address: str,
        event_signature: str,
        from_block: int,
        to_block: int,
    ) -> list[LogEntry]:
        """Return matching logs for ``[from_block, to_block]``.

        Raises:
            TransportError: If the query fails
        """
        ...


@dataclass
class ScanState:
    """Mutable cursor of the control loop."""

    start: int
    chunk_size: int


class RangeScanner:
    """Harvest every log of an event over a block range despite result caps."""

    def __init__(
        self,
        client: LogQueryClient,
        *,
        log_limit: int = RPC_LOG_LIMIT,
        min_chunk: int = MIN_CHUNK,
        initial_chunk: int = INITIAL_CHUNK,
        on_chunk: Callable[[BlockRange, int], None] | None = None,
    ) -> None:
        """Initialize scanner.

        Args:
            client: Log query capability
            log_limit: Result count treated as a truncated response
            min_chunk: Smallest chunk size; halving is clamped to it
            initial_chunk: First chunk size and ceiling for regrowth
            on_chunk: Called with each accepted sub-range and its log count

        Raises:
            ValueError: If the limits are not positive or min_chunk > initial_chunk
        """
        if log_limit < 1:
            msg = f"log_limit must be positive, got {log_limit}"
            raise ValueError(msg)
        if min_chunk < 1:
            msg = f"min_chunk must be positive, got {min_chunk}"
            raise ValueError(msg)
        if initial_chunk < min_chunk:
            msg = f"initial_chunk ({initial_chunk}) must be >= min_chunk ({min_chunk})"
            raise ValueError(msg)

        self.client = client
        self.log_limit = log_limit
        self.min_chunk = min_chunk
        self.initial_chunk = initial_chunk
        self.on_chunk = on_chunk

    def _shrink(self, state: ScanState, span: int) -> None:
        # Halve the span actually queried so a clamped tail chunk shrinks too.
        state.chunk_size = max(min(state.chunk_size, span) // 2, self.min_chunk)

    def _can_shrink(self, state: ScanState, span: int) -> bool:
        return min(state.chunk_size, span) > self.min_chunk

    def _grow(self, state: ScanState, log_count: int) -> bool:
        if 2 * log_count >= self.log_limit or state.chunk_size >= self.initial_chunk:
            return False
        state.chunk_size = min(state.chunk_size * 2, self.initial_chunk)
        return True

    async def scan(
        self,
        contract_address: str,
        event_signature: str,
        block_range: BlockRange,
    ) -> ScanResult:
        """Fetch all logs of ``event_signature`` emitted in ``block_range``.

        Args:
            contract_address: Emitting contract
            event_signature: Event signature, e.g. "Transfer(address,address,uint256)"
            block_range: Inclusive range to cover

        Returns:
            ScanResult with logs ordered by (block, log index), the accepted
            sub-ranges (an exact partition of block_range) and counters

        Raises:
            TransportError: If a query fails at the minimum chunk size
        """
        result = ScanResult(block_range=block_range)
        state = ScanState(start=block_range.start, chunk_size=self.initial_chunk)
        seen: set[tuple[str, int]] = set()

        logger.info(
            "Scanning %s for %s over blocks %s (limit=%d, chunk=%d..%d)",
            contract_address,
            event_signature,
            block_range,
            self.log_limit,
            self.min_chunk,
            self.initial_chunk,
        )

        while state.start <= block_range.end:
            stop = min(state.start + state.chunk_size - 1, block_range.end)
            span = stop - state.start + 1
            result.requests += 1

            try:
                logs = await self.client.query_logs(
                    contract_address, event_signature, state.start, stop
                )
            except TransportError as e:
                result.transport_failures += 1
                if state.chunk_size > self.min_chunk:
                    self._shrink(state, span)
                    result.shrinks += 1
                    logger.warning(
                        "Query %d-%d failed (%s), retrying with chunk size %d",
                        state.start,
                        stop,
                        e,
                        state.chunk_size,
                    )
                    continue
                logger.error(
                    "Query %d-%d failed at minimum chunk size: %s", state.start, stop, e
                )
                msg = (
                    f"Failed to fetch blocks {state.start}-{stop} "
                    f"even with minimum chunk size {self.min_chunk}: {e}"
                )
                raise TransportError(msg, from_block=state.start, to_block=stop) from e

            if len(logs) >= self.log_limit:
                if self._can_shrink(state, span):
                    self._shrink(state, span)
                    result.shrinks += 1
                    logger.info(
                        "Got %d logs for %d-%d (at limit), retrying with chunk size %d",
                        len(logs),
                        state.start,
                        stop,
                        state.chunk_size,
                    )
                    continue
                sub_range = BlockRange(start=state.start, end=stop)
                result.truncation_risks.append(
                    TruncationRisk(block_range=sub_range, log_count=len(logs))
                )
                logger.warning(
                    "Blocks %s returned %d logs at minimum chunk size; "
                    "transfers may be missing",
                    sub_range,
                    len(logs),
                )

            accepted = BlockRange(start=state.start, end=stop)
            for log in sorted(logs, key=lambda entry: (entry.block_number, entry.log_index)):
                if log.key in seen:
                    result.duplicates += 1
                    continue
                seen.add(log.key)
                result.logs.append(log)
            result.queried.append(accepted)
            logger.debug(
                "Found %d logs in %s (total so far: %d)",
                len(logs),
                accepted,
                len(result.logs),
            )
            if self.on_chunk is not None:
                self.on_chunk(accepted, len(logs))

            state.start = stop + 1
            if self._grow(state, len(logs)):
                result.grows += 1

        logger.info(
            "Scan of %s finished: %d logs, %d requests, %d shrinks, %d truncation risks",
            block_range,
            len(result.logs),
            result.requests,
            result.shrinks,
            len(result.truncation_risks),
        )
        return result


__all__ = ["LogQueryClient", "RangeScanner", "ScanState"]
