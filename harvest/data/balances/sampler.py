"""Sample holder balances at two snapshot blocks with a bounded worker pool."""

from __future__ import annotations

import asyncio

from typing import TYPE_CHECKING, Protocol

from harvest.data.balances.models import BalanceSample, SampleResult
from harvest.helpers.constants import DEFAULT_CONCURRENCY, PROGRESS_LOG_EVERY
from harvest.helpers.errors import PerAddressQueryError
from harvest.helpers.logging import get_logger


if TYPE_CHECKING:
    from collections.abc import Callable, Iterable


logger = get_logger(__name__)


class BalanceQuery(Protocol):
    """Capability to read a token balance at a historical block."""

    async def balance_at(
        self, contract_address: str, owner_address: str, block_number: int
    ) -> int:
        """Return the balance of ``owner_address`` at ``block_number``."""
        ...


class BalanceSampler:
    """Fetch before/after balances for many holders, tolerating per-holder failures."""

    def __init__(
        self,
        balances: BalanceQuery,
        token_address: str,
        *,
        block_before: int,
        block_after: int,
        concurrency: int = DEFAULT_CONCURRENCY,
        on_sampled: Callable[[str, bool], None] | None = None,
    ) -> None:
        """Initialize sampler.

        Args:
            balances: Historical balance capability
            token_address: Token contract queried for every holder
            block_before: Earlier snapshot block
            block_after: Later snapshot block
            concurrency: Maximum number of holders queried at once
            on_sampled: Called with (address, succeeded) after each holder

        Raises:
            ValueError: If block_before >= block_after or concurrency < 1
        """
        if block_before >= block_after:
            msg = f"block_before ({block_before}) must be lower than block_after ({block_after})"
            raise ValueError(msg)
        if concurrency < 1:
            msg = f"concurrency must be positive, got {concurrency}"
            raise ValueError(msg)

        self.balances = balances
        self.token_address = token_address
        self.block_before = block_before
        self.block_after = block_after
        self.concurrency = concurrency
        self.on_sampled = on_sampled

    async def sample_one(self, address: str) -> BalanceSample:
        """Query both snapshot balances of one holder concurrently.

        Raises:
            Exception: Whatever the balance capability raised first
        """
        before, after = await asyncio.gather(
            self.balances.balance_at(self.token_address, address, self.block_before),
            self.balances.balance_at(self.token_address, address, self.block_after),
            return_exceptions=True,
        )
        for outcome in (before, after):
            if isinstance(outcome, BaseException):
                raise outcome
        return BalanceSample(address=address, before=before, after=after)

    async def sample(self, addresses: Iterable[str]) -> SampleResult:
        """Sample every address, omitting those whose queries fail.

        Args:
            addresses: Holder addresses; duplicates are queried once

        Returns:
            SampleResult with samples in input order and one
            PerAddressQueryError per omitted holder
        """
        ordered = list(dict.fromkeys(addresses))
        outcomes: dict[str, BalanceSample | PerAddressQueryError] = {}
        queue: asyncio.Queue[str] = asyncio.Queue()
        for address in ordered:
            queue.put_nowait(address)

        logger.info(
            "Fetching balances of %d addresses at blocks %d and %d (concurrency=%d)",
            len(ordered),
            self.block_before,
            self.block_after,
            self.concurrency,
        )

        async def worker() -> None:
            while True:
                try:
                    address = queue.get_nowait()
                except asyncio.QueueEmpty:
                    return
                try:
                    outcomes[address] = await self.sample_one(address)
                except Exception as e:
                    logger.warning("Error fetching balance for %s: %s", address, e)
                    outcomes[address] = PerAddressQueryError(address, e)

                if len(outcomes) % PROGRESS_LOG_EVERY == 0:
                    logger.info("Processed %d/%d addresses", len(outcomes), len(ordered))
                if self.on_sampled is not None:
                    self.on_sampled(
                        address, isinstance(outcomes[address], BalanceSample)
                    )

        workers = min(self.concurrency, len(ordered))
        await asyncio.gather(*(worker() for _ in range(workers)))

        result = SampleResult(block_before=self.block_before, block_after=self.block_after)
        for address in ordered:
            outcome = outcomes[address]
            if isinstance(outcome, BalanceSample):
                result.samples.append(outcome)
            else:
                result.failures.append(outcome)

        logger.info(
            "Fetched balances for %d addresses, %d failed",
            len(result.samples),
            len(result.failures),
        )
        return result


__all__ = ["BalanceQuery", "BalanceSampler"]
