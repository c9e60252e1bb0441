"""Pytest configuration and in-memory fakes for the pipeline collaborators."""

import asyncio
from collections.abc import Callable

import pytest

from harvest.data.transfers.decoder import event_topic
from harvest.data.transfers.models import LogEntry
from harvest.helpers.constants import TRANSFER_EVENT_SIGNATURE
from harvest.helpers.errors import TransportError


TOKEN = "0x0000000000000000000000000000000000000abc"
TRANSFER_TOPIC = event_topic(TRANSFER_EVENT_SIGNATURE)


def address(n: int) -> str:
    """Deterministic lowercase test address."""
    return f"0x{n:040x}"


def topic(addr: str) -> str:
    """Left-pad an address into a 32-byte topic."""
    return "0x" + addr[2:].lower().rjust(64, "0")


def make_log(
    block: int,
    log_index: int = 0,
    *,
    sender: str | None = None,
    recipient: str | None = None,
    value: int = 1,
    tx_hash: str | None = None,
) -> LogEntry:
    """Build a well-formed Transfer log."""
    return LogEntry(
        address=TOKEN,
        block_number=block,
        transaction_hash=tx_hash or f"0x{block:032x}{log_index:032x}",
        log_index=log_index,
        topics=(
            TRANSFER_TOPIC,
            topic(sender or address(block % 7 + 1)),
            topic(recipient or address(block % 5 + 100)),
        ),
        data=f"0x{value:064x}",
    )


class FakeLogQuery:
    """Serve logs from a fixed chain, truncating like a capped provider.

    Args:
        logs: Logs available on the fake chain
        limit: Maximum number of logs returned per query (None = unlimited)
        fail: Predicate on (from_block, to_block) selecting failing queries
    """

    def __init__(
        self,
        logs: list[LogEntry],
        *,
        limit: int | None = None,
        fail: Callable[[int, int], bool] | None = None,
    ) -> None:
        self.logs = logs
        self.limit = limit
        self.fail = fail
        self.calls: list[tuple[int, int]] = []

    async def query_logs(
        self,
        contract_address: str,
        event_signature: str,
        from_block: int,
        to_block: int,
    ) -> list[LogEntry]:
        self.calls.append((from_block, to_block))
        if self.fail is not None and self.fail(from_block, to_block):
            msg = f"query {from_block}-{to_block} refused"
            raise TransportError(msg, from_block=from_block, to_block=to_block)
        matched = [
            log for log in self.logs if from_block <= log.block_number <= to_block
        ]
        if self.limit is not None:
            return matched[: self.limit]
        return matched


class FakeBalanceQuery:
    """Serve balances from a table keyed by (owner, block).

    Args:
        balances: Mapping of (checksum owner, block) to balance
        failing: Owners whose queries raise TransportError
        delay: Seconds each query sleeps, to exercise concurrency
    """

    def __init__(
        self,
        balances: dict[tuple[str, int], int] | None = None,
        *,
        failing: set[str] | None = None,
        delay: float = 0.0,
    ) -> None:
        self.balances = balances or {}
        self.failing = failing or set()
        self.delay = delay
        self.calls: list[tuple[str, str, int]] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def balance_at(
        self, contract_address: str, owner_address: str, block_number: int
    ) -> int:
        self.calls.append((contract_address, owner_address, block_number))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
            if owner_address in self.failing:
                msg = f"balance of {owner_address} unavailable"
                raise TransportError(msg)
            return self.balances.get((owner_address, block_number), 0)
        finally:
            self.in_flight -= 1


@pytest.fixture
def token() -> str:
    """Token contract used by the fakes."""
    return TOKEN


@pytest.fixture
def log_factory() -> Callable[..., LogEntry]:
    """Factory for well-formed Transfer logs."""
    return make_log


@pytest.fixture
def log_query_factory() -> type[FakeLogQuery]:
    """Fake eth_getLogs capability."""
    return FakeLogQuery


@pytest.fixture
def balance_query_factory() -> type[FakeBalanceQuery]:
    """Fake historical balance capability."""
    return FakeBalanceQuery


@pytest.fixture
def addr() -> Callable[[int], str]:
    """Deterministic address factory."""
    return address
