"""CSV artifacts passed between pipeline stages.

Every writer goes through ``atomic_write`` so an interrupted stage leaves either
the previous artifact or none at all, never a truncated file. Integers are
written as exact decimal strings.
"""

import csv
import os
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import TextIO

from pydantic import ValidationError

from harvest.data.balances.models import BalanceSample
from harvest.data.remediation.models import BalanceDiff, BurnPlan
from harvest.data.transfers.models import TransferRecord
from harvest.helpers.constants import TOKEN_DECIMALS
from harvest.helpers.parsers import format_units


TRANSFER_COLUMNS = ["transaction_hash", "from_address", "to_address", "value"]
BALANCE_COLUMNS = ["address", "before", "after"]
BALANCE_DIFF_COLUMNS = ["address", "before", "after", "min", "diff"]


@contextmanager
def atomic_write(path: Path | str) -> Iterator[TextIO]:
    """Open ``path`` for writing through a temporary sibling file.

    The temporary file replaces ``path`` only when the block exits cleanly.

    Example:
        ```python
        with atomic_write("out.csv") as f:
            f.write("address,before,after\\n")
        ```
    """
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    tmp = target.with_name(target.name + ".tmp")
    try:
        with open(tmp, "w", newline="") as f:
            yield f
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp, target)
    finally:
        if tmp.exists():
            tmp.unlink()


def _write_rows(path: Path | str, columns: list[str], rows: Iterable[list[object]]) -> int:
    count = 0
    with atomic_write(path) as f:
        writer = csv.writer(f, lineterminator="\n")
        writer.writerow(columns)
        for row in rows:
            writer.writerow([str(value) for value in row])
            count += 1
    return count


def _read_rows(path: Path | str, required: list[str]) -> Iterator[tuple[int, dict[str, str]]]:
    with open(path, newline="") as f:
        reader = csv.DictReader(f)
        missing = [c for c in required if c not in (reader.fieldnames or [])]
        if missing:
            msg = f"{path}: missing columns {missing}"
            raise ValueError(msg)
        for row in reader:
            if not any((value or "").strip() for value in row.values()):
                continue
            yield reader.line_num, row


def _parse_int(path: Path | str, line: int, column: str, raw: str | None) -> int:
    try:
        return int((raw or "").strip())
    except ValueError:
        msg = f"{path}:{line}: {column} is not an integer: {raw!r}"
        raise ValueError(msg) from None


def write_transfers(path: Path | str, records: Iterable[TransferRecord]) -> int:
    """Write the transfers table. Returns the number of rows."""
    return _write_rows(
        path,
        TRANSFER_COLUMNS,
        (
            [r.transaction_hash, r.from_address, r.to_address, r.value]
            for r in records
        ),
    )


def read_transfers(path: Path | str) -> list[TransferRecord]:
    """Read the transfers table.

    The ``value`` column is optional so tables with only hash/from/to load too.

    Raises:
        ValueError: If a required column is missing or a row is malformed
    """
    records: list[TransferRecord] = []
    for line, row in _read_rows(path, TRANSFER_COLUMNS[:3]):
        value = row.get("value")
        try:
            records.append(
                TransferRecord(
                    transaction_hash=(row["transaction_hash"] or "").strip(),
                    from_address=(row["from_address"] or "").strip(),
                    to_address=(row["to_address"] or "").strip(),
                    value=_parse_int(path, line, "value", value) if (value or "").strip() else 0,
                )
            )
        except ValidationError as e:
            msg = f"{path}:{line}: invalid transfer row: {e}"
            raise ValueError(msg) from e
    return records


def write_balance_samples(path: Path | str, samples: Iterable[BalanceSample]) -> int:
    """Write the balances table. Returns the number of rows."""
    return _write_rows(
        path, BALANCE_COLUMNS, ([s.address, s.before, s.after] for s in samples)
    )


def read_balance_samples(path: Path | str) -> list[BalanceSample]:
    """Read the balances table.

    Raises:
        ValueError: If a column is missing or a balance is not an integer
    """
    samples: list[BalanceSample] = []
    for line, row in _read_rows(path, BALANCE_COLUMNS):
        try:
            samples.append(
                BalanceSample(
                    address=(row["address"] or "").strip(),
                    before=_parse_int(path, line, "before", row["before"]),
                    after=_parse_int(path, line, "after", row["after"]),
                )
            )
        except ValidationError as e:
            msg = f"{path}:{line}: invalid balance row: {e}"
            raise ValueError(msg) from e
    return samples


def write_balance_diffs(path: Path | str, diffs: Iterable[BalanceDiff]) -> int:
    """Write the balance changes table. Returns the number of rows."""
    return _write_rows(
        path,
        BALANCE_DIFF_COLUMNS,
        ([d.address, d.before, d.after, d.min, d.diff] for d in diffs),
    )


def read_balance_diffs(path: Path | str) -> list[BalanceDiff]:
    """Read the balance changes table.

    Raises:
        ValueError: If a column is missing or a row is inconsistent
    """
    diffs: list[BalanceDiff] = []
    for line, row in _read_rows(path, BALANCE_DIFF_COLUMNS):
        try:
            diffs.append(
                BalanceDiff(
                    address=(row["address"] or "").strip(),
                    **{
                        column: _parse_int(path, line, column, row[column])
                        for column in BALANCE_DIFF_COLUMNS[1:]
                    },
                )
            )
        except ValidationError as e:
            msg = f"{path}:{line}: invalid balance change row: {e}"
            raise ValueError(msg) from e
    return diffs


def write_burn_commands(path: Path | str, plan: BurnPlan) -> int:
    """Write one console command per line. Returns the number of commands."""
    with atomic_write(path) as f:
        for command in plan.commands:
            f.write(command.render() + "\n")
    return len(plan.commands)


def render_burn_summary(plan: BurnPlan, decimals: int = TOKEN_DECIMALS) -> str:
    """Human-readable totals of a burn plan."""
    return (
        f"commands: {len(plan.commands)}\n"
        f"total: {plan.total}\n"
        f"total_tokens: {format_units(plan.total, decimals)}\n"
    )


def write_burn_summary(
    path: Path | str, plan: BurnPlan, decimals: int = TOKEN_DECIMALS
) -> None:
    """Write the burn totals next to the command list."""
    with atomic_write(path) as f:
        f.write(render_burn_summary(plan, decimals))


__all__ = [
    "BALANCE_COLUMNS",
    "BALANCE_DIFF_COLUMNS",
    "TRANSFER_COLUMNS",
    "atomic_write",
    "read_balance_diffs",
    "read_balance_samples",
    "read_transfers",
    "render_burn_summary",
    "write_balance_diffs",
    "write_balance_samples",
    "write_burn_commands",
    "write_burn_summary",
    "write_transfers",
]
