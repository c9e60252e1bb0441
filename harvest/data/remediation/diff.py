"""Compute per-holder balance changes between the two snapshot blocks."""

from collections.abc import Iterable

from harvest.data.balances.models import BalanceSample
from harvest.data.remediation.models import BalanceDiff
from harvest.helpers.logging import get_logger


logger = get_logger(__name__)


def compute_diff(sample: BalanceSample) -> BalanceDiff | None:
    """Return the change for one holder, or None when the balance is unchanged.

    ``diff`` is ``after - min(before, after)``: zero when the balance fell,
    the increase when it rose.

    Example:
        >>> compute_diff(BalanceSample(address="0xa", before=40, after=100)).diff
        60
        >>> compute_diff(BalanceSample(address="0xa", before=100, after=40)).diff
        0
    """
    if sample.before == sample.after:
        return None

    low = min(sample.before, sample.after)
    return BalanceDiff(
        address=sample.address,
        before=sample.before,
        after=sample.after,
        min=low,
        diff=sample.after - low,
    )


class BalanceDiffEngine:
    """Turn balance samples into the changed-holders table."""

    def process(self, samples: Iterable[BalanceSample]) -> list[BalanceDiff]:
        """Compute diffs for every sample, dropping unchanged holders.

        Input order is preserved.
        """
        diffs: list[BalanceDiff] = []
        total = 0
        for sample in samples:
            total += 1
            diff = compute_diff(sample)
            if diff is not None:
                diffs.append(diff)

        logger.info("Filtered %d balance rows to %d with changes", total, len(diffs))
        return diffs


__all__ = ["BalanceDiffEngine", "compute_diff"]
