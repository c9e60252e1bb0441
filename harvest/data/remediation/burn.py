"""Generate burn commands from balance changes."""

from collections.abc import Iterable

from harvest.data.remediation.models import BalanceDiff, BurnCommand, BurnPlan
from harvest.helpers.logging import get_logger


logger = get_logger(__name__)


class BurnCommandGenerator:
    """Convert non-zero diffs into ordered burn commands with a grand total."""

    def generate(self, diffs: Iterable[BalanceDiff]) -> BurnPlan:
        """Build the burn plan.

        Commands keep the order of ``diffs``; zero diffs are skipped and counted.
        """
        plan = BurnPlan()
        for diff in diffs:
            if diff.diff == 0:
                plan.skipped_zero += 1
                continue
            plan.commands.append(BurnCommand(address=diff.address, amount=diff.diff))
            plan.total += diff.diff

        logger.info(
            "Found %d addresses with non-zero diff (total %d)",
            len(plan.commands),
            plan.total,
        )
        return plan


__all__ = ["BurnCommandGenerator"]
