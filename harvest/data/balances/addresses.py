"""Build the set of holder addresses touched by the harvested transfers."""

from collections.abc import Iterable

from harvest.data.transfers.models import TransferRecord
from harvest.helpers.logging import get_logger
from harvest.helpers.parsers import normalize_address


logger = get_logger(__name__)


def address_set(records: Iterable[TransferRecord]) -> tuple[list[str], int]:
    """Collect unique ``from``/``to`` addresses in first-seen order.

    Addresses are checksummed so case variants collapse into one holder.
    Empty or malformed cells are skipped.

    Returns:
        Tuple of (addresses, skipped cell count)
    """
    seen: dict[str, None] = {}
    skipped = 0
    for record in records:
        for raw in (record.from_address, record.to_address):
            try:
                seen.setdefault(normalize_address(raw), None)
            except ValueError:
                skipped += 1

    if skipped:
        logger.warning("Skipped %d empty or malformed address cells", skipped)
    logger.info("Found %d unique addresses", len(seen))
    return list(seen), skipped


__all__ = ["address_set"]
