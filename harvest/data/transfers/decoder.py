"""Decode raw Transfer logs into typed transfer records."""

from collections.abc import Iterable

from eth_utils import event_signature_to_log_topic

from harvest.data.transfers.models import DecodeResult, LogEntry, TransferRecord
from harvest.helpers.constants import TRANSFER_EVENT_SIGNATURE
from harvest.helpers.errors import DecodeError
from harvest.helpers.logging import get_logger
from harvest.helpers.parsers import topic_to_address, word_to_int


logger = get_logger(__name__)


def event_topic(event_signature: str) -> str:
    """Return the 0x-prefixed keccak topic0 of an event signature."""
    return "0x" + event_signature_to_log_topic(event_signature).hex()


class TransferDecoder:
    """Map ``Transfer(address indexed, address indexed, uint256)`` logs to records."""

    def __init__(self, event_signature: str = TRANSFER_EVENT_SIGNATURE) -> None:
        self.event_signature = event_signature
        self.topic0 = event_topic(event_signature)

    def decode(self, entry: LogEntry) -> TransferRecord:
        """Decode one log entry.

        Raises:
            DecodeError: If the topic count, topic0 or data payload do not
                match the Transfer layout
        """
        if len(entry.topics) != 3:
            msg = (
                f"Log {entry.transaction_hash}:{entry.log_index} has "
                f"{len(entry.topics)} topics, expected 3"
            )
            raise DecodeError(msg)
        if entry.topics[0].lower() != self.topic0:
            msg = f"Log {entry.transaction_hash}:{entry.log_index} is not {self.event_signature}"
            raise DecodeError(msg)

        data = entry.data[2:] if entry.data[:2].lower() == "0x" else entry.data
        if len(data) != 64:
            msg = (
                f"Log {entry.transaction_hash}:{entry.log_index} carries "
                f"{len(data) // 2} data bytes, expected 32"
            )
            raise DecodeError(msg)

        try:
            return TransferRecord(
                transaction_hash=entry.transaction_hash,
                from_address=topic_to_address(entry.topics[1]),
                to_address=topic_to_address(entry.topics[2]),
                value=word_to_int(data),
            )
        except ValueError as e:
            msg = f"Log {entry.transaction_hash}:{entry.log_index} is malformed: {e}"
            raise DecodeError(msg) from e

    def decode_all(self, entries: Iterable[LogEntry]) -> DecodeResult:
        """Decode a batch, skipping and counting entries that fail."""
        result = DecodeResult()
        for entry in entries:
            try:
                result.records.append(self.decode(entry))
            except DecodeError as e:
                logger.warning("Skipping undecodable log: %s", e)
                result.failures.append((entry, str(e)))

        if result.skipped:
            logger.warning(
                "Decoded %d transfers, skipped %d undecodable logs",
                len(result.records),
                result.skipped,
            )
        return result


__all__ = ["TransferDecoder", "event_topic"]
