"""Exception taxonomy shared by the harvest stages."""


class HarvestError(Exception):
    """Base class for all pipeline errors."""


class TransportError(HarvestError):
    """A query to the RPC endpoint failed (HTTP error, timeout, provider error).

    The log scanner retries these by shrinking its chunk size and only treats
    them as fatal once the chunk size is already at its floor.
    """

    def __init__(
        self,
        message: str,
        *,
        from_block: int | None = None,
        to_block: int | None = None,
    ) -> None:
        """Initialize transport error.

        Args:
            message: Human readable failure description
            from_block: First block of the failed query, if any
            to_block: Last block of the failed query, if any
        """
        super().__init__(message)
        self.from_block = from_block
        self.to_block = to_block


class RPCError(TransportError):
    """The endpoint answered with a JSON-RPC error object."""

    def __init__(self, error: object, **kwargs: int | None) -> None:
        """Initialize RPC error.

        Args:
            error: The ``error`` member of the JSON-RPC response
            **kwargs: Optional ``from_block``/``to_block`` range
        """
        super().__init__(f"RPC error: {error}", **kwargs)
        self.error = error


class DecodeError(HarvestError, ValueError):
    """A log entry does not match the expected Transfer event layout."""


class PerAddressQueryError(HarvestError):
    """Balance sampling failed for a single address."""

    def __init__(self, address: str, cause: BaseException) -> None:
        """Initialize per-address error.

        Args:
            address: Holder address whose balances could not be read
            cause: Underlying exception
        """
        super().__init__(f"Balance query failed for {address}: {cause}")
        self.address = address
        self.cause = cause


__all__ = [
    "DecodeError",
    "HarvestError",
    "PerAddressQueryError",
    "RPCError",
    "TransportError",
]
