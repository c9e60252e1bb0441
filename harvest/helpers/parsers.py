"""Parsing utilities for common data transformations."""

from decimal import Decimal, localcontext

from eth_utils import is_hex_address, to_checksum_address


def parse_hex_int(hex_value: str | None, default: int = 0) -> int:
    """Parse hex string to integer.

    Args:
        hex_value: Hex-encoded string or None
        default: Default value if hex_value is None or "0x"

    Returns:
        int: Parsed integer value

    Example:
        >>> parse_hex_int("0xff")
        255
        >>> parse_hex_int(None, 0)
        0
    """
    if hex_value is None or hex_value in ("0x", "0X"):
        return default
    return int(hex_value, 16)


def normalize_address(value: str) -> str:
    """Validate an address and return its EIP-55 checksum form.

    Args:
        value: 0x-prefixed 20-byte hex address, any case

    Returns:
        Checksummed address

    Raises:
        ValueError: If value is not a 20-byte hex address

    Example:
        >>> normalize_address("0x0000000000000000000000000000000000000000")
        '0x0000000000000000000000000000000000000000'
    """
    candidate = value.strip() if isinstance(value, str) else value
    if not isinstance(candidate, str) or not is_hex_address(candidate):
        msg = f"Invalid address: {value!r}"
        raise ValueError(msg)
    return to_checksum_address(candidate)


def topic_to_address(topic: str) -> str:
    """Extract the checksummed address held in the low 20 bytes of a topic.

    Raises:
        ValueError: If the topic is not a 32-byte hex word
    """
    body = topic[2:] if topic[:2].lower() == "0x" else topic
    if len(body) != 64:
        msg = f"Topic is not a 32-byte word: {topic!r}"
        raise ValueError(msg)
    int(body, 16)
    return to_checksum_address("0x" + body[-40:])


def word_to_int(data_hex: str, index: int = 0) -> int:
    """Read the index-th 32-byte word of ABI-encoded data as an unsigned int.

    Raises:
        ValueError: If the data is not hex or is shorter than the word
    """
    body = data_hex[2:] if data_hex[:2].lower() == "0x" else data_hex
    word = body[index * 64 : (index + 1) * 64]
    if len(word) != 64:
        msg = f"Data too short for word {index}: {len(body) // 2} bytes"
        raise ValueError(msg)
    return int(word, 16)


def format_units(amount: int, decimals: int = 18) -> str:
    """Render a base-unit integer as an exact decimal string.

    Args:
        amount: Amount in base units (arbitrary precision)
        decimals: Token decimals

    Returns:
        str: Exact decimal representation, trailing zeros trimmed

    Example:
        >>> format_units(1500000000000000000)
        '1.5'
        >>> format_units(2**70, 0)
        '1180591620717411303424'
    """
    with localcontext() as ctx:
        ctx.prec = max(len(str(abs(amount))) + decimals + 2, 28)
        value = Decimal(amount).scaleb(-decimals)
        text = format(value, "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


__all__ = [
    "format_units",
    "normalize_address",
    "parse_hex_int",
    "topic_to_address",
    "word_to_int",
]
