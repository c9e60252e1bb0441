"""Configuration management and environment variable utilities."""

import os
from pathlib import Path
from typing import Literal, Self

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from harvest.helpers.constants import (
    BLOCK_AFTER,
    BLOCK_BEFORE,
    DEFAULT_CONCURRENCY,
    INITIAL_CHUNK,
    MIN_CHUNK,
    RPC_LOG_LIMIT,
    SCAN_END_BLOCK,
    TOKEN_MANAGER_ADDRESS,
    TRANSFER_EVENT_SIGNATURE,
)
from harvest.helpers.logging import LOG_LEVELS
from harvest.helpers.parsers import normalize_address


# Load environment variables from .env file
load_dotenv()

DRPC_OPTIMISM_URL = "https://lb.drpc.live/optimism/{api_key}"


def get_required_env(key: str) -> str:
    """Get a required environment variable.

    Args:
        key: Environment variable name

    Returns:
        Environment variable value

    Raises:
        ValueError: If the environment variable is not set

    Example:
        ```python
        from harvest.helpers.config import get_required_env

        token_manager = get_required_env("TOKEN_MANAGER_ADDRESS")
        ```
    """
    value = os.getenv(key)
    if not value:
        msg = f"{key} environment variable is not set"
        raise ValueError(msg)
    return value


def get_optional_env(key: str, default: str | None = None) -> str | None:
    """Get an optional environment variable with a default value.

    Args:
        key: Environment variable name
        default: Default value if not set

    Returns:
        Environment variable value or default
    """
    return os.getenv(key, default)


def get_int_env(key: str, default: int) -> int:
    """Get an integer environment variable.

    Underscores are accepted as digit separators ("138_850_000").

    Args:
        key: Environment variable name
        default: Value used when the variable is unset or empty

    Returns:
        Parsed integer

    Raises:
        ValueError: If the variable is set but not an integer
    """
    raw = os.getenv(key)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw.strip())
    except ValueError:
        msg = f"{key} must be an integer, got {raw!r}"
        raise ValueError(msg) from None


def get_rpc_url(rpc_url: str | None = None) -> str:
    """Get the JSON-RPC URL from parameter or environment.

    Resolution order: explicit argument, ``RPC_URL``, then a dRPC Optimism
    endpoint built from ``OPTIMISM_DRPC_API_KEY``.

    Args:
        rpc_url: Optional RPC URL to use directly

    Returns:
        JSON-RPC endpoint URL

    Raises:
        ValueError: If no URL can be resolved

    Example:
        ```python
        from harvest.helpers.config import get_rpc_url

        rpc_url = get_rpc_url()
        rpc_url = get_rpc_url("https://mainnet.optimism.io")
        ```
    """
    if rpc_url:
        return rpc_url

    env_rpc_url = os.getenv("RPC_URL")
    if env_rpc_url:
        return env_rpc_url

    api_key = os.getenv("OPTIMISM_DRPC_API_KEY")
    if api_key:
        return DRPC_OPTIMISM_URL.format(api_key=api_key)

    msg = "RPC_URL or OPTIMISM_DRPC_API_KEY must be provided or set in environment variables"
    raise ValueError(msg)


class PipelineSettings(BaseModel):
    """Frozen parameters for one pipeline run."""

    model_config = ConfigDict(frozen=True)

    rpc_url: str = Field(..., min_length=1, description="JSON-RPC endpoint")
    token_manager_address: str = Field(
        default=TOKEN_MANAGER_ADDRESS, description="TokenManager exposing token()"
    )
    token_address: str | None = Field(
        default=None, description="Token contract; resolved via token() when unset"
    )
    event_signature: str = Field(default=TRANSFER_EVENT_SIGNATURE)
    scan_start_block: int | None = Field(
        default=None, ge=0, description="First scanned block (defaults to block_before)"
    )
    scan_end_block: int = Field(default=SCAN_END_BLOCK, ge=0)
    block_before: int = Field(default=BLOCK_BEFORE, ge=0)
    block_after: int = Field(default=BLOCK_AFTER, ge=0)
    rpc_log_limit: int = Field(default=RPC_LOG_LIMIT, ge=1)
    min_chunk: int = Field(default=MIN_CHUNK, ge=1)
    initial_chunk: int = Field(default=INITIAL_CHUNK, ge=1)
    balance_concurrency: int = Field(default=DEFAULT_CONCURRENCY, ge=1)
    balance_method: Literal["balanceOfAt", "balanceOf"] = "balanceOfAt"
    output_dir: Path = Field(default=Path("."))
    log_level: str = "INFO"

    @field_validator("token_manager_address", "token_address")
    @classmethod
    def _checksum(cls, value: str | None) -> str | None:
        return None if value is None else normalize_address(value)

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.upper()
        if level not in LOG_LEVELS:
            msg = f"Invalid log level: {value}"
            raise ValueError(msg)
        return level

    @model_validator(mode="after")
    def _check_ranges(self) -> Self:
        if self.block_before >= self.block_after:
            msg = (
                f"block_before ({self.block_before}) must be lower than "
                f"block_after ({self.block_after})"
            )
            raise ValueError(msg)
        if self.start_block > self.scan_end_block:
            msg = (
                f"scan start ({self.start_block}) must be <= "
                f"scan_end_block ({self.scan_end_block})"
            )
            raise ValueError(msg)
        if self.min_chunk > self.initial_chunk:
            msg = (
                f"min_chunk ({self.min_chunk}) must be <= "
                f"initial_chunk ({self.initial_chunk})"
            )
            raise ValueError(msg)
        return self

    @property
    def start_block(self) -> int:
        """First block of the transfer scan."""
        if self.scan_start_block is None:
            return self.block_before
        return self.scan_start_block

    @classmethod
    def from_env(cls, **overrides: object) -> "PipelineSettings":
        """Build settings from environment variables.

        Keyword overrides take precedence over the environment.

        Raises:
            ValueError: If a variable is malformed or no RPC URL is configured
        """
        scan_start = get_optional_env("SCAN_START_BLOCK")
        values: dict[str, object] = {
            "rpc_url": get_rpc_url(overrides.pop("rpc_url", None)),  # type: ignore[arg-type]
            "token_manager_address": get_optional_env(
                "TOKEN_MANAGER_ADDRESS", TOKEN_MANAGER_ADDRESS
            ),
            "token_address": get_optional_env("TOKEN_ADDRESS") or None,
            "event_signature": get_optional_env(
                "EVENT_SIGNATURE", TRANSFER_EVENT_SIGNATURE
            ),
            "scan_start_block": (
                get_int_env("SCAN_START_BLOCK", 0) if scan_start else None
            ),
            "scan_end_block": get_int_env("SCAN_END_BLOCK", SCAN_END_BLOCK),
            "block_before": get_int_env("BLOCK_BEFORE", BLOCK_BEFORE),
            "block_after": get_int_env("BLOCK_AFTER", BLOCK_AFTER),
            "rpc_log_limit": get_int_env("RPC_LOG_LIMIT", RPC_LOG_LIMIT),
            "min_chunk": get_int_env("MIN_CHUNK", MIN_CHUNK),
            "initial_chunk": get_int_env("INITIAL_CHUNK", INITIAL_CHUNK),
            "balance_concurrency": get_int_env(
                "BALANCE_CONCURRENCY", DEFAULT_CONCURRENCY
            ),
            "balance_method": get_optional_env("BALANCE_METHOD", "balanceOfAt"),
            "output_dir": Path(get_optional_env("OUTPUT_DIR", ".") or "."),
            "log_level": get_optional_env("LOG_LEVEL", "INFO"),
        }
        values.update(overrides)
        return cls.model_validate(values)


__all__ = [
    "PipelineSettings",
    "get_int_env",
    "get_optional_env",
    "get_required_env",
    "get_rpc_url",
]
