"""Common configuration constants used across the pipeline."""

# Token and snapshot defaults
TOKEN_MANAGER_ADDRESS = "0x19b5b7887216ae05db3921b87d875e2ccdb7ae2c"
"""TokenManager whose token() view returns the harvested token"""

TRANSFER_EVENT_SIGNATURE = "Transfer(address,address,uint256)"
"""ERC-20 / MiniMe Transfer event"""

BLOCK_BEFORE = 138_850_000
"""Snapshot block before the migration window"""

BLOCK_AFTER = 144_200_000
"""Snapshot block after the migration window"""

SCAN_END_BLOCK = 144_895_034
"""Last block scanned for transfers"""

TOKEN_DECIMALS = 18
"""Decimals used when rendering base-unit totals"""

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

# Log scanning
RPC_LOG_LIMIT = 10_000
"""Result count at which a getLogs response is treated as truncated"""

MIN_CHUNK = 100
"""Smallest block span a log query is shrunk to"""

INITIAL_CHUNK = 10_000
"""Block span of the first log query and the ceiling for regrowth"""

# HTTP and Network Constants
DEFAULT_TIMEOUT = 30.0
"""Default HTTP request timeout in seconds"""

MAX_RETRIES = 5
"""Default maximum number of retry attempts"""

RETRY_BASE_DELAY = 1.0
"""Base delay for exponential backoff in seconds"""

RETRY_MAX_DELAY = 60.0
"""Maximum delay between retries in seconds"""

# Concurrency Limits
DEFAULT_CONCURRENCY = 10
"""Default number of addresses sampled in parallel"""

PROGRESS_LOG_EVERY = 100
"""Addresses between progress log lines"""

MAX_CONNECTIONS = 20
"""Maximum total number of connections"""

MAX_KEEPALIVE_CONNECTIONS = 10
"""Maximum number of keepalive connections in pool"""

# Artifact file names
TRANSFERS_FILE = "tec_transfers.csv"
BALANCES_FILE = "tec_balances.csv"
BALANCE_CHANGES_FILE = "tec_balances_changes.csv"
BURN_COMMANDS_FILE = "burn_commands.txt"
BURN_SUMMARY_FILE = "burn_summary.txt"


__all__ = [
    "BALANCES_FILE",
    "BALANCE_CHANGES_FILE",
    "BLOCK_AFTER",
    "BLOCK_BEFORE",
    "BURN_COMMANDS_FILE",
    "BURN_SUMMARY_FILE",
    "DEFAULT_CONCURRENCY",
    "DEFAULT_TIMEOUT",
    "INITIAL_CHUNK",
    "MAX_CONNECTIONS",
    "MAX_KEEPALIVE_CONNECTIONS",
    "MAX_RETRIES",
    "MIN_CHUNK",
    "PROGRESS_LOG_EVERY",
    "RETRY_BASE_DELAY",
    "RETRY_MAX_DELAY",
    "RPC_LOG_LIMIT",
    "SCAN_END_BLOCK",
    "TOKEN_DECIMALS",
    "TOKEN_MANAGER_ADDRESS",
    "TRANSFERS_FILE",
    "TRANSFER_EVENT_SIGNATURE",
    "ZERO_ADDRESS",
]
