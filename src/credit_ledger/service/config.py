"""Configuration primitives for the ledger service."""

from __future__ import annotations

import os
from collections.abc import Sequence
from dataclasses import dataclass, field

from ..store.ledger import DEFAULT_HISTORY_LIMIT, DEFAULT_SEED_ACCOUNTS, AccountSeed

DEFAULT_PORT = 9999
DEFAULT_DESCRIPTION_MAX_LENGTH = 10


def parse_seed_accounts(value: str) -> tuple[AccountSeed, ...]:
    """Parse a seed list of the form "id:limit[:balance],...".

    Example:
        parse_seed_accounts("1:100000,2:80000:-500")

    Raises:
        ValueError: on malformed entries
    """
    seeds = []
    for raw in value.split(","):
        entry = raw.strip()
        if not entry:
            continue
        parts = entry.split(":")
        if len(parts) not in (2, 3):
            raise ValueError(f"Invalid seed entry {entry!r}: expected id:limit[:balance]")
        try:
            numbers = [int(p) for p in parts]
        except ValueError:
            raise ValueError(f"Invalid seed entry {entry!r}: values must be integers") from None
        seeds.append(AccountSeed(*numbers))
    if not seeds:
        raise ValueError("Seed account list is empty")
    return tuple(seeds)


@dataclass(slots=True)
class LedgerConfig:
    """Runtime configuration for the ledger service.

    Configuration Sources (priority order):
    1. Direct constructor arguments
    2. Environment variables (LEDGER_*)
    3. Default values

    Attributes:
        port: Service port (default: 9999)
        history_limit: Transactions returned per statement (default: 10)
        description_max_length: Max transaction description length (default: 10)
        seed_accounts: Accounts created at startup
        cors_origins: Origins allowed by the CORS middleware
    """

    port: int = DEFAULT_PORT
    history_limit: int = DEFAULT_HISTORY_LIMIT
    description_max_length: int = DEFAULT_DESCRIPTION_MAX_LENGTH
    seed_accounts: Sequence[AccountSeed] = DEFAULT_SEED_ACCOUNTS
    cors_origins: list[str] = field(
        default_factory=lambda: [
            "http://localhost:3000",
            "http://127.0.0.1:3000",
        ]
    )

    def __post_init__(self) -> None:
        if self.history_limit < 1:
            raise ValueError("history_limit must be at least 1")
        if self.description_max_length < 1:
            raise ValueError("description_max_length must be at least 1")

    @classmethod
    def from_env(cls) -> LedgerConfig:
        """Create configuration from environment variables.

        Optional:
            LEDGER_PORT: Service port (default: 9999)
            LEDGER_HISTORY_LIMIT: Transactions per statement (default: 10)
            LEDGER_DESCRIPTION_MAX_LENGTH: Max description length (default: 10)
            LEDGER_SEED_ACCOUNTS: Seed list "id:limit[:balance],..."
            LEDGER_CORS_ORIGINS: Comma-separated list of allowed origins
        """
        seed_str = os.environ.get("LEDGER_SEED_ACCOUNTS", "")
        config = cls(
            port=int(os.environ.get("LEDGER_PORT", str(DEFAULT_PORT))),
            history_limit=int(
                os.environ.get("LEDGER_HISTORY_LIMIT", str(DEFAULT_HISTORY_LIMIT))
            ),
            description_max_length=int(
                os.environ.get(
                    "LEDGER_DESCRIPTION_MAX_LENGTH", str(DEFAULT_DESCRIPTION_MAX_LENGTH)
                )
            ),
            seed_accounts=parse_seed_accounts(seed_str) if seed_str.strip() else DEFAULT_SEED_ACCOUNTS,
        )

        origins_str = os.environ.get("LEDGER_CORS_ORIGINS", "")
        if origins_str:
            config.cors_origins = [o.strip() for o in origins_str.split(",") if o.strip()]

        return config


__all__ = ["LedgerConfig", "parse_seed_accounts"]
