"""Client SDK for the Credit Ledger service.

Provides async and sync interfaces for listing accounts, applying
credits and debits, and reading statements.

Example:
    >>> from credit_ledger_client import LedgerClient
    >>> async with LedgerClient("http://localhost:9999") as client:
    ...     balance = await client.credit(1, 1000, "deposit")
    ...     statement = await client.get_statement(1)
"""

from .client import (
    Account,
    Balance,
    LedgerClient,
    LedgerClientConfig,
    LedgerClientError,
    LedgerClientSync,
    LedgerConnectionError,
    LedgerInputError,
    LedgerNotFoundError,
    LedgerRejectedError,
    Statement,
    StatementEntry,
)

__all__ = [
    "LedgerClient",
    "LedgerClientSync",
    "LedgerClientConfig",
    "LedgerClientError",
    "LedgerConnectionError",
    "LedgerInputError",
    "LedgerNotFoundError",
    "LedgerRejectedError",
    "Account",
    "Balance",
    "Statement",
    "StatementEntry",
]
__version__ = "0.1.0"
