"""Ledger Store - accounts, balances and the transaction log.

The store is the single owner of every account balance and of the
append-only transaction log. Callers never get a reference to mutable
account state: every operation returns frozen snapshots, so the limit
check cannot be bypassed.

Key Features:
- Fixed seed set of accounts, looked up by binary search over sorted ids
- Per-account locks so different accounts do not serialize on each other
- Global log lock, always acquired after the account lock
- Consistent balance + recent history reads
"""

from __future__ import annotations

import logging
import threading
from bisect import bisect_left
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable

from .errors import AccountNotFound, InvalidAmount, InvalidDirection, LimitExceeded

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_LIMIT = 10


class Direction(str, Enum):
    """Transaction direction, valued by its wire code."""

    CREDIT = "c"
    DEBIT = "d"

    @classmethod
    def parse(cls, token: Any, account_id: int | None = None) -> Direction:
        """Resolve a wire code (or a Direction) into a Direction.

        Raises:
            InvalidDirection: if the token is not "c" or "d"
        """
        try:
            return cls(token)
        except (ValueError, TypeError):
            raise InvalidDirection(token, account_id) from None

    @property
    def sign(self) -> int:
        return 1 if self is Direction.CREDIT else -1


@dataclass(frozen=True, slots=True)
class AccountSeed:
    """Initial state of an account loaded at startup."""

    id: int
    limit: int
    balance: int = 0


@dataclass(frozen=True, slots=True)
class AccountSnapshot:
    """Immutable read of an account's limit and balance at one instant."""

    id: int
    limit: int
    balance: int


@dataclass(frozen=True, slots=True)
class Transaction:
    """An accepted transaction. Amount is always a positive magnitude."""

    account_id: int
    amount: int
    direction: Direction
    description: str
    timestamp: datetime

    @property
    def signed_amount(self) -> int:
        return self.direction.sign * self.amount


@dataclass(frozen=True, slots=True)
class AccountView:
    """Account snapshot plus its most recent transactions, newest first."""

    account: AccountSnapshot
    recent_transactions: tuple[Transaction, ...]
    taken_at: datetime


@dataclass(slots=True)
class _Account:
    """Mutable account record. Never leaves the store."""

    id: int
    limit: int
    balance: int
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)
    history: list[Transaction] = field(default_factory=list, repr=False)

    def snapshot(self) -> AccountSnapshot:
        return AccountSnapshot(id=self.id, limit=self.limit, balance=self.balance)


DEFAULT_SEED_ACCOUNTS: tuple[AccountSeed, ...] = (
    AccountSeed(id=1, limit=100000),
    AccountSeed(id=2, limit=80000),
    AccountSeed(id=3, limit=1000000),
    AccountSeed(id=4, limit=10000000),
    AccountSeed(id=5, limit=500000),
)


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


class LedgerStore:
    """In-memory ledger of seeded accounts and their transactions.

    Lock order is always account lock, then log lock. Both are held only
    for the read-modify-write, never across blocking calls.

    The global log is the authoritative append-only record of every
    accepted transaction, in acceptance order. Each account also keeps its
    own history list holding the same Transaction objects; that list is
    only an index so statements never scan the whole log.

    Example:
        store = LedgerStore([AccountSeed(id=1, limit=1000)])

        store.apply_transaction(1, "d", 1000, "rent")   # balance -1000
        store.apply_transaction(1, "d", 1, "coffee")    # LimitExceeded

        view = store.get_account_view(1)
        view.account.balance                             # -1000
    """

    def __init__(
        self,
        seed: Iterable[AccountSeed] = DEFAULT_SEED_ACCOUNTS,
        *,
        history_limit: int = DEFAULT_HISTORY_LIMIT,
        time_provider: Callable[[], datetime] | None = None,
    ):
        """Initialize the store from a fixed seed set.

        Args:
            seed: Accounts to create; ids must be unique positive integers
            history_limit: Maximum transactions returned by get_account_view
            time_provider: Clock used to timestamp transactions (for testing)

        Raises:
            ValueError: if the seed set or history limit is invalid
        """
        if not _is_int(history_limit) or history_limit < 1:
            raise ValueError(f"history_limit must be a positive integer, got {history_limit!r}")

        accounts = [self._validate_seed(s) for s in seed]
        ids = [a.id for a in accounts]
        if len(set(ids)) != len(ids):
            raise ValueError(f"Duplicate account ids in seed set: {ids}")

        # Seed order for listing, sorted order for lookup
        self._accounts: tuple[_Account, ...] = tuple(accounts)
        self._sorted: tuple[_Account, ...] = tuple(sorted(accounts, key=lambda a: a.id))
        self._ids: tuple[int, ...] = tuple(a.id for a in self._sorted)

        # Append-only, never trimmed
        self._log: list[Transaction] = []
        self._log_lock = threading.Lock()
        self._history_limit = history_limit
        self._time_provider = time_provider or (lambda: datetime.now(timezone.utc))

        logger.debug(f"Ledger store seeded with {len(self._accounts)} accounts")

    @staticmethod
    def _validate_seed(seed: AccountSeed) -> _Account:
        if not _is_int(seed.id) or seed.id < 1:
            raise ValueError(f"Account id must be a positive integer, got {seed.id!r}")
        if not _is_int(seed.limit) or seed.limit < 0:
            raise ValueError(f"Account {seed.id} limit must be a non-negative integer")
        if not _is_int(seed.balance) or seed.balance < -seed.limit:
            raise ValueError(f"Account {seed.id} balance must be an integer >= -limit")
        return _Account(id=seed.id, limit=seed.limit, balance=seed.balance)

    @property
    def history_limit(self) -> int:
        return self._history_limit

    def _lookup(self, account_id: Any) -> _Account:
        if not _is_int(account_id):
            raise AccountNotFound(account_id)
        index = bisect_left(self._ids, account_id)
        if index < len(self._ids) and self._ids[index] == account_id:
            return self._sorted[index]
        raise AccountNotFound(account_id)

    # -----------------------------------------------------------------------
    # Operations
    # -----------------------------------------------------------------------

    def apply_transaction(
        self,
        account_id: int,
        direction: Direction | str,
        amount: int,
        description: str,
    ) -> AccountSnapshot:
        """Atomically apply a credit or debit and record it.

        Args:
            account_id: Target account
            direction: Direction or its wire code ("c" / "d")
            amount: Positive magnitude
            description: Opaque text stored with the transaction

        Returns:
            Snapshot of the account after the transaction

        Raises:
            AccountNotFound: unknown account id
            InvalidDirection: direction is not credit or debit
            InvalidAmount: amount is not a positive integer
            LimitExceeded: debit would leave balance below -limit
        """
        account = self._lookup(account_id)
        resolved = Direction.parse(direction, account_id)
        if not _is_int(amount) or amount <= 0:
            raise InvalidAmount(amount, account_id)

        with account.lock:
            new_balance = account.balance + resolved.sign * amount
            if new_balance < -account.limit:
                raise LimitExceeded(account.id, account.limit, account.balance, amount)

            with self._log_lock:
                transaction = Transaction(
                    account_id=account.id,
                    amount=amount,
                    direction=resolved,
                    description=description,
                    timestamp=self._time_provider(),
                )
                self._log.append(transaction)
                account.history.append(transaction)
                account.balance = new_balance

            snapshot = account.snapshot()

        logger.debug(
            f"Applied {resolved.name.lower()} of {amount} to account {account.id}, "
            f"balance now {snapshot.balance}"
        )
        return snapshot

    def get_account_view(self, account_id: int) -> AccountView:
        """Read an account's balance and recent history at one instant.

        Raises:
            AccountNotFound: unknown account id
        """
        account = self._lookup(account_id)
        with account.lock:
            snapshot = account.snapshot()
            recent = tuple(reversed(account.history[-self._history_limit:]))
            taken_at = self._time_provider()
        return AccountView(account=snapshot, recent_transactions=recent, taken_at=taken_at)

    def list_accounts(self) -> list[AccountSnapshot]:
        """Snapshot every account, in seed order."""
        snapshots = []
        for account in self._accounts:
            with account.lock:
                snapshots.append(account.snapshot())
        return snapshots

    # -----------------------------------------------------------------------
    # Introspection
    # -----------------------------------------------------------------------

    def account_ids(self) -> Sequence[int]:
        """Account ids in ascending order."""
        return self._ids

    def transaction_count(self) -> int:
        """Length of the global transaction log."""
        with self._log_lock:
            return len(self._log)

    def __len__(self) -> int:
        return len(self._accounts)

    def stats(self) -> dict[str, Any]:
        """Get store statistics.

        Returns:
            Dict with account count, transaction count and history limit
        """
        return {
            "accounts": len(self._accounts),
            "transactions": self.transaction_count(),
            "history_limit": self._history_limit,
        }
