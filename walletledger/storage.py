"""SQLite persistence for wallets and transactions."""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime, timezone
from decimal import Decimal

from walletledger.dto import (
    BalanceRequest,
    BalanceResponse,
    BalanceUpdateRequest,
    TransactionRequest,
    TransactionResponse,
    WalletRequest,
    parse_amount,
)
from walletledger.errors import (
    NotFoundError,
    StorageGetError,
    StorageInsertError,
    StorageUnmarshalError,
    StorageUpdateError,
)

logger = logging.getLogger(__name__)

DEFAULT_DATABASE_PATH = "./database.db"

_MIGRATIONS = (
    """
    CREATE TABLE IF NOT EXISTS wallets (
        address TEXT PRIMARY KEY NOT NULL,
        balance TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS transactions (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        from_address TEXT NOT NULL,
        to_address TEXT NOT NULL,
        amount TEXT NOT NULL,
        created_at TEXT NOT NULL
    )
    """,
)

_WALLETS_INSERT_SQL = "INSERT INTO wallets (address, balance) VALUES (?, ?)"
_WALLETS_GET_BALANCE_SQL = "SELECT balance FROM wallets WHERE address = ?"
_WALLETS_GET_COUNT_SQL = "SELECT COUNT(*) FROM wallets"
_WALLETS_UPDATE_SQL = "UPDATE wallets SET balance = ? WHERE address = ?"

_TRANSACTIONS_INSERT_SQL = (
    "INSERT INTO transactions (from_address, to_address, amount, created_at) "
    "VALUES (?, ?, ?, ?)"
)
_TRANSACTIONS_GET_LAST_N_SQL = (
    "SELECT from_address, to_address, amount, created_at FROM transactions "
    "ORDER BY created_at DESC, id DESC LIMIT ?"
)


def connect(path: str = DEFAULT_DATABASE_PATH) -> sqlite3.Connection:
    """Open the SQLite database at ``path`` in autocommit mode.

    Transactions are started explicitly with ``BEGIN`` by callers that need them.
    """
    try:
        return sqlite3.connect(path, isolation_level=None, check_same_thread=False)
    except sqlite3.Error:
        logger.error("Error opening database %s", path, exc_info=True)
        raise


def apply_migrations(connection: sqlite3.Connection) -> None:
    """Create the wallet and transaction tables if they do not exist yet."""
    for statement in _MIGRATIONS:
        connection.execute(statement)
    logger.info("Migrations applied successfully")


def _to_text(amount: Decimal) -> str:
    return format(amount, "f")


class WalletRepository:
    """Reads and writes the wallets table."""

    def __init__(self, connection: sqlite3.Connection) -> None:
        self._connection = connection

    def insert(self, request: WalletRequest) -> None:
        """Create a wallet with its opening balance."""
        try:
            self._connection.execute(
                _WALLETS_INSERT_SQL, (request.address, _to_text(request.balance))
            )
        except sqlite3.Error as exc:
            raise StorageInsertError(f"failed to create wallet: {exc}", cause=exc) from exc

    def get_balance(self, request: BalanceRequest) -> BalanceResponse:
        """Return the balance of the wallet at ``request.address``."""
        try:
            row = self._connection.execute(
                _WALLETS_GET_BALANCE_SQL, (request.address,)
            ).fetchone()
            if row is None:
                raise NotFoundError("wallet not found")
            return BalanceResponse(amount=parse_amount(row[0]))
        except (sqlite3.Error, ValueError) as exc:
            raise StorageGetError("failed to get balance", cause=exc) from exc

    def get_count(self) -> int:
        """Return the number of stored wallets."""
        try:
            row = self._connection.execute(_WALLETS_GET_COUNT_SQL).fetchone()
            return int(row[0])
        except (sqlite3.Error, TypeError, ValueError) as exc:
            raise StorageGetError("failed to get count of wallets", cause=exc) from exc

    def update_balance(self, request: BalanceUpdateRequest) -> None:
        """Set the balance of an existing wallet."""
        try:
            cursor = self._connection.execute(
                _WALLETS_UPDATE_SQL, (_to_text(request.amount), request.address)
            )
        except sqlite3.Error as exc:
            raise StorageUpdateError("failed to update balance", cause=exc) from exc
        if cursor.rowcount == 0:
            raise NotFoundError("wallet not found")


class TransactionRepository:
    """Reads and writes the transactions table."""

    def __init__(self, connection: sqlite3.Connection) -> None:
        self._connection = connection

    def get_last_n(self, n: int) -> list[TransactionResponse]:
        """Return up to ``n`` transactions, newest first.

        Raises NotFoundError when there are none.
        """
        try:
            rows = self._connection.execute(_TRANSACTIONS_GET_LAST_N_SQL, (n,)).fetchall()
        except sqlite3.Error as exc:
            raise StorageGetError(f"Failed to get last {n} transactions", cause=exc) from exc

        try:
            transactions = [
                TransactionResponse(
                    from_address=str(from_address),
                    to_address=str(to_address),
                    amount=parse_amount(amount),
                    created_at=datetime.fromisoformat(created_at),
                )
                for from_address, to_address, amount, created_at in rows
            ]
        except (TypeError, ValueError) as exc:
            raise StorageUnmarshalError(
                f"Failed to unmarshall last {n} transactions", cause=exc
            ) from exc

        if not transactions:
            raise NotFoundError("transactions not found")
        return transactions

    def insert(self, request: TransactionRequest) -> None:
        """Record a completed transfer, stamped with the current UTC time."""
        created_at = datetime.now(timezone.utc).isoformat()
        try:
            self._connection.execute(
                _TRANSACTIONS_INSERT_SQL,
                (
                    request.from_address,
                    request.to_address,
                    _to_text(request.amount),
                    created_at,
                ),
            )
        except sqlite3.Error as exc:
            raise StorageInsertError(
                f"failed to insert transaction: {exc}", cause=exc
            ) from exc


class Repository:
    """Wallet and transaction repositories sharing one connection."""

    def __init__(self, connection: sqlite3.Connection) -> None:
        self.wallet_repository = WalletRepository(connection)
        self.transaction_repository = TransactionRepository(connection)