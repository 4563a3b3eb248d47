"""Domain services: wallet transfers, balances and transaction history."""

from __future__ import annotations

import logging
import sqlite3
from decimal import Decimal

from walletledger.addresses import generate_random_address
from walletledger.dto import (
    BalanceRequest,
    BalanceResponse,
    BalanceUpdateRequest,
    TransactionRequest,
    TransactionResponse,
    WalletRequest,
)
from walletledger.errors import (
    GenerateError,
    GetError,
    InsertError,
    InvalidInputError,
    StorageError,
    UpdateError,
)
from walletledger.storage import Repository, TransactionRepository, WalletRepository

logger = logging.getLogger(__name__)

INITIAL_WALLET_COUNT = 10
INITIAL_WALLET_BALANCE = Decimal(100)


class TransferService:
    """Moves funds between wallets and reports balances and history."""

    def __init__(
        self,
        connection: sqlite3.Connection,
        wallet_repository: WalletRepository,
        transaction_repository: TransactionRepository,
    ) -> None:
        self._connection = connection
        self._wallet_repository = wallet_repository
        self._transaction_repository = transaction_repository

    def send(self, request: TransactionRequest) -> None:
        """Transfer ``request.amount`` from one wallet to another atomically.

        Raises InvalidInputError for bad input or insufficient funds, and
        GetError, UpdateError or InsertError when storage fails.
        """
        if not request.from_address or not request.to_address or not request.amount > 0:
            raise InvalidInputError("invalid input fields")
        if request.from_address == request.to_address:
            raise InvalidInputError("cannot transfer to same wallet")

        self._connection.execute("BEGIN")
        try:
            self._transfer(request)
        except BaseException:
            self._rollback()
            raise

        try:
            self._connection.execute("COMMIT")
        except sqlite3.Error as exc:
            self._rollback()
            raise InsertError("failed to commit transaction", cause=exc) from exc

    def _transfer(self, request: TransactionRequest) -> None:
        wallets = WalletRepository(self._connection)
        transactions = TransactionRepository(self._connection)

        sender = self._balance_of(request.from_address)
        if sender.amount < request.amount:
            raise InvalidInputError("insufficient funds")
        self._set_balance(wallets, request.from_address, sender.amount - request.amount)

        recipient = self._balance_of(request.to_address)
        self._set_balance(wallets, request.to_address, recipient.amount + request.amount)

        try:
            transactions.insert(request)
        except StorageError as exc:
            raise InsertError("failed to insert transaction", cause=exc) from exc

    def _balance_of(self, address: str) -> BalanceResponse:
        try:
            return self._wallet_repository.get_balance(BalanceRequest(address=address))
        except StorageError as exc:
            raise GetError("failed to get balance", cause=exc) from exc

    @staticmethod
    def _set_balance(wallets: WalletRepository, address: str, amount: Decimal) -> None:
        try:
            wallets.update_balance(BalanceUpdateRequest(address=address, amount=amount))
        except StorageError as exc:
            raise UpdateError("failed to update balance", cause=exc) from exc

    def _rollback(self) -> None:
        if not self._connection.in_transaction:
            return
        try:
            self._connection.execute("ROLLBACK")
        except sqlite3.Error as exc:
            logger.error("Rollback error: %s", exc)

    def generate_wallets(self) -> None:
        """Create ten wallets holding 100 each, unless any wallet already exists."""
        try:
            count = self._wallet_repository.get_count()
        except StorageError as exc:
            raise GetError(cause=exc) from exc
        if count > 0:
            return

        for _ in range(INITIAL_WALLET_COUNT):
            try:
                address = generate_random_address()
            except OSError as exc:
                raise GenerateError("failed to generate wallet address", cause=exc) from exc
            try:
                self._wallet_repository.insert(
                    WalletRequest(address=address, balance=INITIAL_WALLET_BALANCE)
                )
            except StorageError as exc:
                raise InsertError(cause=exc) from exc

    def get_last_n(self, n: int) -> list[TransactionResponse]:
        """Return up to ``n`` most recent transactions, newest first."""
        return self._transaction_repository.get_last_n(n)

    def get_balance(self, request: BalanceRequest) -> BalanceResponse:
        """Return the balance of the wallet named in ``request``."""
        return self._wallet_repository.get_balance(request)


class Service:
    """The application's services, built over one database connection."""

    def __init__(self, connection: sqlite3.Connection) -> None:
        repository = Repository(connection)
        self.transfer_service = TransferService(
            connection,
            repository.wallet_repository,
            repository.transaction_repository,
        )