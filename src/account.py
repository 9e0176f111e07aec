from decimal import Decimal
from typing import Dict

from errors import (
    AccountLocked,
    AlreadyDisputed,
    BalanceInvariantError,
    InsufficientFunds,
    InvalidDisputeTarget,
    NotUnderDispute,
    TransactionNotFound,
)
from models import Transaction, TransactionType

BALANCE_TOLERANCE = Decimal("0.0001")


class Account:
    """
    Balance state and deposit/withdrawal history for a single client.
    Every check in a handler runs before any mutation, so a rejected
    transaction leaves the account exactly as it was.
    """

    def __init__(self, client_id: int):
        self.client_id = client_id
        self.available = Decimal("0")
        self.held = Decimal("0")
        self.total = Decimal("0")
        self.locked = False
        # Only deposits and withdrawals; disputes and friends reference these by id.
        self.transactions: Dict[int, Transaction] = {}

    def execute(self, transaction: Transaction) -> None:
        """
        Apply a transaction to this account.

        Raises:
            AccountLocked: account was frozen by an earlier chargeback
            InsufficientFunds: withdrawal or dispute would drive available negative
            TransactionNotFound: referenced transaction is not in this account's history
            AlreadyDisputed: referenced transaction is already under dispute
            NotUnderDispute: resolve/chargeback of a transaction that isn't disputed
            InvalidDisputeTarget: referenced transaction is a withdrawal
            BalanceInvariantError: the ledger itself is broken
        """
        if self.locked:
            raise AccountLocked(f"account {self.client_id} locked")

        match transaction.transaction_type:
            case TransactionType.DEPOSIT:
                self._handle_deposit(transaction)
            case TransactionType.WITHDRAWAL:
                self._handle_withdrawal(transaction)
            case TransactionType.DISPUTE:
                self._handle_dispute(transaction)
            case TransactionType.RESOLVE:
                self._handle_resolve(transaction)
            case TransactionType.CHARGEBACK:
                self._handle_chargeback(transaction)

        self._check_consistency()

    def _handle_deposit(self, transaction: Transaction) -> None:
        amount = self._require_amount(transaction)
        self.available += amount
        self.total += amount
        self.transactions[transaction.transaction_id] = transaction

    def _handle_withdrawal(self, transaction: Transaction) -> None:
        amount = self._require_amount(transaction)
        if self.available < amount:
            raise InsufficientFunds("withdraw error: insufficient funds")

        self.available -= amount
        self.total -= amount
        self.transactions[transaction.transaction_id] = transaction

    def _handle_dispute(self, transaction: Transaction) -> None:
        original = self._find_referenced("dispute", transaction)

        if original.under_dispute:
            raise AlreadyDisputed(f"dispute error: transaction {original.transaction_id} is already under dispute")

        if original.transaction_type == TransactionType.WITHDRAWAL:
            raise InvalidDisputeTarget("dispute error: withdrawal is not a valid target")

        if self.available < original.amount:
            raise InsufficientFunds("dispute error: insufficient funds")

        self.available -= original.amount
        self.held += original.amount
        original.under_dispute = True

    def _handle_resolve(self, transaction: Transaction) -> None:
        original = self._find_referenced("resolve", transaction)

        if not original.under_dispute:
            raise NotUnderDispute(f"resolve error: transaction {original.transaction_id} is not under dispute")

        # Unreachable while withdrawals can't be disputed
        if original.transaction_type == TransactionType.WITHDRAWAL:
            raise InvalidDisputeTarget("resolve error: withdrawal is not a valid target")

        self.available += original.amount
        self.held -= original.amount
        original.under_dispute = False

    def _handle_chargeback(self, transaction: Transaction) -> None:
        original = self._find_referenced("chargeback", transaction)

        if not original.under_dispute:
            raise NotUnderDispute(f"chargeback error: transaction {original.transaction_id} is not under dispute")

        # The dispute flag stays set: the account is frozen from here on.
        self.held -= original.amount
        self.total -= original.amount
        self.locked = True

    def _find_referenced(self, action: str, transaction: Transaction) -> Transaction:
        original = self.transactions.get(transaction.transaction_id)
        if original is None:
            raise TransactionNotFound(
                f"{action} error: transaction {transaction.transaction_id} not found for client {transaction.client_id}"
            )
        return original

    @staticmethod
    def _require_amount(transaction: Transaction) -> Decimal:
        if transaction.amount is None:
            raise ValueError(f"malformed transaction: {transaction} has no amount")
        return transaction.amount

    def _check_consistency(self) -> None:
        if abs(self.total - (self.available + self.held)) >= BALANCE_TOLERANCE:
            raise BalanceInvariantError(
                f"client {self.client_id}: total {self.total} != available {self.available} + held {self.held}"
            )

    def __repr__(self) -> str:
        return (
            f"Account(client={self.client_id}, available={self.available}, "
            f"held={self.held}, total={self.total}, locked={self.locked})"
        )
