import sys
import os
from decimal import Decimal

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from errors import TransactionNotFound
from ledger_registry import LedgerRegistry
from models import Transaction, TransactionType


class TestLedgerRegistry:
    def setup_method(self):
        self.registry = LedgerRegistry()

    def test_get_or_create_account(self):
        account = self.registry.get_or_create_account(7)
        assert account.client_id == 7
        assert self.registry.get_or_create_account(7) is account
        assert len(self.registry) == 1

    def test_get_account_unknown_client(self):
        assert self.registry.get_account(1) is None
        assert len(self.registry) == 0

    def test_execute_creates_account_lazily(self):
        self.registry.execute(Transaction(TransactionType.DEPOSIT, client_id=3, transaction_id=1, amount=Decimal("10")))

        account = self.registry.get_account(3)
        assert account is not None
        assert account.available == Decimal("10")

    def test_execute_propagates_ledger_errors(self):
        with pytest.raises(TransactionNotFound):
            self.registry.execute(Transaction(TransactionType.DISPUTE, client_id=2, transaction_id=1))
        # The account was still created, with nothing in it
        assert self.registry.get_account(2).total == Decimal("0")

    def test_history_is_per_client(self):
        self.registry.execute(Transaction(TransactionType.DEPOSIT, client_id=1, transaction_id=1, amount=Decimal("100")))

        with pytest.raises(TransactionNotFound):
            self.registry.execute(Transaction(TransactionType.DISPUTE, client_id=2, transaction_id=1))
        assert self.registry.get_account(1).held == Decimal("0")

    def test_get_all_accounts_ordered_by_client_id(self):
        for client_id in [5, 1, 3, 2]:
            self.registry.get_or_create_account(client_id)

        assert [account.client_id for account in self.registry.get_all_accounts()] == [1, 2, 3, 5]
