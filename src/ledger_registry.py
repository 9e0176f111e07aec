from typing import Dict, List, Optional

from account import Account
from models import Transaction


class LedgerRegistry:
    """
    Maps client ids to their accounts and routes transactions to them.
    Accounts are created on first sight of a client id and never removed.
    """

    def __init__(self):
        self._accounts: Dict[int, Account] = {}

    def get_or_create_account(self, client_id: int) -> Account:
        """Get existing account or create new one."""
        if client_id not in self._accounts:
            self._accounts[client_id] = Account(client_id)
        return self._accounts[client_id]

    def get_account(self, client_id: int) -> Optional[Account]:
        return self._accounts.get(client_id)

    def execute(self, transaction: Transaction) -> None:
        """Route a transaction to its client's account. LedgerError propagates to the caller."""
        self.get_or_create_account(transaction.client_id).execute(transaction)

    def get_all_accounts(self) -> List[Account]:
        """Return all accounts ordered by client id (for final output)."""
        return [self._accounts[client_id] for client_id in sorted(self._accounts)]

    def __len__(self) -> int:
        return len(self._accounts)
