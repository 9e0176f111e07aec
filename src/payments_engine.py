import logging
from typing import Iterable, List, Optional, TextIO

from account import Account
from errors import LedgerError
from ledger_registry import LedgerRegistry
from models import ProcessingStats, Transaction
from records import open_transactions, read_transactions

logger = logging.getLogger(__name__)


class PaymentsEngine:
    """
    Applies transactions to client accounts in a single sequential pass.
    Each transaction is fully applied before the next one is read, so no
    locking is needed. Rejected transactions are logged and skipped.
    """

    def __init__(self, registry: Optional[LedgerRegistry] = None):
        self._registry = registry if registry is not None else LedgerRegistry()
        self._stats = ProcessingStats()

    @property
    def stats(self) -> ProcessingStats:
        return self._stats

    def process_file(self, filepath: str) -> List[Account]:
        """Process CSV file and return final account states ordered by client id."""
        with open_transactions(filepath) as f:
            return self.process_stream(f)

    def process_stream(self, stream: TextIO) -> List[Account]:
        logger.info("Starting processing")

        self.process_transactions(read_transactions(stream, on_skip=self._stats.record_skipped))

        logger.info(
            f"Processed: {self._stats.processed}, "
            f"Failed: {self._stats.failed}, "
            f"Skipped: {self._stats.skipped}"
        )
        return self._registry.get_all_accounts()

    def process_transactions(self, transactions: Iterable[Transaction]) -> None:
        for transaction in transactions:
            self.process_transaction(transaction)

    def process_transaction(self, transaction: Transaction) -> bool:
        """
        Apply one transaction. Returns False if the ledger rejected it.
        BalanceInvariantError is deliberately not handled here.
        """
        if transaction.requires_amount() and transaction.amount is None:
            logger.warning(
                f"transaction {transaction.transaction_id} requires an amount but none was provided"
            )
            self._stats.record_skipped()
            return False

        try:
            self._registry.execute(transaction)
        except LedgerError as e:
            self._stats.record_failure()
            if transaction.requires_amount():
                logger.warning(f"transaction {transaction.transaction_id} failed: {e}")
            else:
                logger.warning(f"transaction failed: {e}")
            return False

        self._stats.record_success()
        return True
