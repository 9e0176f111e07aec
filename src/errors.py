class LedgerError(Exception):
    """A transaction was rejected. The account is left unchanged."""


class AccountLocked(LedgerError):
    pass


class InsufficientFunds(LedgerError):
    pass


class TransactionNotFound(LedgerError):
    pass


class AlreadyDisputed(LedgerError):
    pass


class NotUnderDispute(LedgerError):
    pass


class InvalidDisputeTarget(LedgerError):
    pass


class MalformedRecordError(ValueError):
    """An input row could not be turned into a Transaction."""


class BalanceInvariantError(RuntimeError):
    """
    total != available + held after a successful transaction.
    Signals a bug in the ledger itself, never bad input. Must not be caught.
    """
