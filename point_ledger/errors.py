"""
Ledger Errors

Typed failures raised by the ledger engine and store backends. Every error
carries a stable ``code`` so the invocation result can report it.
"""

from typing import Optional


class LedgerError(Exception):
    """Base class for all ledger failures"""

    code = "LEDGER_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidArgument(LedgerError):
    """Wrong argument count, empty required string, or non-numeric amount"""

    code = "INVALID_ARGUMENT"


class AlreadyExists(LedgerError):
    """Raised when creating an account id that already has a record"""

    code = "ALREADY_EXISTS"

    def __init__(self, account_id: str):
        super().__init__(f"This ledger already exists: {account_id}")
        self.account_id = account_id


class NotFound(LedgerError):
    """Raised when an operation references an account with no record"""

    code = "NOT_FOUND"

    def __init__(self, account_id: str):
        super().__init__(f"Ledger does not exist: {account_id}")
        self.account_id = account_id


class InsufficientFunds(LedgerError):
    """Raised when a debit would drive the balance below zero"""

    code = "INSUFFICIENT_FUNDS"

    def __init__(self, account_id: str, balance: int, amount: int):
        super().__init__(
            f"There is not enough balance on {account_id}: "
            f"balance {balance}, requested {amount}"
        )
        self.account_id = account_id
        self.balance = balance
        self.amount = amount


class CorruptRecord(LedgerError):
    """Stored bytes could not be decoded into a ledger record"""

    code = "CORRUPT_RECORD"

    def __init__(self, message: str, account_id: Optional[str] = None):
        super().__init__(message)
        self.account_id = account_id


class StoreUnavailable(LedgerError):
    """The ledger store failed a read or a write"""

    code = "STORE_UNAVAILABLE"


class UnknownOperation(LedgerError):
    """Raised when dispatch receives an operation kind outside the closed set"""

    code = "UNKNOWN_OPERATION"

    def __init__(self, kind: str):
        super().__init__(f"Received unknown function invocation: {kind!r}")
        self.kind = kind
