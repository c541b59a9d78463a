"""
Point Ledger

A deterministic account-ledger state machine. Each invocation reads an
account record from the ledger store, validates the operation, and writes
the full updated record back. Balances never go negative.
"""

from .errors import (
    LedgerError, InvalidArgument, AlreadyExists, NotFound,
    InsufficientFunds, CorruptRecord, StoreUnavailable, UnknownOperation
)
from .records import OperationKind, AccountLedgerRecord
from .results import InvocationResult
from .store import LedgerStore, InMemoryLedgerStore, SQLiteLedgerStore, create_store
from .engine import LedgerEngine

__version__ = "1.0.0"
