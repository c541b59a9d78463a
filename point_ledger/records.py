"""
Ledger Record Module

Defines the closed set of operation kinds and the per-account ledger record
persisted in the ledger store. Records are serialized as compact JSON using
the same keys the ledger has always written, so previously stored state
stays readable.
"""

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict

from .errors import CorruptRecord, UnknownOperation


class OperationKind(Enum):
    """Operation codes accepted by the ledger"""
    OPEN = "0"          # Account creation
    DEPOSIT = "1"       # Deposit
    TRANSFER_IN = "2"   # Transfer, receiving side
    TRANSFER_OUT = "3"  # Transfer, sending side
    WITHDRAW = "4"      # Withdrawal
    QUERY = "Q"         # Read-only query

    @classmethod
    def parse(cls, code: str) -> 'OperationKind':
        """Map an operation code to its kind, rejecting anything outside the set"""
        try:
            return cls(code)
        except ValueError:
            raise UnknownOperation(code) from None

    @property
    def is_credit(self) -> bool:
        return self in (OperationKind.DEPOSIT, OperationKind.TRANSFER_IN)

    @property
    def is_debit(self) -> bool:
        return self in (OperationKind.WITHDRAW, OperationKind.TRANSFER_OUT)

    @property
    def is_transfer(self) -> bool:
        return self in (OperationKind.TRANSFER_IN, OperationKind.TRANSFER_OUT)


# Wire keys in serialization order
FIELD_OPERATION = "trType"
FIELD_ACCOUNT_ID = "accID"
FIELD_AMOUNT = "amt"
FIELD_TIMESTAMP = "timestamp"
FIELD_COUNTERPARTY = "oppAccID"
FIELD_BALANCE = "balance"


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


@dataclass
class AccountLedgerRecord:
    """
    Current state of one account.

    The record is keyed in the store by ``account_id`` and is rewritten in
    full on every successful mutation.
    """
    last_operation: OperationKind
    account_id: str
    last_amount: int
    timestamp: str
    counterparty_account_id: str
    balance: int

    def __post_init__(self):
        if not self.account_id:
            raise ValueError("Account id must be a non-empty string")

        if not self.timestamp:
            raise ValueError("Timestamp must be a non-empty string")

        if self.last_operation == OperationKind.QUERY:
            raise ValueError("A query is never recorded as the last operation")

        if self.last_amount < 0:
            raise ValueError("Amount cannot be negative")

        if self.balance < 0:
            raise ValueError("Balance cannot be negative")

    @classmethod
    def open(cls, account_id: str, timestamp: str) -> 'AccountLedgerRecord':
        """Build the initial record for a newly created account"""
        return cls(
            last_operation=OperationKind.OPEN,
            account_id=account_id,
            last_amount=0,
            timestamp=timestamp,
            counterparty_account_id="",
            balance=0
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the wire dictionary"""
        return {
            FIELD_OPERATION: self.last_operation.value,
            FIELD_ACCOUNT_ID: self.account_id,
            FIELD_AMOUNT: self.last_amount,
            FIELD_TIMESTAMP: self.timestamp,
            FIELD_COUNTERPARTY: self.counterparty_account_id,
            FIELD_BALANCE: self.balance,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'AccountLedgerRecord':
        """
        Create a record from its wire dictionary

        Raises:
            CorruptRecord: If a key is missing or holds a value of the wrong type
        """
        account_id = data.get(FIELD_ACCOUNT_ID)
        if not isinstance(account_id, str):
            account_id = None

        for key in (FIELD_OPERATION, FIELD_ACCOUNT_ID, FIELD_TIMESTAMP, FIELD_COUNTERPARTY):
            if not isinstance(data.get(key), str):
                raise CorruptRecord(f"Field {key!r} missing or not a string", account_id)

        for key in (FIELD_AMOUNT, FIELD_BALANCE):
            if not _is_int(data.get(key)):
                raise CorruptRecord(f"Field {key!r} missing or not an integer", account_id)

        try:
            operation = OperationKind(data[FIELD_OPERATION])
            return cls(
                last_operation=operation,
                account_id=data[FIELD_ACCOUNT_ID],
                last_amount=data[FIELD_AMOUNT],
                timestamp=data[FIELD_TIMESTAMP],
                counterparty_account_id=data[FIELD_COUNTERPARTY],
                balance=data[FIELD_BALANCE]
            )
        except ValueError as e:
            raise CorruptRecord(f"Invalid ledger record: {e}", account_id) from e

    def to_bytes(self) -> bytes:
        """
        Serialize for storage

        Raises:
            ValueError: If an integer field is too long for the interpreter to render
        """
        return json.dumps(self.to_dict(), separators=(",", ":")).encode("utf-8")

    @classmethod
    def from_bytes(cls, raw: bytes) -> 'AccountLedgerRecord':
        """
        Deserialize a stored record

        Raises:
            CorruptRecord: If the bytes are not a JSON object describing a valid record
        """
        try:
            data = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, ValueError) as e:
            raise CorruptRecord(f"Stored ledger is not valid JSON: {e}") from e

        if not isinstance(data, dict):
            raise CorruptRecord("Stored ledger is not a JSON object")

        return cls.from_dict(data)
