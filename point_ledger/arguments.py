"""
Invocation Arguments Module

Turns the positional string arguments of an invocation into typed argument
objects. All shape and content checks happen here, before the engine touches
the ledger store.
"""

import re
from dataclasses import dataclass
from typing import List, Sequence, Union

from .errors import InvalidArgument
from .records import OperationKind


_AMOUNT_PATTERN = re.compile(r"\+?[0-9]+")

# Positional argument count per mutation kind
_TRANSACTION_ARITY = {
    OperationKind.DEPOSIT: 3,
    OperationKind.WITHDRAW: 3,
    OperationKind.TRANSFER_IN: 4,
    OperationKind.TRANSFER_OUT: 4,
}


def _require_count(args: Sequence[str], expected: int, names: str) -> None:
    if len(args) != expected:
        raise InvalidArgument(
            f"Incorrect number of arguments. Expecting {expected}({names}), got {len(args)}"
        )


def _require_non_empty(value: str, position: str) -> None:
    if not isinstance(value, str) or len(value) == 0:
        raise InvalidArgument(f"{position} argument must be a non-empty string")


def parse_amount(raw: str) -> int:
    """
    Parse an amount argument

    Accepts base-10 digits with an optional leading '+'. Negative values,
    whitespace, underscores and fractional values are rejected, as are
    amounts too long for the interpreter's integer conversion limit.
    """
    if not isinstance(raw, str) or not _AMOUNT_PATTERN.fullmatch(raw):
        raise InvalidArgument(f"2nd argument must be a non-negative numeric string, got {raw!r}")
    try:
        return int(raw)
    except ValueError as e:
        raise InvalidArgument(
            f"2nd argument must be a numeric string: {len(raw)} digits is too long"
        ) from e


@dataclass(frozen=True)
class CreateArgs:
    """Arguments for opening an account"""
    account_id: str
    timestamp: str

    @classmethod
    def parse(cls, args: Sequence[str]) -> 'CreateArgs':
        _require_count(args, 2, "AccID,Timestamp")
        _require_non_empty(args[0], "1st")
        _require_non_empty(args[1], "2nd")
        return cls(account_id=args[0], timestamp=args[1])


@dataclass(frozen=True)
class TransactionArgs:
    """Arguments for a deposit, withdrawal, or one side of a transfer"""
    kind: OperationKind
    account_id: str
    amount: int
    timestamp: str
    counterparty_account_id: str = ""

    @classmethod
    def parse(cls, kind: OperationKind, args: Sequence[str]) -> 'TransactionArgs':
        if kind not in _TRANSACTION_ARITY:
            raise InvalidArgument(f"Operation {kind.value!r} is not a balance transaction")

        if kind.is_transfer:
            _require_count(args, 4, "AccID,Amt,Timestamp,OppAccID")
        else:
            _require_count(args, 3, "AccID,Amt,Timestamp")

        _require_non_empty(args[0], "1st")
        amount = parse_amount(args[1])
        _require_non_empty(args[2], "3rd")

        counterparty = ""
        if kind.is_transfer:
            _require_non_empty(args[3], "4th")
            counterparty = args[3]

        return cls(
            kind=kind,
            account_id=args[0],
            amount=amount,
            timestamp=args[2],
            counterparty_account_id=counterparty
        )


@dataclass(frozen=True)
class QueryArgs:
    """Arguments for reading an account record"""
    account_id: str

    @classmethod
    def parse(cls, args: Sequence[str]) -> 'QueryArgs':
        # An empty id is left to the store lookup, which reports it as not found
        if len(args) != 1:
            raise InvalidArgument(
                "Incorrect number of arguments. Expecting name of the ledger to query"
            )
        return cls(account_id=args[0])


ParsedArgs = Union[CreateArgs, TransactionArgs, QueryArgs]


def parse_arguments(kind: OperationKind, args: List[str]) -> ParsedArgs:
    """Validate the positional arguments for the given operation kind"""
    if kind == OperationKind.OPEN:
        return CreateArgs.parse(args)
    if kind == OperationKind.QUERY:
        return QueryArgs.parse(args)
    return TransactionArgs.parse(kind, args)
