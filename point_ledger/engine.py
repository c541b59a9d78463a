"""
Ledger Engine Module

Applies one decoded invocation at a time to the ledger store. Every mutation
is a full read-modify-write of a single account record, performed inside one
store transaction, so a failing invocation never leaves a partial write.
The engine keeps no state between invocations; everything it needs is read
from the store at call time.
"""

from dataclasses import replace
from typing import Sequence, Union

from .arguments import CreateArgs, TransactionArgs, QueryArgs, parse_arguments
from .errors import (
    LedgerError, InvalidArgument, AlreadyExists, NotFound, InsufficientFunds, CorruptRecord
)
from .logging_config import get_logger, log_action
from .records import OperationKind, AccountLedgerRecord
from .results import InvocationResult
from .store import LedgerStore


class LedgerEngine:
    """
    Routes invocations to the account handlers and enforces the balance rules
    """

    def __init__(self, store: LedgerStore):
        self.store = store
        self.logger = get_logger("point_ledger.engine")

    def init(self) -> InvocationResult:
        """Deployment hook; the ledger needs no initial state"""
        return InvocationResult.success()

    def dispatch(self, kind: str, args: Sequence[str]) -> InvocationResult:
        """
        Apply one invocation and report its outcome

        Args:
            kind: Operation code ("0" create, "1" deposit, "2" transfer credit,
                "3" transfer debit, "4" withdraw, "Q" query)
            args: Positional string arguments for the operation

        Returns:
            InvocationResult carrying the record bytes for a query, no payload
            for a successful mutation, or the error code and message
        """
        self.logger.debug(f"invoke is running {kind}")

        try:
            operation = OperationKind.parse(kind)
            parsed = parse_arguments(operation, list(args))

            if operation == OperationKind.OPEN:
                self.create_account(parsed)
                return InvocationResult.success()

            if operation == OperationKind.QUERY:
                return InvocationResult.success(self.read_account(parsed))

            self.apply_transaction(parsed)
            return InvocationResult.success()

        except CorruptRecord as e:
            log_action(
                self.logger, "critical", f"Corrupt ledger record: {e.message}",
                operation=kind, account_id=e.account_id, exc_info=True
            )
            return InvocationResult.failure(e)

        except LedgerError as e:
            log_action(
                self.logger, "warning", f"Invocation failed: {e.message}",
                operation=kind, extra={"error": e.code}
            )
            return InvocationResult.failure(e)

    def create_account(self, args: CreateArgs) -> AccountLedgerRecord:
        """
        Open a new account with a zero balance

        Raises:
            AlreadyExists: If a record is already stored under the account id
            StoreUnavailable: If the store fails
        """
        with self.store.atomic():
            if self.store.get(args.account_id) is not None:
                raise AlreadyExists(args.account_id)

            record = AccountLedgerRecord.open(args.account_id, args.timestamp)
            self.store.put(args.account_id, record.to_bytes())

        log_action(
            self.logger, "info", f"Ledger created: {args.account_id}",
            operation=OperationKind.OPEN.value, account_id=args.account_id
        )
        return record

    def apply_transaction(self, args: TransactionArgs) -> AccountLedgerRecord:
        """
        Apply a deposit, withdrawal, or one side of a transfer

        Returns:
            The record as written back to the store

        Raises:
            NotFound: If the account has no record
            InsufficientFunds: If a debit exceeds the current balance
            InvalidArgument: If the resulting record cannot be encoded
            CorruptRecord: If the stored record cannot be decoded
            StoreUnavailable: If the store fails
        """
        with self.store.atomic():
            record = self._load_record(args.account_id)
            before = record.balance

            if args.kind.is_debit:
                if before < args.amount:
                    raise InsufficientFunds(args.account_id, before, args.amount)
                after = before - args.amount
            else:
                after = before + args.amount

            updated = replace(
                record,
                last_operation=args.kind,
                last_amount=args.amount,
                timestamp=args.timestamp,
                counterparty_account_id=args.counterparty_account_id,
                balance=after
            )
            try:
                encoded = updated.to_bytes()
            except ValueError as e:
                raise InvalidArgument(
                    f"{args.kind.name.lower()} on {args.account_id} would leave "
                    "a balance too large to store"
                ) from e
            self.store.put(args.account_id, encoded)

        log_action(
            self.logger, "info", f"Ledger transaction applied: {args.kind.name.lower()}",
            operation=args.kind.value, account_id=args.account_id,
            extra={
                "amount": args.amount,
                "timestamp": args.timestamp,
                "counterparty_account_id": args.counterparty_account_id,
                "balance_before": before,
                "balance_after": after,
            }
        )
        return updated

    def read_account(self, args: QueryArgs) -> bytes:
        """
        Return the stored record bytes unchanged

        Raises:
            NotFound: If the account has no record
            StoreUnavailable: If the store fails
        """
        raw = self.store.get(args.account_id)
        if raw is None:
            raise NotFound(args.account_id)
        return raw

    def _load_record(self, account_id: str) -> AccountLedgerRecord:
        raw = self.store.get(account_id)
        if raw is None:
            raise NotFound(account_id)

        try:
            record = AccountLedgerRecord.from_bytes(raw)
        except CorruptRecord as e:
            e.account_id = account_id
            raise

        # The key and the stored account id must never diverge
        if record.account_id != account_id:
            raise CorruptRecord(
                f"Record stored under {account_id} names account {record.account_id}",
                account_id
            )
        return record

    # Typed invocation surface

    def create(self, account_id: str, timestamp: str) -> InvocationResult:
        return self.dispatch(OperationKind.OPEN.value, [account_id, timestamp])

    def deposit(self, account_id: str, amount: Union[str, int], timestamp: str) -> InvocationResult:
        return self.dispatch(OperationKind.DEPOSIT.value, [account_id, str(amount), timestamp])

    def withdraw(self, account_id: str, amount: Union[str, int], timestamp: str) -> InvocationResult:
        return self.dispatch(OperationKind.WITHDRAW.value, [account_id, str(amount), timestamp])

    def transfer_credit(self, account_id: str, amount: Union[str, int], timestamp: str,
                        counterparty_account_id: str) -> InvocationResult:
        return self.dispatch(
            OperationKind.TRANSFER_IN.value,
            [account_id, str(amount), timestamp, counterparty_account_id]
        )

    def transfer_debit(self, account_id: str, amount: Union[str, int], timestamp: str,
                       counterparty_account_id: str) -> InvocationResult:
        return self.dispatch(
            OperationKind.TRANSFER_OUT.value,
            [account_id, str(amount), timestamp, counterparty_account_id]
        )

    def query(self, account_id: str) -> InvocationResult:
        return self.dispatch(OperationKind.QUERY.value, [account_id])

    def get_balance(self, account_id: str) -> int:
        """
        Decode the current balance of an account

        Raises:
            NotFound, CorruptRecord, StoreUnavailable
        """
        raw = self.read_account(QueryArgs(account_id))
        return AccountLedgerRecord.from_bytes(raw).balance
