"""
Transfer Engine

Admits new transactions into the ledger. A transfer is checked against the
business rules in a fixed order so the holder always sees the same error
for the same input, then stored as a single transaction row. A transfer due
on the current tick is settled on admission; a later one stays pending
until the clock reaches its due date.
"""

import threading
from contextlib import contextmanager
from typing import Dict

from .accounts import AccountView
from .clock import Clock
from .errors import (
    InsufficientFunds, NegativeAmount, PastDueDate, RecipientNotFound, SelfTransfer
)
from .logging_config import get_logger, log_action
from .models import Transaction
from .storage import LedgerStore


class TransferEngine:
    """
    Validates and admits transfers between accounts

    By default the funds check and the insert are not isolated from other
    transfers debiting the same account, so two concurrent transfers can
    both pass the check. With serialize=True both steps run under a lock
    held per debitor and inside a store transaction.
    """

    def __init__(
        self,
        store: LedgerStore,
        accounts: AccountView,
        clock: Clock,
        serialize: bool = False
    ):
        self.store = store
        self.accounts = accounts
        self.clock = clock
        self.serialize = serialize
        self.logger = get_logger("trust_ledger.transfers")
        self._locks: Dict[int, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def transfer(
        self,
        from_account_id: int,
        to_account_id: int,
        amount: int,
        due: int,
        concept: str = ""
    ) -> Transaction:
        """
        Admit a transfer from one account to another

        Args:
            from_account_id: Paying account (debitor)
            to_account_id: Receiving account (creditor)
            amount: Amount to transfer
            due: Clock tick on which the transfer settles
            concept: Free-text memo

        Returns:
            The stored Transaction

        Raises:
            SelfTransfer: If both accounts are the same
            InsufficientFunds: If amount exceeds the current balance of the payer
            NegativeAmount: If amount is below zero
            PastDueDate: If due is before the current tick
            RecipientNotFound: If the receiving account does not exist
            StoreUnavailable: If the store cannot be read or written
        """
        with self._serialized(from_account_id):
            if from_account_id == to_account_id:
                raise SelfTransfer(f"Account {from_account_id} cannot transfer to itself")

            balance = self.accounts.balance(from_account_id)
            if amount > balance:
                raise InsufficientFunds(
                    f"Insufficient funds: balance {balance}, requested {amount}"
                )

            if amount < 0:
                raise NegativeAmount(f"Cannot transfer a negative amount ({amount})")

            today = self.clock.current()
            if due < today:
                raise PastDueDate(f"Due date {due} is before the current date {today}")

            if not self.accounts.exists(to_account_id):
                raise RecipientNotFound(f"Recipient account {to_account_id} not found")

            data = {
                'creditor_id': to_account_id,
                'debitor_id': from_account_id,
                'amount': amount,
                'concept': concept,
                'date_created': today,
                'date_due': due,
                'payed': due == today,
                'revoked': False,
            }
            data['id'] = self.store.insert_transaction(data)
            transaction = Transaction.from_dict(data)

        log_action(
            self.logger, "info",
            f"Transfer ordered from {from_account_id} to {to_account_id} due on {due} for {amount}",
            user_id=from_account_id, action="transfer",
            resource=f"transaction:{transaction.id}",
            extra={
                "creditor": to_account_id,
                "debitor": from_account_id,
                "amount": amount,
                "date_created": today,
                "date_due": due,
                "payed": transaction.payed
            }
        )

        return transaction

    @contextmanager
    def _serialized(self, account_id: int):
        if not self.serialize:
            yield
            return

        with self._locks_guard:
            lock = self._locks.setdefault(account_id, threading.Lock())
        with lock:
            with self.store.atomic():
                yield
