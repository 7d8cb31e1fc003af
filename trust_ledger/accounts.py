"""
Account View Module

Read-only projections of the ledger for one account holder: identity,
balance, transaction history and letters. Nothing here is cached; every
call is recomputed from the store so a view can never be stale.
"""

from typing import List

from .errors import AccountNotFound, CounterpartyNotFound
from .models import Account, BookEntry, Direction, Letter, Transaction, TransactionView
from .storage import LedgerStore


class AccountView:
    """
    Builds account projections from the ledger store
    """

    def __init__(self, store: LedgerStore):
        self.store = store

    def load(self, account_id: int) -> Account:
        """
        Load an account with its derived balance, history and letters

        Args:
            account_id: Account to load

        Returns:
            Account with balance, transactions and letters populated

        Raises:
            AccountNotFound: If no account has that id
            CounterpartyNotFound: If a transaction or letter names a missing account
        """
        row = self.store.load_account(account_id)
        if not row:
            raise AccountNotFound(f"Account {account_id} not found")

        return Account(
            id=row['id'],
            holder=row['holder'],
            registration_date=row['registration_date'],
            balance=self.balance(account_id),
            transactions=self.transactions(account_id),
            letters=self.letters(account_id)
        )

    def exists(self, account_id: int) -> bool:
        return self.store.load_account(account_id) is not None

    def holder(self, account_id: int) -> str:
        """Get the display name of an account"""
        row = self.store.load_account(account_id)
        if not row:
            raise AccountNotFound(f"Account {account_id} not found")
        return row['holder']

    def balance(self, account_id: int) -> int:
        """
        Settled credits minus settled debits.
        Pending and revoked transactions do not count.
        """
        credits = self.store.sum_credits(account_id)
        debits = self.store.sum_debits(account_id)
        return (credits or 0) - (debits or 0)

    def transactions(self, account_id: int) -> List[TransactionView]:
        """
        Live transactions touching the account, newest first, as seen by it

        The stored amount is always positive; it is shown negated when the
        viewing account is the debitor.
        """
        views = []
        for data in self.store.live_transactions_for(account_id):
            transaction = Transaction.from_dict(data)
            if transaction.creditor_id == account_id:
                direction = Direction.INCOMING
                counterparty_id = transaction.debitor_id
                amount = transaction.amount
            else:
                direction = Direction.OUTGOING
                counterparty_id = transaction.creditor_id
                amount = -transaction.amount

            views.append(TransactionView(
                id=transaction.id,
                concept=transaction.concept,
                date_created=transaction.date_created,
                date_due=transaction.date_due,
                payed=transaction.payed,
                amount=amount,
                direction=direction,
                counterparty_id=counterparty_id,
                counterparty=self._counterparty_label(direction, counterparty_id)
            ))
        return views

    def letters(self, account_id: int) -> List[Letter]:
        """Letters sent or received by the account plus public letters, oldest first"""
        letters = []
        for data in self.store.letters_for(account_id):
            letter = Letter.from_dict(data)
            if letter.sender_id == account_id:
                letter.receiver_name = self._counterparty_name(letter.receiver_id)
            else:
                letter.sender_name = self._counterparty_name(letter.sender_id)
            letters.append(letter)
        return letters

    def book(self) -> List[BookEntry]:
        """Public roster of holders; synthetic accounts are left out"""
        return [
            BookEntry(id=row['id'], holder=row['holder'])
            for row in self.store.load_accounts()
            if row['id'] >= 0
        ]

    def _counterparty_name(self, account_id: int) -> str:
        row = self.store.load_account(account_id)
        if not row:
            raise CounterpartyNotFound(f"Counterparty account {account_id} not found")
        return row['holder']

    def _counterparty_label(self, direction: Direction, account_id: int) -> str:
        name = self._counterparty_name(account_id)
        if account_id < 0:
            return f"{direction.value} {name}"
        return f"{direction.value} {name} [{account_id:04d}]"
