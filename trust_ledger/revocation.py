"""
Revocation Engine

Voids a pending transaction at the request of one of its parties. Only a
transaction that has not been payed and whose due date is still ahead of
the clock can be revoked; everything else is rejected untouched.
"""

from .clock import Clock
from .errors import RevocationNotAllowed, TransactionNotFound
from .logging_config import get_logger, log_action
from .models import Transaction
from .storage import LedgerStore


class RevocationEngine:
    """Applies revocations of pending transactions"""

    def __init__(self, store: LedgerStore, clock: Clock):
        self.store = store
        self.clock = clock
        self.logger = get_logger("trust_ledger.revocation")

    def get_transaction(self, transaction_id: int) -> Transaction:
        """Get a transaction by id, revoked or not"""
        data = self.store.load_transaction(transaction_id)
        if not data:
            raise TransactionNotFound(f"Transaction {transaction_id} not found")
        return Transaction.from_dict(data)

    def can_revoke(self, transaction: Transaction, actor_account_id: int, today: int) -> bool:
        return (
            transaction.involves(actor_account_id)
            and not transaction.payed
            and transaction.date_due > today
        )

    def revoke(self, actor_account_id: int, transaction_id: int) -> Transaction:
        """
        Revoke a pending transaction

        Args:
            actor_account_id: Account asking for the revocation
            transaction_id: Transaction to revoke

        Returns:
            The revoked Transaction

        Raises:
            TransactionNotFound: If the transaction does not exist
            RevocationNotAllowed: If the actor is not a party, the transaction
                is already payed, or its due date has been reached
        """
        transaction = self.get_transaction(transaction_id)
        today = self.clock.current()

        if not self.can_revoke(transaction, actor_account_id, today):
            raise RevocationNotAllowed(
                f"Account {actor_account_id} cannot revoke transaction {transaction_id}"
            )

        self.store.set_revoked(transaction.id)
        transaction.revoked = True

        log_action(
            self.logger, "info",
            f"Account {actor_account_id} revoked transaction #{transaction_id}",
            user_id=actor_account_id, action="revoke",
            resource=f"transaction:{transaction_id}",
            extra={"date_due": transaction.date_due, "clock": today}
        )

        return transaction
