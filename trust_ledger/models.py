"""
Ledger Data Model

Accounts, transactions and letters as read from the ledger store. Balance
and history are never stored on an account; they are filled in by the
account view each time an account is loaded.
"""

from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Optional
from enum import Enum


class TransactionState(Enum):
    """States of a transaction"""
    PENDING = "pending"  # Admitted, not yet settled
    PAYED = "payed"      # Settled, counts towards balances
    REVOKED = "revoked"  # Voided before settlement


class Direction(Enum):
    """Direction of a transaction as seen from the viewing account"""
    INCOMING = "<--"
    OUTGOING = "-->"


@dataclass
class Transaction:
    """
    A dated transfer between two accounts.
    The creditor receives the amount, the debitor pays it.
    """
    id: int
    creditor_id: int
    debitor_id: int
    amount: int
    concept: str
    date_created: int
    date_due: int
    payed: bool = False
    revoked: bool = False

    def __post_init__(self):
        if self.creditor_id == self.debitor_id:
            raise ValueError("Transaction creditor and debitor must differ")

        if self.amount < 0:
            raise ValueError("Transaction amount must not be negative")

        if self.date_due < self.date_created:
            raise ValueError("Transaction cannot be due before it was created")

    @property
    def state(self) -> TransactionState:
        if self.revoked:
            return TransactionState.REVOKED
        if self.payed:
            return TransactionState.PAYED
        return TransactionState.PENDING

    def involves(self, account_id: int) -> bool:
        """Check if the account is one of the two parties"""
        return account_id in (self.creditor_id, self.debitor_id)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for storage"""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Transaction':
        """Create instance from a store row"""
        return cls(
            id=data['id'],
            creditor_id=data['creditor_id'],
            debitor_id=data['debitor_id'],
            amount=data['amount'],
            concept=data['concept'],
            date_created=data['date_created'],
            date_due=data['date_due'],
            payed=bool(data['payed']),
            revoked=bool(data['revoked'])
        )


@dataclass
class TransactionView:
    """A transaction as shown in one account's history"""
    id: int
    concept: str
    date_created: int
    date_due: int
    payed: bool
    amount: int                 # Negated when the viewer is the debitor
    direction: Direction
    counterparty_id: int
    counterparty: str           # e.g. "<-- Alice [0002]" or "--> The Bank"

    @property
    def state(self) -> TransactionState:
        return TransactionState.PAYED if self.payed else TransactionState.PENDING


@dataclass
class Letter:
    """A markdown letter between holders, optionally public"""
    id: int
    sender_id: int
    receiver_id: int
    title: str
    path: str
    date: int
    public: bool = False
    sender_name: str = "-"
    receiver_name: str = "-"
    body: Optional[str] = None
    html: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Letter':
        """Create instance from a store row"""
        return cls(
            id=data['id'],
            sender_id=data['sender_id'],
            receiver_id=data['receiver_id'],
            title=data['title'],
            path=data['path'],
            date=data['date'],
            public=bool(data['public'])
        )


@dataclass
class Account:
    """
    An account holder's view of the ledger.
    balance, transactions and letters are derived on load.
    """
    id: int
    holder: str
    registration_date: int
    balance: int = 0
    transactions: List[TransactionView] = field(default_factory=list)
    letters: List[Letter] = field(default_factory=list)


@dataclass
class BookEntry:
    """One line of the public roster"""
    id: int
    holder: str
