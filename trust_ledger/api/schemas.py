"""
Pydantic schemas for API requests and responses
"""

from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field

from ..models import Account, BookEntry, Letter, Transaction, TransactionView


# Ids, amounts and ticks are stored as SQLite INTEGER (signed 64-bit)
INT64_MIN = -2 ** 63
INT64_MAX = 2 ** 63 - 1


def int64_field(default=..., **kwargs):
    return Field(default, ge=INT64_MIN, le=INT64_MAX, **kwargs)


# Auth schemas
class LoginRequest(BaseModel):
    account_id: int = int64_field()
    password: str


class LoginResponse(BaseModel):
    account_id: int
    holder: str
    expires_at: datetime


class ChangePasswordRequest(BaseModel):
    current: str
    new: str = Field(..., min_length=1)
    confirm: str


# Ledger schemas
class TransferRequest(BaseModel):
    to: int = int64_field(description="Receiving account id")
    amount: int = int64_field()
    due: int = int64_field(description="Clock tick on which the transfer settles")
    concept: str = ""


class TransactionResponse(BaseModel):
    id: int
    creditor_id: int
    debitor_id: int
    amount: int
    concept: str
    date_created: int
    date_due: int
    payed: bool
    revoked: bool
    state: str

    @classmethod
    def from_transaction(cls, transaction: Transaction) -> 'TransactionResponse':
        return cls(state=transaction.state.value, **transaction.to_dict())


class TransactionViewModel(BaseModel):
    id: int
    concept: str
    date_created: int
    date_due: int
    payed: bool
    state: str
    amount: int
    counterparty_id: int
    counterparty: str

    @classmethod
    def from_view(cls, view: TransactionView) -> 'TransactionViewModel':
        return cls(
            id=view.id,
            concept=view.concept,
            date_created=view.date_created,
            date_due=view.date_due,
            payed=view.payed,
            state=view.state.value,
            amount=view.amount,
            counterparty_id=view.counterparty_id,
            counterparty=view.counterparty
        )


class LetterModel(BaseModel):
    id: int
    sender_id: int
    receiver_id: int
    title: str
    date: int
    public: bool
    sender: str
    receiver: str
    path: Optional[str] = None
    html: Optional[str] = None

    @classmethod
    def from_letter(cls, letter: Letter, with_body: bool = False,
                    with_path: bool = False) -> 'LetterModel':
        return cls(
            id=letter.id,
            sender_id=letter.sender_id,
            receiver_id=letter.receiver_id,
            title=letter.title,
            date=letter.date,
            public=letter.public,
            sender=letter.sender_name,
            receiver=letter.receiver_name,
            path=letter.path if with_path else None,
            html=letter.html if with_body else None
        )


class AccountResponse(BaseModel):
    id: int
    holder: str
    registration_date: int
    balance: int
    clock: int
    transactions: List[TransactionViewModel]
    letters: List[LetterModel]

    @classmethod
    def from_account(cls, account: Account, clock: int) -> 'AccountResponse':
        return cls(
            id=account.id,
            holder=account.holder,
            registration_date=account.registration_date,
            balance=account.balance,
            clock=clock,
            transactions=[TransactionViewModel.from_view(t) for t in account.transactions],
            letters=[LetterModel.from_letter(l) for l in account.letters]
        )


class BookEntryModel(BaseModel):
    id: int
    holder: str

    @classmethod
    def from_entry(cls, entry: BookEntry) -> 'BookEntryModel':
        return cls(id=entry.id, holder=entry.holder)


# Mailbox schemas
class SendLetterRequest(BaseModel):
    to: int = int64_field()
    title: str
    body: str
    public: bool = False


# Admin schemas
class AdvanceClockRequest(BaseModel):
    ticks: int = int64_field(1)


class ClockResponse(BaseModel):
    clock: int


class OpenAccountRequest(BaseModel):
    holder: str
    password: Optional[str] = None
    account_id: Optional[int] = int64_field(None)


class OpenAccountResponse(BaseModel):
    account_id: int
    holder: str
