"""
Account endpoints
"""

from typing import List

from fastapi import APIRouter, Depends

from ..auth import Session
from .dependencies import LedgerSystem, current_session, get_ledger_system
from .schemas import AccountResponse, BookEntryModel


router = APIRouter()


@router.get("/account", response_model=AccountResponse)
async def get_account(
    session: Session = Depends(current_session),
    system: LedgerSystem = Depends(get_ledger_system)
):
    """Get the logged-in holder's account, balance and history"""
    account = system.accounts.load(session.account_id)
    return AccountResponse.from_account(account, system.clock.current())


@router.get("/book", response_model=List[BookEntryModel])
async def get_book(
    session: Session = Depends(current_session),
    system: LedgerSystem = Depends(get_ledger_system)
):
    """List the holders of the bank"""
    return [BookEntryModel.from_entry(entry) for entry in system.accounts.book()]
