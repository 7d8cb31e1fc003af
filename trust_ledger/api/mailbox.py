"""
Mailbox endpoints
"""

from typing import List

from fastapi import APIRouter, Depends, Path

from ..auth import Session
from .dependencies import LedgerSystem, current_session, get_ledger_system
from .schemas import INT64_MAX, INT64_MIN, LetterModel, SendLetterRequest


router = APIRouter()


@router.post("/send", response_model=LetterModel, status_code=201)
async def send_letter(
    request: SendLetterRequest,
    session: Session = Depends(current_session),
    system: LedgerSystem = Depends(get_ledger_system)
):
    """Send a letter from the logged-in holder"""
    letter = system.mailbox.send(
        sender_id=session.account_id,
        receiver_id=request.to,
        title=request.title,
        body=request.body,
        public=request.public
    )
    return LetterModel.from_letter(letter)


@router.get("/letters/{letter_id}", response_model=LetterModel)
async def read_letter(
    letter_id: int = Path(..., ge=INT64_MIN, le=INT64_MAX),
    session: Session = Depends(current_session),
    system: LedgerSystem = Depends(get_ledger_system)
):
    """Read a letter from the holder's inbox"""
    letter = system.mailbox.read(session.account_id, letter_id)
    return LetterModel.from_letter(letter, with_body=True)


@router.get("/archive", response_model=List[LetterModel])
async def get_archive(system: LedgerSystem = Depends(get_ledger_system)):
    """List public letters"""
    return [LetterModel.from_letter(letter, with_path=True) for letter in system.mailbox.archive()]


@router.get("/documents/{letter_id}", response_model=LetterModel)
async def get_document(
    letter_id: int = Path(..., ge=INT64_MIN, le=INT64_MAX),
    system: LedgerSystem = Depends(get_ledger_system)
):
    """Read a public letter"""
    letter = system.mailbox.document(letter_id)
    return LetterModel.from_letter(letter, with_body=True)
