"""
Transfer and revocation endpoints
"""

from fastapi import APIRouter, Depends, Path

from ..auth import Session
from .dependencies import LedgerSystem, current_session, get_ledger_system
from .schemas import INT64_MAX, INT64_MIN, TransactionResponse, TransferRequest


router = APIRouter()


@router.post("/transfer", response_model=TransactionResponse, status_code=201)
async def transfer(
    request: TransferRequest,
    session: Session = Depends(current_session),
    system: LedgerSystem = Depends(get_ledger_system)
):
    """Order a transfer from the logged-in holder's account"""
    transaction = system.transfers.transfer(
        from_account_id=session.account_id,
        to_account_id=request.to,
        amount=request.amount,
        due=request.due,
        concept=request.concept
    )
    return TransactionResponse.from_transaction(transaction)


@router.post("/revoke/{transaction_id}", response_model=TransactionResponse)
async def revoke(
    transaction_id: int = Path(..., ge=INT64_MIN, le=INT64_MAX),
    session: Session = Depends(current_session),
    system: LedgerSystem = Depends(get_ledger_system)
):
    """Revoke a pending transaction the holder is party to"""
    transaction = system.revocations.revoke(session.account_id, transaction_id)
    return TransactionResponse.from_transaction(transaction)
