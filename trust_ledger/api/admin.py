"""
Administrative endpoints
"""

from fastapi import APIRouter, Depends

from .dependencies import LedgerSystem, get_ledger_system, require_admin
from .schemas import (
    AdvanceClockRequest, ClockResponse, OpenAccountRequest, OpenAccountResponse
)


router = APIRouter(dependencies=[Depends(require_admin)])


@router.get("/clock", response_model=ClockResponse)
async def get_clock(system: LedgerSystem = Depends(get_ledger_system)):
    """Get the current tick"""
    return ClockResponse(clock=system.clock.current())


@router.post("/clock/advance", response_model=ClockResponse)
async def advance_clock(
    request: AdvanceClockRequest,
    system: LedgerSystem = Depends(get_ledger_system)
):
    """Advance the clock and settle transactions that became due"""
    return ClockResponse(clock=system.admin.advance_clock(request.ticks))


@router.post("/accounts", response_model=OpenAccountResponse, status_code=201)
async def open_account(
    request: OpenAccountRequest,
    system: LedgerSystem = Depends(get_ledger_system)
):
    """Open an account"""
    account_id = system.admin.open_account(
        holder=request.holder,
        password=request.password,
        account_id=request.account_id
    )
    return OpenAccountResponse(account_id=account_id, holder=system.accounts.holder(account_id))
