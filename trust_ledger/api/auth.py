"""
Login, logout and password endpoints
"""

from typing import Optional

from fastapi import APIRouter, Cookie, Depends, Response

from ..auth import Session
from .dependencies import SESSION_COOKIE, LedgerSystem, current_session, get_ledger_system
from .schemas import ChangePasswordRequest, LoginRequest, LoginResponse


router = APIRouter()


@router.post("/login", response_model=LoginResponse)
async def login(
    request: LoginRequest,
    response: Response,
    system: LedgerSystem = Depends(get_ledger_system)
):
    """Open a session and hand its token back as a cookie"""
    session = system.auth.login(request.account_id, request.password)
    response.set_cookie(
        key=SESSION_COOKIE,
        value=session.token,
        max_age=system.config.session_timeout_seconds,
        path="/",
        httponly=True
    )
    return LoginResponse(
        account_id=session.account_id,
        holder=session.holder,
        expires_at=session.expires_at
    )


@router.post("/logout")
async def logout(
    response: Response,
    session_token: Optional[str] = Cookie(default=None),
    system: LedgerSystem = Depends(get_ledger_system)
):
    """Close the current session"""
    system.auth.logout(session_token)
    response.delete_cookie(SESSION_COOKIE, path="/")
    return {"message": "Logged out"}


@router.post("/password")
async def change_password(
    request: ChangePasswordRequest,
    session: Session = Depends(current_session),
    system: LedgerSystem = Depends(get_ledger_system)
):
    """Change the logged-in holder's password"""
    system.auth.change_password(session.account_id, request.current, request.new, request.confirm)
    return {"message": "Password changed"}
