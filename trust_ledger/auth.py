"""
Authentication Module

Password hashing for account holders and short-lived login sessions.
This bank is meant for play among friends; the checks keep holders honest
rather than resisting a determined attacker.
"""

import hashlib
import hmac
import secrets
import threading
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional

from .accounts import AccountView
from .errors import (
    AccountNotFound, IncorrectPassword, PasswordMismatch, SessionExpired, Unauthorized
)
from .logging_config import get_logger, log_action
from .storage import LedgerStore


logger = get_logger("trust_ledger.auth")


def _scrypt(password: str, salt: str) -> str:
    return hashlib.scrypt(
        password.encode(),
        salt=salt.encode(),
        n=16384, r=8, p=1
    ).hex()


def hash_password(password: str) -> str:
    """Hash a password with a random salt as 'scrypt$<salt>$<digest>'"""
    salt = secrets.token_hex(16)
    return f"scrypt${salt}${_scrypt(password, salt)}"


def verify_password(password: str, password_hash: Optional[str]) -> bool:
    """Check a password against a stored hash"""
    if not password_hash:
        return False
    try:
        scheme, salt, digest = password_hash.split("$", 2)
    except ValueError:
        return False
    if scheme != "scrypt":
        return False
    return hmac.compare_digest(_scrypt(password, salt), digest)


@dataclass
class Session:
    """A logged-in holder"""
    token: str
    account_id: int
    holder: str
    expires_at: datetime

    @property
    def is_expired(self) -> bool:
        return self.expires_at < datetime.now(timezone.utc)


class Authenticator:
    """Verifies credentials and keeps track of open sessions"""

    def __init__(self, store: LedgerStore, accounts: AccountView, session_timeout_seconds: int = 360):
        self.store = store
        self.accounts = accounts
        self.session_timeout = timedelta(seconds=session_timeout_seconds)
        self._sessions: Dict[str, Session] = {}
        self._lock = threading.Lock()

    def check_password(self, account_id: int, password: str) -> bool:
        if verify_password(password, self.store.load_password_hash(account_id)):
            return True
        log_action(logger, "warning", f"Login attempt failed for account {account_id}",
                   user_id=account_id, action="login_failed")
        return False

    def login(self, account_id: int, password: str) -> Session:
        """
        Open a session for an account holder

        Raises:
            AccountNotFound: If the account does not exist
            IncorrectPassword: If the password does not match
        """
        holder = self.accounts.holder(account_id)
        if not self.check_password(account_id, password):
            raise IncorrectPassword(f"Incorrect password for account {account_id}")

        session = Session(
            token=str(uuid.uuid4()),
            account_id=account_id,
            holder=holder,
            expires_at=datetime.now(timezone.utc) + self.session_timeout
        )
        with self._lock:
            self._sessions[session.token] = session

        log_action(logger, "info", f"{holder} ({account_id}) logged in",
                   user_id=account_id, action="login")
        return session

    def resolve(self, token: Optional[str]) -> Session:
        """
        Find the session for a token

        Raises:
            Unauthorized: If there is no such session
            SessionExpired: If the session has expired (it is dropped)
        """
        if not token:
            raise Unauthorized("Missing session token")

        with self._lock:
            session = self._sessions.get(token)
            if session is None:
                raise Unauthorized("Unknown session token")
            if session.is_expired:
                del self._sessions[token]
                raise SessionExpired(f"Session for account {session.account_id} expired")
        return session

    def logout(self, token: Optional[str]) -> None:
        with self._lock:
            session = self._sessions.pop(token, None) if token else None
        if session:
            log_action(logger, "info", f"{session.holder} ({session.account_id}) logged out",
                       user_id=session.account_id, action="logout")

    def change_password(self, account_id: int, current: str, new: str, confirm: str) -> None:
        """
        Replace the password of an account

        Raises:
            AccountNotFound: If the account does not exist
            PasswordMismatch: If new and confirm differ
            IncorrectPassword: If current does not match the stored hash
        """
        if not self.accounts.exists(account_id):
            raise AccountNotFound(f"Account {account_id} not found")
        if new != confirm:
            raise PasswordMismatch("The new passwords do not match")
        if not self.check_password(account_id, current):
            raise IncorrectPassword(f"Incorrect password for account {account_id}")

        self.store.save_password_hash(account_id, hash_password(new))
        log_action(logger, "info", f"Password changed for account {account_id}",
                   user_id=account_id, action="change_password")
