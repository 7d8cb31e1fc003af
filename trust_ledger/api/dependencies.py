"""
Ledger system wiring and request dependencies
"""

from typing import Optional

from fastapi import Cookie, Depends, Header

from ..accounts import AccountView
from ..admin import LedgerAdmin
from ..auth import Authenticator, Session
from ..clock import StoreClock
from ..config import DEFAULT_ADMIN_TOKEN, LedgerConfig, get_config
from ..errors import Unauthorized
from ..logging_config import get_logger
from ..mailbox import Mailbox
from ..revocation import RevocationEngine
from ..storage import LedgerStore, SQLiteLedgerStore
from ..transfers import TransferEngine


SESSION_COOKIE = "session_token"

logger = get_logger("trust_ledger.api")


class LedgerSystem:
    """Ledger components wired to one store and one clock"""

    def __init__(self, store: Optional[LedgerStore] = None, config: Optional[LedgerConfig] = None):
        self.config = config or get_config()
        if self.config.admin_token == DEFAULT_ADMIN_TOKEN:
            logger.warning(
                "The admin token is the shipped default; set TRUST_LEDGER_ADMIN_TOKEN "
                "before exposing the API"
            )
        self.store = store or SQLiteLedgerStore(self.config.database_path)
        self.clock = StoreClock(self.store)

        self.accounts = AccountView(self.store)
        self.transfers = TransferEngine(
            self.store, self.accounts, self.clock,
            serialize=self.config.serialize_transfers
        )
        self.revocations = RevocationEngine(self.store, self.clock)
        self.admin = LedgerAdmin(self.store, self.clock)
        self.auth = Authenticator(self.store, self.accounts, self.config.session_timeout_seconds)
        self.mailbox = Mailbox(
            self.store, self.accounts, self.clock,
            letters_dir=self.config.letters_dir,
            archive_dir=self.config.archive_dir
        )

    def close(self) -> None:
        self.store.close()


_ledger_system: Optional[LedgerSystem] = None


def get_ledger_system() -> LedgerSystem:
    """Dependency returning the process-wide ledger system, opened on first use"""
    global _ledger_system
    if _ledger_system is None:
        _ledger_system = LedgerSystem()
    return _ledger_system


def current_session(
    session_token: Optional[str] = Cookie(default=None),
    system: LedgerSystem = Depends(get_ledger_system)
) -> Session:
    return system.auth.resolve(session_token)


def require_admin(
    admin_token: Optional[str] = Header(default=None, alias="X-Admin-Token"),
    system: LedgerSystem = Depends(get_ledger_system)
) -> None:
    if admin_token != system.config.admin_token:
        raise Unauthorized("Missing or invalid admin token")
