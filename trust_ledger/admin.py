"""
Ledger Administration

Operations reserved to whoever runs the bank: opening accounts and moving
the clock forward. Advancing the clock runs the settlement sweep, which is
the only place a pending transaction becomes payed after admission.
"""

from typing import List, Optional

from .auth import hash_password
from .clock import Clock
from .errors import InvalidInput
from .logging_config import get_logger, log_action
from .storage import LedgerStore


class LedgerAdmin:
    """Opens accounts, advances the clock and settles due transactions"""

    def __init__(self, store: LedgerStore, clock: Clock):
        self.store = store
        self.clock = clock
        self.logger = get_logger("trust_ledger.admin")

    def open_account(
        self,
        holder: str,
        password: Optional[str] = None,
        account_id: Optional[int] = None
    ) -> int:
        """
        Open an account registered on the current tick

        Args:
            holder: Display name of the holder
            password: Initial password (None leaves the account unable to log in)
            account_id: Explicit id; negative ids create synthetic accounts

        Returns:
            Id of the new account

        Raises:
            InvalidInput: If the holder name is empty
            AccountAlreadyExists: If account_id is taken
        """
        if not holder or not holder.strip():
            raise InvalidInput("Holder name must not be empty")

        password_hash = hash_password(password) if password else None
        account_id = self.store.insert_account(
            holder=holder.strip(),
            registration_date=self.clock.current(),
            account_id=account_id,
            password_hash=password_hash
        )

        log_action(self.logger, "info", f"Account opened for {holder}",
                   user_id=account_id, action="open_account",
                   resource=f"account:{account_id}")
        return account_id

    def advance_clock(self, ticks: int = 1) -> int:
        """
        Move the clock forward and settle what became due

        Returns:
            The new tick
        """
        if ticks < 1:
            raise InvalidInput(f"The clock can only move forward (ticks={ticks})")

        with self.store.atomic():
            tick = self.clock.current() + ticks
            self.store.write_clock(tick)
            settled = self.settle_due(tick)

        log_action(self.logger, "info", f"Clock advanced to {tick}",
                   action="advance_clock", extra={"tick": tick, "settled": settled})
        return tick

    def settle_due(self, tick: int) -> List[int]:
        """Mark as payed every live, unpaid transaction due at or before tick"""
        settled = []
        for data in self.store.settleable_transactions(tick):
            self.store.set_payed(data['id'])
            settled.append(data['id'])
        return settled
