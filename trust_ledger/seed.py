#!/usr/bin/env python3
"""Seed script for a Trust Ledger database

Creates the Bank (a synthetic account with a negative id), a handful of
holders, and an opening balance for each holder paid by the Bank. Opening
balances are written straight into the store: the transfer engine would
refuse them, since the Bank starts with nothing.

Run with: python -m trust_ledger.seed [database path]
"""

import sys
from typing import Dict

from .admin import LedgerAdmin
from .clock import StoreClock
from .config import get_config
from .logging_config import setup_logging
from .storage import LedgerStore, SQLiteLedgerStore


BANK_ACCOUNT_ID = -1
BANK_NAME = "The Bank"

DEMO_HOLDERS = ["Alice", "Bob", "Carol", "Dave"]
OPENING_BALANCE = 100


def seed(store: LedgerStore, holders=DEMO_HOLDERS, opening_balance: int = OPENING_BALANCE,
         password: str = "changeme") -> Dict[str, int]:
    """Open the Bank and the given holders; return holder name -> account id"""
    clock = StoreClock(store)
    admin = LedgerAdmin(store, clock)

    if store.load_account(BANK_ACCOUNT_ID) is None:
        admin.open_account(BANK_NAME, account_id=BANK_ACCOUNT_ID)

    today = clock.current()
    opened = {}
    with store.atomic():
        for holder in holders:
            account_id = admin.open_account(holder, password=password)
            opened[holder] = account_id
            if opening_balance > 0:
                store.insert_transaction({
                    'creditor_id': account_id,
                    'debitor_id': BANK_ACCOUNT_ID,
                    'amount': opening_balance,
                    'concept': "Opening balance",
                    'date_created': today,
                    'date_due': today,
                    'payed': True,
                    'revoked': False,
                })
    return opened


def main() -> None:
    config = get_config()
    logger = setup_logging(config.log_level, log_format="text")
    db_path = sys.argv[1] if len(sys.argv) > 1 else config.database_path

    store = SQLiteLedgerStore(db_path)
    try:
        opened = seed(store)
    finally:
        store.close()

    for holder, account_id in opened.items():
        logger.info("Opened account %04d for %s", account_id, holder)


if __name__ == "__main__":
    main()
