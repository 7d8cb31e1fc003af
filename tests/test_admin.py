"""
Test suite for ledger administration
"""

import pytest

from trust_ledger.accounts import AccountView
from trust_ledger.admin import LedgerAdmin
from trust_ledger.auth import verify_password
from trust_ledger.clock import StoreClock
from trust_ledger.errors import AccountAlreadyExists, InvalidInput
from trust_ledger.revocation import RevocationEngine
from trust_ledger.seed import BANK_ACCOUNT_ID, seed
from trust_ledger.storage import InMemoryLedgerStore, SQLiteLedgerStore
from trust_ledger.transfers import TransferEngine


class TestOpenAccount:
    """Test account opening"""

    def setup_method(self):
        self.store = InMemoryLedgerStore(clock=4)
        self.admin = LedgerAdmin(self.store, StoreClock(self.store))

    def test_open_account_registers_on_current_tick(self):
        account_id = self.admin.open_account("  Alice ", password="secret")

        row = self.store.load_account(account_id)
        assert row['holder'] == "Alice"
        assert row['registration_date'] == 4
        assert verify_password("secret", self.store.load_password_hash(account_id))

    def test_open_account_without_password(self):
        account_id = self.admin.open_account("Bob")
        assert self.store.load_password_hash(account_id) is None

    def test_open_synthetic_account(self):
        assert self.admin.open_account("The Bank", account_id=-1) == -1
        with pytest.raises(AccountAlreadyExists):
            self.admin.open_account("Another Bank", account_id=-1)

    def test_empty_holder_rejected(self):
        with pytest.raises(InvalidInput):
            self.admin.open_account("   ")


class TestAdvanceClock:
    """Test the clock and the settlement sweep"""

    def setup_method(self):
        self.store = InMemoryLedgerStore()
        opened = seed(self.store, ["Alice", "Bob"])
        self.alice = opened["Alice"]
        self.bob = opened["Bob"]

        self.clock = StoreClock(self.store)
        self.accounts = AccountView(self.store)
        self.admin = LedgerAdmin(self.store, self.clock)
        self.transfers = TransferEngine(self.store, self.accounts, self.clock)

    def test_advance_moves_clock(self):
        assert self.admin.advance_clock() == 1
        assert self.admin.advance_clock(3) == 4
        assert self.store.read_clock() == 4
        assert self.clock.current() == 4

    def test_clock_cannot_go_backwards(self):
        with pytest.raises(InvalidInput):
            self.admin.advance_clock(0)
        with pytest.raises(InvalidInput):
            self.admin.advance_clock(-2)
        assert self.store.read_clock() == 0

    def test_pending_transfer_settles_on_due_date(self):
        pending = self.transfers.transfer(self.alice, self.bob, 25, due=2)

        self.admin.advance_clock()
        assert self.store.load_transaction(pending.id)['payed'] is False
        assert self.accounts.balance(self.bob) == 100

        self.admin.advance_clock()
        assert self.store.load_transaction(pending.id)['payed'] is True
        assert self.accounts.balance(self.alice) == 75
        assert self.accounts.balance(self.bob) == 125

    def test_jumping_past_due_date_settles(self):
        pending = self.transfers.transfer(self.alice, self.bob, 25, due=2)
        self.admin.advance_clock(10)
        assert self.store.load_transaction(pending.id)['payed'] is True

    def test_revoked_transfer_is_not_settled(self):
        pending = self.transfers.transfer(self.alice, self.bob, 25, due=2)
        RevocationEngine(self.store, self.clock).revoke(self.alice, pending.id)

        self.admin.advance_clock(2)
        row = self.store.load_transaction(pending.id)
        assert row['payed'] is False
        assert row['revoked'] is True
        assert self.accounts.balance(self.alice) == 100

    def test_settle_due_returns_settled_ids(self):
        first = self.transfers.transfer(self.alice, self.bob, 5, due=1)
        second = self.transfers.transfer(self.bob, self.alice, 5, due=3)

        self.store.write_clock(3)
        assert self.admin.settle_due(3) == [first.id, second.id]
        assert self.admin.settle_due(3) == []

    def test_settlement_can_overdraw(self):
        self.transfers.transfer(self.alice, self.bob, 80, due=1)
        self.transfers.transfer(self.alice, self.bob, 80, due=1)

        self.admin.advance_clock()
        assert self.accounts.balance(self.alice) == -60

    def test_bank_balance_is_negative_of_opening_balances(self):
        assert self.accounts.balance(BANK_ACCOUNT_ID) == -200


class TestAdvanceClockSQLite:
    """Clock advance and settlement are one store transaction"""

    def test_advance_is_persisted(self):
        store = SQLiteLedgerStore(":memory:")
        opened = seed(store, ["Alice", "Bob"])
        clock = StoreClock(store)
        transfers = TransferEngine(store, AccountView(store), clock)
        pending = transfers.transfer(opened["Alice"], opened["Bob"], 10, due=1)

        LedgerAdmin(store, clock).advance_clock()

        assert store.read_clock() == 1
        assert store.load_transaction(pending.id)['payed'] is True
        store.close()
