"""
Test suite for the transfer engine
"""

import threading

import pytest

from trust_ledger.accounts import AccountView
from trust_ledger.clock import FixedClock, StoreClock
from trust_ledger.errors import (
    InsufficientFunds, InvalidInput, NegativeAmount, PastDueDate, RecipientNotFound,
    SelfTransfer
)
from trust_ledger.models import TransactionState
from trust_ledger.seed import seed
from trust_ledger.storage import InMemoryLedgerStore, SQLiteLedgerStore
from trust_ledger.transfers import TransferEngine


class TestTransferEngine:
    """Test transfer admission"""

    def setup_method(self):
        self.store = InMemoryLedgerStore()
        opened = seed(self.store, ["Alice", "Bob"])
        self.alice = opened["Alice"]
        self.bob = opened["Bob"]
        self.store.write_clock(5)

        self.accounts = AccountView(self.store)
        self.clock = StoreClock(self.store)
        self.engine = TransferEngine(self.store, self.accounts, self.clock)

    def test_transfer_due_today_settles_immediately(self):
        transaction = self.engine.transfer(self.alice, self.bob, 30, due=5, concept="rent")

        assert transaction.id > 0
        assert transaction.creditor_id == self.bob
        assert transaction.debitor_id == self.alice
        assert transaction.amount == 30
        assert transaction.concept == "rent"
        assert transaction.date_created == 5
        assert transaction.date_due == 5
        assert transaction.payed is True
        assert transaction.state == TransactionState.PAYED

        assert self.accounts.balance(self.alice) == 70
        assert self.accounts.balance(self.bob) == 130

    def test_transfer_due_later_stays_pending(self):
        transaction = self.engine.transfer(self.alice, self.bob, 30, due=7)

        assert transaction.payed is False
        assert transaction.state == TransactionState.PENDING
        assert self.accounts.balance(self.alice) == 100
        assert self.accounts.balance(self.bob) == 100

        stored = self.store.load_transaction(transaction.id)
        assert stored['payed'] is False
        assert stored['date_created'] == 5

    def test_entire_balance_can_be_transferred(self):
        self.engine.transfer(self.alice, self.bob, 100, due=5)
        assert self.accounts.balance(self.alice) == 0

    def test_zero_amount_is_accepted(self):
        transaction = self.engine.transfer(self.alice, self.bob, 0, due=5)
        assert transaction.amount == 0

    def test_self_transfer_rejected(self):
        with pytest.raises(SelfTransfer):
            self.engine.transfer(self.alice, self.alice, 10, due=5)

    def test_insufficient_funds_rejected(self):
        with pytest.raises(InsufficientFunds):
            self.engine.transfer(self.alice, self.bob, 101, due=5)

    def test_negative_amount_rejected(self):
        with pytest.raises(NegativeAmount):
            self.engine.transfer(self.alice, self.bob, -1, due=5)

    def test_past_due_date_rejected(self):
        with pytest.raises(PastDueDate):
            self.engine.transfer(self.alice, self.bob, 10, due=4)

    def test_unknown_recipient_rejected(self):
        with pytest.raises(RecipientNotFound):
            self.engine.transfer(self.alice, 99, 10, due=5)

    def test_self_transfer_checked_before_funds(self):
        with pytest.raises(SelfTransfer):
            self.engine.transfer(self.alice, self.alice, 1000, due=0)

    def test_funds_checked_before_recipient_and_due(self):
        with pytest.raises(InsufficientFunds):
            self.engine.transfer(self.alice, 99, 1000, due=0)

    def test_negative_amount_checked_before_due_date(self):
        with pytest.raises(NegativeAmount):
            self.engine.transfer(self.alice, 99, -10, due=0)

    def test_due_date_checked_before_recipient(self):
        with pytest.raises(PastDueDate):
            self.engine.transfer(self.alice, 99, 10, due=0)

    def test_rejected_transfer_leaves_no_row(self):
        before = self.store.live_transactions_for(self.alice)

        for args in [(self.alice, self.alice, 1, 5), (self.alice, self.bob, 500, 5),
                     (self.alice, self.bob, -1, 5), (self.alice, self.bob, 1, 0),
                     (self.alice, 99, 1, 5)]:
            with pytest.raises(Exception):
                self.engine.transfer(*args)

        assert self.store.live_transactions_for(self.alice) == before
        assert self.accounts.balance(self.alice) == 100

    def test_pending_transfers_do_not_reserve_funds(self):
        self.engine.transfer(self.alice, self.bob, 80, due=9)
        # Only settled transactions count against the balance
        self.engine.transfer(self.alice, self.bob, 80, due=9)
        assert self.accounts.balance(self.alice) == 100

    def test_reads_clock_on_each_transfer(self):
        self.store.write_clock(8)
        with pytest.raises(PastDueDate):
            self.engine.transfer(self.alice, self.bob, 10, due=7)

        transaction = self.engine.transfer(self.alice, self.bob, 10, due=8)
        assert transaction.payed is True
        assert transaction.date_created == 8


class TestTransferBoundariesOnFixedClock:
    """Due date boundaries with the tick pinned"""

    def setup_method(self):
        self.store = InMemoryLedgerStore()
        opened = seed(self.store, ["Alice", "Bob"])
        self.alice = opened["Alice"]
        self.bob = opened["Bob"]
        self.accounts = AccountView(self.store)
        self.engine = TransferEngine(self.store, self.accounts, FixedClock(12))

    def test_due_one_tick_ago_rejected(self):
        with pytest.raises(PastDueDate):
            self.engine.transfer(self.alice, self.bob, 10, due=11)

    def test_due_on_clock_tick_settles(self):
        transaction = self.engine.transfer(self.alice, self.bob, 10, due=12)

        assert transaction.payed is True
        assert transaction.date_created == 12
        assert self.accounts.balance(self.bob) == 110

    def test_due_one_tick_ahead_is_pending(self):
        transaction = self.engine.transfer(self.alice, self.bob, 10, due=13)

        assert transaction.state == TransactionState.PENDING
        assert self.accounts.balance(self.bob) == 100

    def test_store_clock_is_ignored(self):
        self.store.write_clock(20)
        transaction = self.engine.transfer(self.alice, self.bob, 10, due=12)
        assert transaction.date_created == 12


class TestSerializedTransfers:
    """Test opt-in serialization of transfers from the same account"""

    def setup_method(self):
        self.store = SQLiteLedgerStore(":memory:")
        opened = seed(self.store, ["Alice", "Bob"])
        self.alice = opened["Alice"]
        self.bob = opened["Bob"]

        self.accounts = AccountView(self.store)
        self.engine = TransferEngine(self.store, self.accounts, StoreClock(self.store),
                                     serialize=True)

    def teardown_method(self):
        self.store.close()

    def test_serialized_transfer_commits(self):
        transaction = self.engine.transfer(self.alice, self.bob, 40, due=0)

        assert self.store.load_transaction(transaction.id)['payed'] is True
        assert self.accounts.balance(self.alice) == 60

    def test_serialized_rejection_leaves_no_row(self):
        with pytest.raises(InsufficientFunds):
            self.engine.transfer(self.alice, self.bob, 150, due=0)
        assert self.accounts.balance(self.alice) == 100

    def test_concurrent_transfers_cannot_overdraw(self):
        results = []

        def spend():
            try:
                self.engine.transfer(self.alice, self.bob, 60, due=0)
                results.append("ok")
            except InsufficientFunds:
                results.append("refused")

        threads = [threading.Thread(target=spend) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert sorted(results) == ["ok", "refused", "refused", "refused"]
        assert self.accounts.balance(self.alice) == 40


class TestTransfersOnSQLite:
    """Values the SQLite store cannot hold"""

    def setup_method(self):
        self.store = SQLiteLedgerStore(":memory:")
        opened = seed(self.store, ["Alice", "Bob"])
        self.alice = opened["Alice"]
        self.bob = opened["Bob"]
        self.accounts = AccountView(self.store)
        self.engine = TransferEngine(self.store, self.accounts, StoreClock(self.store))

    def teardown_method(self):
        self.store.close()

    def test_due_beyond_64_bits_is_invalid_input(self):
        with pytest.raises(InvalidInput):
            self.engine.transfer(self.alice, self.bob, 10, due=2 ** 63)

        assert self.accounts.balance(self.alice) == 100
        assert len(self.store.live_transactions_for(self.alice)) == 1

    def test_recipient_beyond_64_bits_is_invalid_input(self):
        with pytest.raises(InvalidInput):
            self.engine.transfer(self.alice, 2 ** 64, 10, due=0)
