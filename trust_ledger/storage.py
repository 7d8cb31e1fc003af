"""
Ledger Store Module

Provides the narrow persistence contract the ledger depends on and two
implementations: in-memory (testing) and SQLite (persistence). All amounts
and clock ticks are stored as integers.
"""

from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Any, Union
import copy
import sqlite3
import threading
from pathlib import Path
from contextlib import contextmanager

from .errors import AccountAlreadyExists, InvalidInput, StoreUnavailable


class LedgerStore(ABC):
    """Abstract interface for ledger store backends"""

    # Clock

    @abstractmethod
    def read_clock(self) -> int:
        """Read the authoritative clock tick"""
        pass

    @abstractmethod
    def write_clock(self, tick: int) -> None:
        """Overwrite the clock tick (administration only)"""
        pass

    # Accounts

    @abstractmethod
    def load_account(self, account_id: int) -> Optional[Dict[str, Any]]:
        """Point lookup of an account row"""
        pass

    @abstractmethod
    def load_accounts(self) -> List[Dict[str, Any]]:
        """All account rows ordered by id"""
        pass

    @abstractmethod
    def insert_account(self, holder: str, registration_date: int,
                       account_id: Optional[int] = None,
                       password_hash: Optional[str] = None) -> int:
        """Insert an account row and return its id"""
        pass

    @abstractmethod
    def load_password_hash(self, account_id: int) -> Optional[str]:
        """Read the stored password hash of an account"""
        pass

    @abstractmethod
    def save_password_hash(self, account_id: int, password_hash: str) -> None:
        """Replace the password hash of an account"""
        pass

    # Transactions

    @abstractmethod
    def insert_transaction(self, data: Dict[str, Any]) -> int:
        """Insert a transaction row and return the id assigned to it"""
        pass

    @abstractmethod
    def load_transaction(self, transaction_id: int) -> Optional[Dict[str, Any]]:
        """Point lookup of a transaction row, revoked or not"""
        pass

    @abstractmethod
    def set_revoked(self, transaction_id: int) -> None:
        """Set the revoked flag of a transaction"""
        pass

    @abstractmethod
    def set_payed(self, transaction_id: int) -> None:
        """Set the payed flag of a transaction"""
        pass

    @abstractmethod
    def sum_credits(self, account_id: int) -> int:
        """Sum of payed, live amounts where the account is creditor (0 if none)"""
        pass

    @abstractmethod
    def sum_debits(self, account_id: int) -> int:
        """Sum of payed, live amounts where the account is debitor (0 if none)"""
        pass

    @abstractmethod
    def live_transactions_for(self, account_id: int) -> List[Dict[str, Any]]:
        """Live transactions touching the account, newest first by id"""
        pass

    @abstractmethod
    def settleable_transactions(self, tick: int) -> List[Dict[str, Any]]:
        """Live, unpaid transactions due at or before the tick, oldest first"""
        pass

    # Letters

    @abstractmethod
    def insert_letter(self, data: Dict[str, Any]) -> int:
        """Insert a letter row and return its id"""
        pass

    @abstractmethod
    def load_letter(self, letter_id: int) -> Optional[Dict[str, Any]]:
        """Point lookup of a letter row"""
        pass

    @abstractmethod
    def letters_for(self, account_id: int) -> List[Dict[str, Any]]:
        """Letters sent or received by the account plus public ones, oldest first"""
        pass

    @abstractmethod
    def public_letters(self) -> List[Dict[str, Any]]:
        """All public letters, oldest first"""
        pass

    @abstractmethod
    def close(self) -> None:
        """Close store connection"""
        pass

    def begin_transaction(self) -> None:
        """Start a database transaction (default no-op)"""
        pass

    def commit(self) -> None:
        """Commit current transaction (default no-op)"""
        pass

    def rollback(self) -> None:
        """Rollback current transaction (default no-op)"""
        pass

    @contextmanager
    def atomic(self):
        """Context manager for atomic operations"""
        self.begin_transaction()
        try:
            yield
            self.commit()
        except Exception:
            self.rollback()
            raise


class InMemoryLedgerStore(LedgerStore):
    """In-memory store implementation for testing"""

    def __init__(self, clock: int = 0):
        self._clock = clock
        self._accounts: Dict[int, Dict[str, Any]] = {}
        self._transactions: Dict[int, Dict[str, Any]] = {}
        self._letters: Dict[int, Dict[str, Any]] = {}
        self._next_transaction_id = 1
        self._next_letter_id = 1
        self._lock = threading.RLock()
        self._snapshot = None

    def read_clock(self) -> int:
        with self._lock:
            return self._clock

    def write_clock(self, tick: int) -> None:
        with self._lock:
            self._clock = tick

    def load_account(self, account_id: int) -> Optional[Dict[str, Any]]:
        with self._lock:
            row = self._accounts.get(account_id)
            if row:
                return {k: v for k, v in row.items() if k != 'password_hash'}
            return None

    def load_accounts(self) -> List[Dict[str, Any]]:
        with self._lock:
            return [self.load_account(account_id) for account_id in sorted(self._accounts)]

    def insert_account(self, holder: str, registration_date: int,
                       account_id: Optional[int] = None,
                       password_hash: Optional[str] = None) -> int:
        with self._lock:
            if account_id is None:
                account_id = max([0] + list(self._accounts)) + 1
            if account_id in self._accounts:
                raise AccountAlreadyExists(f"Account {account_id} already exists")
            self._accounts[account_id] = {
                'id': account_id,
                'holder': holder,
                'registration_date': registration_date,
                'password_hash': password_hash,
            }
            return account_id

    def load_password_hash(self, account_id: int) -> Optional[str]:
        with self._lock:
            row = self._accounts.get(account_id)
            return row['password_hash'] if row else None

    def save_password_hash(self, account_id: int, password_hash: str) -> None:
        with self._lock:
            if account_id in self._accounts:
                self._accounts[account_id]['password_hash'] = password_hash

    def insert_transaction(self, data: Dict[str, Any]) -> int:
        with self._lock:
            transaction_id = self._next_transaction_id
            self._next_transaction_id += 1
            row = dict(data)
            row['id'] = transaction_id
            self._transactions[transaction_id] = row
            return transaction_id

    def load_transaction(self, transaction_id: int) -> Optional[Dict[str, Any]]:
        with self._lock:
            row = self._transactions.get(transaction_id)
            return dict(row) if row else None

    def set_revoked(self, transaction_id: int) -> None:
        with self._lock:
            if transaction_id in self._transactions:
                self._transactions[transaction_id]['revoked'] = True

    def set_payed(self, transaction_id: int) -> None:
        with self._lock:
            if transaction_id in self._transactions:
                self._transactions[transaction_id]['payed'] = True

    def _settled_sum(self, role: str, account_id: int) -> int:
        with self._lock:
            return sum(
                row['amount'] for row in self._transactions.values()
                if row[role] == account_id and row['payed'] and not row['revoked']
            )

    def sum_credits(self, account_id: int) -> int:
        return self._settled_sum('creditor_id', account_id)

    def sum_debits(self, account_id: int) -> int:
        return self._settled_sum('debitor_id', account_id)

    def live_transactions_for(self, account_id: int) -> List[Dict[str, Any]]:
        with self._lock:
            return [
                dict(self._transactions[transaction_id])
                for transaction_id in sorted(self._transactions, reverse=True)
                if not self._transactions[transaction_id]['revoked']
                and account_id in (self._transactions[transaction_id]['creditor_id'],
                                   self._transactions[transaction_id]['debitor_id'])
            ]

    def settleable_transactions(self, tick: int) -> List[Dict[str, Any]]:
        with self._lock:
            return [
                dict(row) for _, row in sorted(self._transactions.items())
                if not row['payed'] and not row['revoked'] and row['date_due'] <= tick
            ]

    def insert_letter(self, data: Dict[str, Any]) -> int:
        with self._lock:
            letter_id = self._next_letter_id
            self._next_letter_id += 1
            row = dict(data)
            row['id'] = letter_id
            self._letters[letter_id] = row
            return letter_id

    def load_letter(self, letter_id: int) -> Optional[Dict[str, Any]]:
        with self._lock:
            row = self._letters.get(letter_id)
            return dict(row) if row else None

    def letters_for(self, account_id: int) -> List[Dict[str, Any]]:
        with self._lock:
            return [
                dict(row) for _, row in sorted(self._letters.items())
                if row['public'] or account_id in (row['sender_id'], row['receiver_id'])
            ]

    def public_letters(self) -> List[Dict[str, Any]]:
        with self._lock:
            return [dict(row) for _, row in sorted(self._letters.items()) if row['public']]

    @contextmanager
    def atomic(self):
        """Atomic block; the store lock is held until it ends"""
        with self._lock:
            with super().atomic():
                yield

    def begin_transaction(self) -> None:
        with self._lock:
            if self._snapshot is None:
                self._snapshot = copy.deepcopy((
                    self._clock, self._accounts, self._transactions, self._letters,
                    self._next_transaction_id, self._next_letter_id
                ))

    def commit(self) -> None:
        with self._lock:
            self._snapshot = None

    def rollback(self) -> None:
        with self._lock:
            if self._snapshot is not None:
                (self._clock, self._accounts, self._transactions, self._letters,
                 self._next_transaction_id, self._next_letter_id) = self._snapshot
                self._snapshot = None

    def close(self) -> None:
        """Close store (no-op for in-memory)"""
        pass


SCHEMA = """
    CREATE TABLE IF NOT EXISTS accounts (
        id INTEGER PRIMARY KEY,
        holder TEXT NOT NULL,
        date INTEGER NOT NULL,
        password TEXT
    );
    CREATE TABLE IF NOT EXISTS transactions (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        creditor INTEGER NOT NULL,
        debitor INTEGER NOT NULL,
        amount INTEGER NOT NULL CHECK (amount >= 0),
        concept TEXT NOT NULL DEFAULT '',
        date_created INTEGER NOT NULL,
        date_due INTEGER NOT NULL,
        payed INTEGER NOT NULL DEFAULT 0,
        revoked INTEGER NOT NULL DEFAULT 0,
        CHECK (creditor <> debitor),
        CHECK (date_due >= date_created)
    );
    CREATE INDEX IF NOT EXISTS idx_transactions_creditor ON transactions(creditor);
    CREATE INDEX IF NOT EXISTS idx_transactions_debitor ON transactions(debitor);
    CREATE TABLE IF NOT EXISTS letters (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        sender INTEGER NOT NULL,
        receiver INTEGER NOT NULL,
        title TEXT NOT NULL,
        path TEXT NOT NULL,
        date INTEGER NOT NULL,
        public INTEGER NOT NULL DEFAULT 0
    );
    CREATE TABLE IF NOT EXISTS system (
        id INTEGER PRIMARY KEY CHECK (id = 1),
        clock INTEGER NOT NULL
    );
    INSERT OR IGNORE INTO system (id, clock) VALUES (1, 0);
"""

TRANSACTION_COLUMNS = """
    id, creditor AS creditor_id, debitor AS debitor_id, amount, concept,
    date_created, date_due, payed, revoked
"""

LETTER_COLUMNS = """
    id, sender AS sender_id, receiver AS receiver_id, title, path, date, public
"""


class SQLiteLedgerStore(LedgerStore):
    """SQLite store implementation for persistence"""

    def __init__(self, db_path: Union[str, Path] = ":memory:"):
        self.db_path = str(db_path)
        self._lock = threading.RLock()
        self._in_transaction = False
        try:
            self._connection = sqlite3.connect(self.db_path, check_same_thread=False,
                                               isolation_level='DEFERRED')
            self._connection.row_factory = sqlite3.Row

            # Enable WAL mode for better concurrent access
            if self.db_path != ":memory:":
                self._connection.execute("PRAGMA journal_mode = WAL")
                self._connection.execute("PRAGMA synchronous = NORMAL")
            self._connection.executescript(SCHEMA)
            self._connection.commit()
        except sqlite3.Error as e:
            raise StoreUnavailable(f"Cannot open ledger store {self.db_path}: {e}") from e

    @contextmanager
    def _guard(self):
        """Serialize access to the connection and surface driver errors"""
        with self._lock:
            if self._connection is None:
                raise StoreUnavailable("Ledger store is closed")
            conn = self._connection
            try:
                yield conn
            except sqlite3.Error as e:
                if not self._in_transaction and conn.in_transaction:
                    conn.rollback()
                raise StoreUnavailable(str(e)) from e
            except OverflowError as e:
                # SQLite INTEGER is a signed 64-bit value
                if not self._in_transaction and conn.in_transaction:
                    conn.rollback()
                raise InvalidInput(f"Value out of range: {e}") from e

    def _write(self, sql: str, params: tuple = ()) -> sqlite3.Cursor:
        with self._guard() as conn:
            cursor = conn.execute(sql, params)

            # Only commit if not in transaction
            if not self._in_transaction:
                conn.commit()
            return cursor

    def _fetch_one(self, sql: str, params: tuple = ()) -> Optional[Dict[str, Any]]:
        with self._guard() as conn:
            row = conn.execute(sql, params).fetchone()
            return dict(row) if row else None

    def _fetch_all(self, sql: str, params: tuple = ()) -> List[Dict[str, Any]]:
        with self._guard() as conn:
            return [dict(row) for row in conn.execute(sql, params).fetchall()]

    @staticmethod
    def _transaction_row(row: Dict[str, Any]) -> Dict[str, Any]:
        row['payed'] = bool(row['payed'])
        row['revoked'] = bool(row['revoked'])
        return row

    @staticmethod
    def _letter_row(row: Dict[str, Any]) -> Dict[str, Any]:
        row['public'] = bool(row['public'])
        return row

    def read_clock(self) -> int:
        row = self._fetch_one("SELECT clock FROM system WHERE id = 1")
        if row is None:
            raise StoreUnavailable("System clock row is missing")
        return row['clock']

    def write_clock(self, tick: int) -> None:
        self._write("UPDATE system SET clock = ? WHERE id = 1", (tick,))

    def load_account(self, account_id: int) -> Optional[Dict[str, Any]]:
        return self._fetch_one(
            "SELECT id, holder, date AS registration_date FROM accounts WHERE id = ?",
            (account_id,)
        )

    def load_accounts(self) -> List[Dict[str, Any]]:
        return self._fetch_all(
            "SELECT id, holder, date AS registration_date FROM accounts ORDER BY id"
        )

    def insert_account(self, holder: str, registration_date: int,
                       account_id: Optional[int] = None,
                       password_hash: Optional[str] = None) -> int:
        with self._guard() as conn:
            if account_id is None:
                row = conn.execute("SELECT COALESCE(MAX(id), 0) + 1 AS next_id FROM accounts "
                                   "WHERE id >= 0").fetchone()
                account_id = row['next_id']
            try:
                conn.execute(
                    "INSERT INTO accounts (id, holder, date, password) VALUES (?, ?, ?, ?)",
                    (account_id, holder, registration_date, password_hash)
                )
            except sqlite3.IntegrityError as e:
                if not self._in_transaction:
                    conn.rollback()
                raise AccountAlreadyExists(f"Account {account_id} already exists") from e
            if not self._in_transaction:
                conn.commit()
            return account_id

    def load_password_hash(self, account_id: int) -> Optional[str]:
        row = self._fetch_one("SELECT password FROM accounts WHERE id = ?", (account_id,))
        return row['password'] if row else None

    def save_password_hash(self, account_id: int, password_hash: str) -> None:
        self._write("UPDATE accounts SET password = ? WHERE id = ?", (password_hash, account_id))

    def insert_transaction(self, data: Dict[str, Any]) -> int:
        cursor = self._write("""
            INSERT INTO transactions
            (creditor, debitor, amount, concept, date_created, date_due, payed, revoked)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        """, (data['creditor_id'], data['debitor_id'], data['amount'], data['concept'],
              data['date_created'], data['date_due'], int(data['payed']), int(data['revoked'])))
        return cursor.lastrowid

    def load_transaction(self, transaction_id: int) -> Optional[Dict[str, Any]]:
        row = self._fetch_one(
            f"SELECT {TRANSACTION_COLUMNS} FROM transactions WHERE id = ?", (transaction_id,)
        )
        return self._transaction_row(row) if row else None

    def set_revoked(self, transaction_id: int) -> None:
        self._write("UPDATE transactions SET revoked = 1 WHERE id = ?", (transaction_id,))

    def set_payed(self, transaction_id: int) -> None:
        self._write("UPDATE transactions SET payed = 1 WHERE id = ?", (transaction_id,))

    def sum_credits(self, account_id: int) -> int:
        row = self._fetch_one(
            "SELECT COALESCE(SUM(amount), 0) AS total FROM transactions "
            "WHERE creditor = ? AND payed = 1 AND revoked = 0", (account_id,)
        )
        return row['total'] if row else 0

    def sum_debits(self, account_id: int) -> int:
        row = self._fetch_one(
            "SELECT COALESCE(SUM(amount), 0) AS total FROM transactions "
            "WHERE debitor = ? AND payed = 1 AND revoked = 0", (account_id,)
        )
        return row['total'] if row else 0

    def live_transactions_for(self, account_id: int) -> List[Dict[str, Any]]:
        rows = self._fetch_all(
            f"SELECT {TRANSACTION_COLUMNS} FROM transactions "
            "WHERE (debitor = ? OR creditor = ?) AND revoked = 0 ORDER BY id DESC",
            (account_id, account_id)
        )
        return [self._transaction_row(row) for row in rows]

    def settleable_transactions(self, tick: int) -> List[Dict[str, Any]]:
        rows = self._fetch_all(
            f"SELECT {TRANSACTION_COLUMNS} FROM transactions "
            "WHERE payed = 0 AND revoked = 0 AND date_due <= ? ORDER BY id",
            (tick,)
        )
        return [self._transaction_row(row) for row in rows]

    def insert_letter(self, data: Dict[str, Any]) -> int:
        cursor = self._write("""
            INSERT INTO letters (sender, receiver, title, path, date, public)
            VALUES (?, ?, ?, ?, ?, ?)
        """, (data['sender_id'], data['receiver_id'], data['title'], data['path'],
              data['date'], int(data['public'])))
        return cursor.lastrowid

    def load_letter(self, letter_id: int) -> Optional[Dict[str, Any]]:
        row = self._fetch_one(f"SELECT {LETTER_COLUMNS} FROM letters WHERE id = ?", (letter_id,))
        return self._letter_row(row) if row else None

    def letters_for(self, account_id: int) -> List[Dict[str, Any]]:
        rows = self._fetch_all(
            f"SELECT {LETTER_COLUMNS} FROM letters "
            "WHERE sender = ? OR receiver = ? OR public = 1 ORDER BY id ASC",
            (account_id, account_id)
        )
        return [self._letter_row(row) for row in rows]

    def public_letters(self) -> List[Dict[str, Any]]:
        rows = self._fetch_all(f"SELECT {LETTER_COLUMNS} FROM letters WHERE public = 1 ORDER BY id ASC")
        return [self._letter_row(row) for row in rows]

    @contextmanager
    def atomic(self):
        """Atomic block; the connection lock is held until it ends"""
        with self._lock:
            with super().atomic():
                yield

    def begin_transaction(self) -> None:
        """Start a database transaction"""
        with self._lock:
            if not self._in_transaction:
                # SQLite with isolation_level='DEFERRED' starts the transaction
                # on the first write; we only track the state
                self._in_transaction = True

    def commit(self) -> None:
        """Commit current transaction"""
        with self._guard() as conn:
            if self._in_transaction:
                conn.commit()
                self._in_transaction = False

    def rollback(self) -> None:
        """Rollback current transaction"""
        with self._guard() as conn:
            if self._in_transaction:
                conn.rollback()
                self._in_transaction = False

    def close(self) -> None:
        """Close SQLite connection"""
        with self._lock:
            if self._connection:
                self._connection.close()
                self._connection = None
