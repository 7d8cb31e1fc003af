"""
Test suite for letters between holders
"""

from pathlib import Path

import pytest

from trust_ledger.accounts import AccountView
from trust_ledger.clock import StoreClock
from trust_ledger.errors import (
    AccountNotFound, DocumentNotFound, InvalidInput, LetterNotInInbox, StoreUnavailable
)
from trust_ledger.mailbox import FILENAME_PART_MAX_LEN, Mailbox, render_markdown, safe_filename
from trust_ledger.seed import seed
from trust_ledger.storage import InMemoryLedgerStore


class FailingLetterStore(InMemoryLedgerStore):
    """Store that cannot record letters"""

    def insert_letter(self, data):
        raise StoreUnavailable("disk full")


class TestHelpers:

    def test_safe_filename(self):
        assert safe_filename("Hello world") == "Hello world"
        assert safe_filename(" .. ") == "untitled"

        cleaned = safe_filename("a/b\\c:d?")
        for char in "/\\:?":
            assert char not in cleaned
        assert cleaned.startswith("a_b")

    def test_safe_filename_reserved_and_long_names(self):
        assert safe_filename("CON").upper() != "CON"
        assert len(safe_filename("x" * 500)) <= FILENAME_PART_MAX_LEN

    def test_render_markdown(self):
        html = render_markdown("# Title\n\nSome *text*")
        assert "<h1" in html
        assert "<em>text</em>" in html


class TestMailbox:
    """Test sending and reading letters"""

    @pytest.fixture(autouse=True)
    def mailbox(self, tmp_path):
        self.store = InMemoryLedgerStore()
        opened = seed(self.store, ["Alice", "Bob", "Carol"])
        self.alice = opened["Alice"]
        self.bob = opened["Bob"]
        self.carol = opened["Carol"]
        self.store.write_clock(3)

        self.letters_dir = tmp_path / "letters"
        self.archive_dir = tmp_path / "archive"
        self.mailbox = Mailbox(self.store, AccountView(self.store), StoreClock(self.store),
                               letters_dir=self.letters_dir, archive_dir=self.archive_dir)

    def test_send_writes_file_and_row(self):
        letter = self.mailbox.send(self.alice, self.bob, "Thanks", "Thanks for *lunch*")

        path = Path(letter.path)
        assert path.exists()
        assert path.read_text(encoding="utf-8") == "Thanks for *lunch*"
        assert path.parent == self.letters_dir / f"{self.alice}-Alice"
        assert path.name.startswith("3-")
        assert path.name.endswith(f"_Thanks_to_{self.bob}.txt")

        assert letter.date == 3
        assert letter.public is False
        assert letter.sender_name == "Alice"
        assert self.store.load_letter(letter.id)['title'] == "Thanks"
        assert not self.archive_dir.exists()

    def test_send_requires_title(self):
        with pytest.raises(InvalidInput):
            self.mailbox.send(self.alice, self.bob, " ", "body")

    def test_send_to_unknown_account(self):
        with pytest.raises(AccountNotFound):
            self.mailbox.send(self.alice, 404, "Hi", "body")

    def test_receiver_reads_rendered_letter(self):
        sent = self.mailbox.send(self.alice, self.bob, "Note", "# Dear Bob")

        letter = self.mailbox.read(self.bob, sent.id)
        assert letter.body == "# Dear Bob"
        assert "<h1" in letter.html
        assert letter.sender_name == "Alice"
        assert letter.receiver_name == "Bob"

    def test_sender_can_read_own_letter(self):
        sent = self.mailbox.send(self.alice, self.bob, "Note", "text")
        assert self.mailbox.read(self.alice, sent.id).body == "text"

    def test_others_cannot_read_private_letter(self):
        sent = self.mailbox.send(self.alice, self.bob, "Note", "text")
        with pytest.raises(LetterNotInInbox):
            self.mailbox.read(self.carol, sent.id)

    def test_public_letter_is_archived(self):
        sent = self.mailbox.send(self.alice, self.bob, "Decree", "All hail", public=True)

        archived = self.archive_dir / f"{self.alice}-{Path(sent.path).name}"
        assert archived.read_text(encoding="utf-8") == "All hail"

        [entry] = self.mailbox.archive()
        assert entry.id == sent.id
        assert entry.path == str(archived)
        assert entry.sender_name == "Alice"

        # Anyone can read it
        assert self.mailbox.read(self.carol, sent.id).body == "All hail"
        assert self.mailbox.document(sent.id).html.startswith("<p>")

    def test_private_letter_is_not_a_document(self):
        sent = self.mailbox.send(self.alice, self.bob, "Note", "text")
        with pytest.raises(DocumentNotFound):
            self.mailbox.document(sent.id)
        with pytest.raises(DocumentNotFound):
            self.mailbox.document(9999)

    def test_letters_with_same_title_keep_their_bodies(self):
        first = self.mailbox.send(self.alice, self.bob, "Hello", "first body")
        second = self.mailbox.send(self.alice, self.bob, "Hello", "second body")

        assert first.path != second.path
        assert self.mailbox.read(self.bob, first.id).body == "first body"
        assert self.mailbox.read(self.bob, second.id).body == "second body"

    def test_public_letters_from_different_senders_archive_apart(self):
        from_alice = self.mailbox.send(self.alice, self.bob, "News", "from Alice", public=True)
        from_carol = self.mailbox.send(self.carol, self.bob, "News", "from Carol", public=True)

        paths = [entry.path for entry in self.mailbox.archive()]
        assert len(set(paths)) == 2
        assert self.mailbox.document(from_alice.id).body == "from Alice"
        assert self.mailbox.document(from_carol.id).body == "from Carol"

    def test_missing_body_file(self):
        sent = self.mailbox.send(self.alice, self.bob, "Hello", "body", public=True)
        Path(sent.path).unlink()

        with pytest.raises(DocumentNotFound):
            self.mailbox.read(self.bob, sent.id)
        with pytest.raises(DocumentNotFound):
            self.mailbox.document(sent.id)

    def test_undecodable_body_file(self):
        sent = self.mailbox.send(self.alice, self.bob, "Hello", "body")
        Path(sent.path).write_bytes(b"\xff\xfe\xfa")

        with pytest.raises(StoreUnavailable):
            self.mailbox.read(self.bob, sent.id)

    def test_failed_insert_leaves_no_files(self):
        store = FailingLetterStore()
        opened = seed(store, ["Alice", "Bob"])
        mailbox = Mailbox(store, AccountView(store), StoreClock(store),
                          letters_dir=self.letters_dir, archive_dir=self.archive_dir)

        with pytest.raises(StoreUnavailable):
            mailbox.send(opened["Alice"], opened["Bob"], "Lost", "body", public=True)

        assert list(self.letters_dir.rglob("*.txt")) == []
        assert list(self.archive_dir.glob("*.txt")) == []

    def test_unwritable_letters_dir(self, tmp_path):
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("")
        mailbox = Mailbox(self.store, AccountView(self.store), StoreClock(self.store),
                          letters_dir=blocker, archive_dir=self.archive_dir)

        with pytest.raises(StoreUnavailable):
            mailbox.send(self.alice, self.bob, "Hello", "body")
        assert self.store.letters_for(self.alice) == []
