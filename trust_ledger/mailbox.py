"""
Mailbox Module

Letters between account holders. The letter body is a markdown file on disk;
the store only keeps its metadata. Public letters are also copied into an
archive directory anyone can browse.
"""

import shutil
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Union

import markdown
from pathvalidate import sanitize_filename

from .accounts import AccountView
from .clock import Clock
from .errors import DocumentNotFound, InvalidInput, LetterNotInInbox, StoreUnavailable
from .logging_config import get_logger, log_action
from .models import Letter
from .storage import LedgerStore


MARKDOWN_EXTENSIONS = ["extra", "toc", "smarty"]

# Room is left for the tick, date and receiver around the title
FILENAME_PART_MAX_LEN = 100


def safe_filename(title: str) -> str:
    """Turn a letter title or holder name into something usable in a file name"""
    name = sanitize_filename(
        title.strip(" ."), replacement_text="_", max_len=FILENAME_PART_MAX_LEN
    ).strip(" .")
    return name or "untitled"


def render_markdown(text: str) -> str:
    return markdown.markdown(text, extensions=MARKDOWN_EXTENSIONS)


class Mailbox:
    """Sends, lists and renders letters"""

    def __init__(
        self,
        store: LedgerStore,
        accounts: AccountView,
        clock: Clock,
        letters_dir: Union[str, Path] = "bank/letters",
        archive_dir: Union[str, Path] = "static/archive"
    ):
        self.store = store
        self.accounts = accounts
        self.clock = clock
        self.letters_dir = Path(letters_dir)
        self.archive_dir = Path(archive_dir)
        self.logger = get_logger("trust_ledger.mailbox")

    def send(
        self,
        sender_id: int,
        receiver_id: int,
        title: str,
        body: str,
        public: bool = False
    ) -> Letter:
        """
        Write a letter to another holder

        Args:
            sender_id: Account sending the letter
            receiver_id: Account receiving it
            title: Letter title, also used in the file name
            body: Markdown text
            public: Also publish the letter in the archive

        Returns:
            The stored Letter

        Raises:
            AccountNotFound: If the sender or receiver does not exist
            InvalidInput: If the title is empty
            StoreUnavailable: If the letter cannot be written
        """
        if not title or not title.strip():
            raise InvalidInput("A letter needs a title")

        sender = self.accounts.holder(sender_id)
        self.accounts.holder(receiver_id)

        today = self.clock.current()
        now = datetime.now(timezone.utc)
        directory = self.letters_dir / f"{sender_id}-{safe_filename(sender)}"
        stem = f"{today}-{now.strftime('%Y_%m_%d')}_{safe_filename(title)}_to_{receiver_id}"

        written: List[Path] = []
        try:
            path = self._write_new(directory, stem, body)
            written.append(path)
            if public:
                archived = self._archive_path(sender_id, path)
                self.archive_dir.mkdir(parents=True, exist_ok=True)
                shutil.copyfile(path, archived)
                written.append(archived)

            data = {
                'sender_id': sender_id,
                'receiver_id': receiver_id,
                'title': title,
                'path': str(path),
                'date': today,
                'public': public,
            }
            data['id'] = self.store.insert_letter(data)
        except Exception as e:
            for leftover in written:
                leftover.unlink(missing_ok=True)
            if isinstance(e, OSError):
                raise StoreUnavailable(f"Cannot write letter {title!r}: {e}") from e
            raise

        log_action(
            self.logger, "info", f"Received letter from {sender} at date {today}: {title}",
            user_id=sender_id, action="send_letter", resource=f"letter:{data['id']}",
            extra={"receiver": receiver_id, "public": public}
        )

        letter = Letter.from_dict(data)
        letter.sender_name = sender
        return letter

    def read(self, account_id: int, letter_id: int) -> Letter:
        """
        Open a letter from the account's inbox

        Raises:
            LetterNotInInbox: If the account did not send or receive it and it is not public
            DocumentNotFound: If the letter body is missing on disk
        """
        for letter in self.accounts.letters(account_id):
            if letter.id == letter_id:
                break
        else:
            raise LetterNotInInbox(f"Letter {letter_id} is not in the inbox of account {account_id}")

        letter.sender_name = self.accounts.holder(letter.sender_id)
        letter.receiver_name = self.accounts.holder(letter.receiver_id)
        return self._render(letter, Path(letter.path))

    def archive(self) -> List[Letter]:
        """Public letters, pointing at their archived copy"""
        letters = []
        for data in self.store.public_letters():
            letter = Letter.from_dict(data)
            letter.path = str(self._archive_path(letter.sender_id, Path(letter.path)))
            letter.sender_name = self.accounts.holder(letter.sender_id)
            letters.append(letter)
        return letters

    def document(self, letter_id: int) -> Letter:
        """
        Render a public letter for anyone

        Raises:
            DocumentNotFound: If there is no public letter with that id, or its body is missing
        """
        data = self.store.load_letter(letter_id)
        if not data or not data['public']:
            raise DocumentNotFound(f"Document {letter_id} not found")

        letter = Letter.from_dict(data)
        letter.sender_name = self.accounts.holder(letter.sender_id)
        return self._render(letter, Path(letter.path))

    def _archive_path(self, sender_id: int, path: Path) -> Path:
        return self.archive_dir / f"{sender_id}-{path.name}"

    def _write_new(self, directory: Path, stem: str, body: str) -> Path:
        """Write the body to a file that did not exist yet, numbering the name on clashes"""
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / f"{stem}.txt"
        counter = 1
        while True:
            try:
                handle = path.open("x", encoding="utf-8")
            except FileExistsError:
                counter += 1
                path = directory / f"{stem}-{counter}.txt"
                continue
            try:
                with handle:
                    handle.write(body)
            except OSError:
                path.unlink(missing_ok=True)
                raise
            return path

    def _render(self, letter: Letter, path: Path) -> Letter:
        self.logger.debug("Reading file %s", path)
        try:
            letter.body = path.read_text(encoding="utf-8")
        except FileNotFoundError as e:
            raise DocumentNotFound(f"Body of letter {letter.id} is missing at {path}") from e
        except (OSError, UnicodeDecodeError) as e:
            raise StoreUnavailable(f"Cannot read body of letter {letter.id}: {e}") from e
        letter.html = render_markdown(letter.body)
        return letter
