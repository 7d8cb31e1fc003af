"""
Ledger Error Taxonomy

Every failure the ledger reports to a caller is a LedgerError carrying a
stable code. Business-rule and validation failures are expected and are
shown to the holder (see messages.py for the localized texts); a
StoreUnavailable is fatal for the operation in progress.
"""


class LedgerError(Exception):
    """Base class for all ledger errors"""
    code = "ledger_error"

    def __init__(self, message: str = ""):
        super().__init__(message or self.code)


class NotFound(LedgerError):
    code = "not_found"


class AccountNotFound(NotFound):
    code = "account_not_found"


class TransactionNotFound(NotFound):
    code = "transaction_not_found"


class CounterpartyNotFound(NotFound):
    code = "counterparty_not_found"


class RecipientNotFound(NotFound):
    code = "recipient_not_found"


class DocumentNotFound(NotFound):
    code = "document_not_found"


class LetterNotInInbox(NotFound):
    code = "letter_not_in_inbox"


class ValidationFailed(LedgerError):
    code = "validation_failed"


class SelfTransfer(ValidationFailed):
    code = "self_transfer"


class NegativeAmount(ValidationFailed):
    code = "negative_amount"


class PastDueDate(ValidationFailed):
    code = "past_due_date"


class InvalidInput(ValidationFailed):
    code = "invalid_input"


class PasswordMismatch(ValidationFailed):
    code = "password_mismatch"


class InsufficientFunds(LedgerError):
    code = "insufficient_funds"


class Unauthorized(LedgerError):
    code = "unauthorized"


class RevocationNotAllowed(Unauthorized):
    code = "revocation_not_allowed"


class IncorrectPassword(Unauthorized):
    code = "incorrect_password"


class SessionExpired(Unauthorized):
    code = "session_expired"


class Conflict(LedgerError):
    code = "conflict"


class AccountAlreadyExists(Conflict):
    code = "account_already_exists"


class StoreUnavailable(LedgerError):
    """The ledger store could not be read or written"""
    code = "store_unavailable"
