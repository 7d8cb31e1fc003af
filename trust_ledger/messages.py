"""
Localized messages for ledger errors shown to account holders.
"""

from typing import Dict, Optional

LANG_ENGLISH = "en"
LANG_SPANISH = "es"


MESSAGES: Dict[str, Dict[str, str]] = {
    LANG_ENGLISH: {
        "account_not_found": "Account not found (you must register)",
        "transaction_not_found": "Incorrect transaction identifier",
        "counterparty_not_found": "A counterparty of this account could not be found",
        "recipient_not_found": "The account you are trying to transfer to does not exist",
        "document_not_found": "Document not found",
        "letter_not_in_inbox": "Letter not found in your inbox",
        "self_transfer": "You cannot transfer money to your own account",
        "negative_amount": "It is not possible to transfer a negative amount",
        "past_due_date": "Time travel is not possible...",
        "invalid_input": "Please enter your details correctly.",
        "password_mismatch": "The new passwords do not match",
        "insufficient_funds": "You do not have sufficient funds",
        "unauthorized": "You are not logged in",
        "revocation_not_allowed": (
            "The transaction does not meet the requirements to be revoked by you. "
            "Please contact the Bank to resolve the issue."
        ),
        "incorrect_password": "The current password is not correct",
        "session_expired": "Your session has expired, please log in again",
        "account_already_exists": "An account with that number already exists",
        "store_unavailable": "The bank is not available right now",
    },
    LANG_SPANISH: {
        "account_not_found": "Cuenta no encontrada (debe darse de alta)",
        "transaction_not_found": "Identificador de transacción erróneo",
        "counterparty_not_found": "No se encontró una de las cuentas de sus movimientos",
        "recipient_not_found": "La cuenta a la que está intentando ordenar la transferencia no existe",
        "document_not_found": "No se encontró el documento",
        "letter_not_in_inbox": "No se encontró la carta en su buzón",
        "self_transfer": "No se puede transferir dinero a su misma cuenta",
        "negative_amount": "No es posible transferir un importe negativo",
        "past_due_date": "No es posible viajar en el tiempo...",
        "invalid_input": "Introduzca sus datos correctamente.",
        "password_mismatch": "Las nuevas contraseñas no coinciden",
        "insufficient_funds": "No dispone de los fondos suficientes",
        "unauthorized": "No ha iniciado sesión",
        "revocation_not_allowed": (
            "La transacción no cumple los requerimientos para ser revocada por usted. "
            "Contacte con el Banco para resolver el problema."
        ),
        "incorrect_password": "La contraseña actual no es correcta",
        "session_expired": "Su sesión ha caducado, vuelva a identificarse",
        "account_already_exists": "Ya existe una cuenta con ese número",
        "store_unavailable": "El banco no está disponible en este momento",
    },
}


def get_message(lang: Optional[str], code: str) -> str:
    """Return the message for an error code, or the code itself if unknown"""
    return MESSAGES.get(lang or "", {}).get(code, code)


def pick_language(accept_language: Optional[str], default: str = LANG_SPANISH) -> str:
    """Choose the first supported language from an Accept-Language header"""
    if not accept_language:
        return default
    for part in accept_language.split(","):
        tag = part.split(";")[0].strip().lower()
        primary = tag.split("-")[0]
        if primary in MESSAGES:
            return primary
    return default
