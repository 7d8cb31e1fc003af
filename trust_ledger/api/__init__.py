"""
Trust Ledger API Application Factory
"""

from typing import List, Optional, Tuple, Type

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse
import uvicorn

from .. import __version__
from ..config import get_config
from ..errors import (
    Conflict, InsufficientFunds, LedgerError, NotFound, RevocationNotAllowed,
    StoreUnavailable, Unauthorized, ValidationFailed
)
from ..logging_config import get_logger, setup_logging
from ..messages import get_message, pick_language
from .accounts import router as accounts_router
from .admin import router as admin_router
from .auth import router as auth_router
from .dependencies import LedgerSystem, get_ledger_system
from .mailbox import router as mailbox_router
from .transactions import router as transactions_router


logger = get_logger("trust_ledger.api")

# Most specific first
ERROR_STATUS: List[Tuple[Type[LedgerError], int]] = [
    (RevocationNotAllowed, 403),
    (Unauthorized, 401),
    (NotFound, 404),
    (ValidationFailed, 400),
    (InsufficientFunds, 409),
    (Conflict, 409),
    (StoreUnavailable, 503),
]


def status_for(error: LedgerError) -> int:
    for error_type, status in ERROR_STATUS:
        if isinstance(error, error_type):
            return status
    return 400


async def ledger_error_handler(request: Request, error: LedgerError) -> JSONResponse:
    """Translate ledger errors into localized JSON responses"""
    status = status_for(error)
    if status >= 500:
        logger.error("Ledger store failure on %s: %s", request.url.path, error)
    else:
        logger.info("Rejected %s: %s", request.url.path, error)

    lang = pick_language(request.headers.get("accept-language"), get_config().default_language)
    return JSONResponse(
        status_code=status,
        content={"detail": get_message(lang, error.code), "code": error.code}
    )


def create_app() -> FastAPI:
    """Create and configure the FastAPI application"""
    app = FastAPI(
        title="Trust Ledger API",
        description="A trust-based ledger for a closed group of account holders",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc"
    )

    app.add_exception_handler(LedgerError, ledger_error_handler)

    app.include_router(auth_router, tags=["Auth"])
    app.include_router(accounts_router, tags=["Accounts"])
    app.include_router(transactions_router, tags=["Transactions"])
    app.include_router(mailbox_router, tags=["Mailbox"])
    app.include_router(admin_router, prefix="/admin", tags=["Admin"])

    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        return {
            "status": "healthy",
            "service": "trust_ledger_api",
            "version": __version__
        }

    @app.get("/")
    async def get_api_info(system: LedgerSystem = Depends(get_ledger_system)):
        """Get API information and the current tick"""
        return {
            "name": "Trust Ledger API",
            "version": __version__,
            "clock": system.clock.current(),
            "endpoints": {
                "docs": "/docs",
                "health": "/health",
                "login": "/login",
                "account": "/account",
                "transfer": "/transfer",
                "revoke": "/revoke/{transaction_id}",
                "book": "/book",
                "send": "/send",
                "archive": "/archive",
                "admin": "/admin",
            }
        }

    return app


app = create_app()


def run_server(host: Optional[str] = None, port: Optional[int] = None) -> None:
    """Run the API with uvicorn using the configured host and port"""
    config = get_config()
    setup_logging(config.log_level, log_format=config.log_format, log_file=config.log_file)
    uvicorn.run(app, host=host or config.api_host, port=port or config.api_port)
