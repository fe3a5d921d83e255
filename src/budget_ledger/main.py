from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import IntegrityError

from budget_ledger import __version__
from budget_ledger.api.deps import close_ledger_client
from budget_ledger.api.middleware.error_handler import (
    handle_generic_error,
    handle_integrity_error,
    handle_ledger_service_error,
    handle_validation_error,
)
from budget_ledger.api.middleware.logging import RequestLoggingMiddleware, configure_logging
from budget_ledger.api.v1 import router as v1_router
from budget_ledger.api.v1.health import router as health_router
from budget_ledger.config import settings
from budget_ledger.core.exceptions import LedgerServiceError


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    await close_ledger_client()


def create_app() -> FastAPI:
    configure_logging(settings.log_level, json_format=settings.app_env.lower() != "development")

    app = FastAPI(
        title="Budget Ledger API",
        description="Bank ledger sync and transaction categorization",
        version=__version__,
        debug=settings.debug,
        lifespan=lifespan,
    )

    app.add_middleware(RequestLoggingMiddleware)

    # Most specific first
    app.add_exception_handler(LedgerServiceError, handle_ledger_service_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(IntegrityError, handle_integrity_error)
    app.add_exception_handler(Exception, handle_generic_error)

    app.include_router(health_router)
    app.include_router(v1_router)

    return app


app = create_app()
