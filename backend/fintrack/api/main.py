from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from fintrack.api.deps import LedgerContext, build_context
from fintrack.errors import ConstraintViolation, NotFoundError, PersistenceError, ValidationError
from fintrack.settings import get_settings

from fintrack.api.routes.health import router as health_router
from fintrack.api.routes.accounts import router as accounts_router
from fintrack.api.routes.expenses import router as expenses_router
from fintrack.api.routes.incomes import router as incomes_router
from fintrack.api.routes.summary import router as summary_router

logger = logging.getLogger(__name__)


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(ValidationError)
    async def _validation_error(_: Request, exc: ValidationError) -> JSONResponse:
        return JSONResponse(status_code=422, content={"detail": str(exc)})

    @app.exception_handler(NotFoundError)
    async def _not_found(_: Request, exc: NotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(ConstraintViolation)
    async def _constraint_violation(_: Request, exc: ConstraintViolation) -> JSONResponse:
        logger.info("Constraint violation: %s", exc)
        return JSONResponse(status_code=409, content={"detail": str(exc)})

    @app.exception_handler(PersistenceError)
    async def _persistence_error(_: Request, exc: PersistenceError) -> JSONResponse:
        return JSONResponse(status_code=500, content={"detail": str(exc)})


def create_app(ledger: Optional[LedgerContext] = None) -> FastAPI:
    if ledger is None:
        settings = get_settings()
        logging.basicConfig(
            level=settings.log_level,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
        ledger = build_context(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # hors de la boucle async : le démarrage n'attend pas le provider
        if ledger.start_rate_refresh() is not None:
            logger.info("Exchange rate refresh started in background")
        yield

    app = FastAPI(title="FINTRACK API", version="0.1.0", lifespan=lifespan)
    app.state.ledger = ledger

    _register_error_handlers(app)

    app.include_router(health_router)
    app.include_router(accounts_router)
    app.include_router(expenses_router)
    app.include_router(incomes_router)
    app.include_router(summary_router)
    return app
