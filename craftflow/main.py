import logging
import secrets
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse, RedirectResponse
from starlette.middleware.sessions import SessionMiddleware

from craftflow.config import Settings, get_settings
from craftflow.core.errors import InsufficientStockError, NotFoundError, ValidationError
from craftflow.core.logging import setup_logging
from craftflow.database import Base, SessionLocal, engine
from craftflow.models import import_all_models
from craftflow.routers import (
    auth_router,
    health_router,
    notas_router,
    products_router,
    reports_router,
    sales_router,
    stock_adjustments_router,
)
from craftflow.services.ledger_service import LedgerStore, build_ledger
from craftflow.services.persistence import MemoryBlobStore, SqlBlobStore

logger = logging.getLogger(__name__)


def build_default_ledger(settings: Settings) -> LedgerStore:
    backend = settings.LEDGER_BACKEND.strip().lower()
    if backend == "memory":
        blob_store = MemoryBlobStore()
    elif backend == "sql":
        import_all_models()
        Base.metadata.create_all(bind=engine)
        blob_store = SqlBlobStore(SessionLocal)
    else:
        raise ValueError(f"Unknown LEDGER_BACKEND: {settings.LEDGER_BACKEND}")
    logger.info("Using %s ledger backend", backend)
    return build_ledger(blob_store, settings)


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(NotFoundError)
    async def not_found_handler(_request: Request, exc: NotFoundError):
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={"detail": str(exc), "product_id": exc.product_id},
        )

    @app.exception_handler(InsufficientStockError)
    async def insufficient_stock_handler(_request: Request, exc: InsufficientStockError):
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content={
                "detail": str(exc),
                "product_id": exc.product_id,
                "available": exc.available,
                "requested": exc.requested,
            },
        )

    @app.exception_handler(ValidationError)
    async def validation_handler(_request: Request, exc: ValidationError):
        return JSONResponse(
            status_code=422,
            content={"detail": str(exc), "field": exc.field},
        )


def create_app(ledger: Optional[LedgerStore] = None) -> FastAPI:
    settings = get_settings()

    @asynccontextmanager
    async def lifespan(app_: FastAPI):
        if app_.state.ledger is None:
            app_.state.ledger = build_default_ledger(settings)
        yield

    app_ = FastAPI(title=settings.APP_NAME, lifespan=lifespan)
    app_.state.ledger = ledger
    app_.add_middleware(
        SessionMiddleware,
        secret_key=settings.SESSION_SECRET or secrets.token_urlsafe(32),
        session_cookie=settings.SESSION_COOKIE,
        same_site="lax",
        https_only=settings.ENVIRONMENT.lower() != "local",
    )
    _register_error_handlers(app_)

    app_.include_router(health_router)
    app_.include_router(auth_router)
    app_.include_router(products_router)
    app_.include_router(stock_adjustments_router)
    app_.include_router(sales_router)
    app_.include_router(notas_router)
    app_.include_router(reports_router)

    @app_.get("/")
    def root():
        return RedirectResponse(url="/reports/dashboard", status_code=302)

    return app_


setup_logging()
app = create_app()


__all__ = ["app", "build_default_ledger", "create_app"]
