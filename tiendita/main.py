"""FastAPI application wiring for the MiTienditaMX API."""

from __future__ import annotations

from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Response
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from psycopg_pool import AsyncConnectionPool

from .api.errors import register_exception_handlers
from .api.items import router as items_router
from .api.routes import router as accounts_router
from .config import Settings, get_settings
from .domain.catalog import CatalogService
from .domain.service import AccountService, AddressMutator, AuthenticationService
from .repository import AccountRepository, ItemRepository, ensure_schema
from .security.passwords import CredentialHasher
from .security.tokens import SessionTokenIssuer

logger = logging.getLogger(__name__)

settings = get_settings()


def wire_services(
    app: FastAPI,
    accounts: AccountRepository,
    items: ItemRepository,
    settings: Settings,
) -> None:
    """Build services from one settings object and attach them to ``app.state``."""
    hasher = CredentialHasher(rounds=settings.bcrypt_rounds)
    issuer = SessionTokenIssuer.from_settings(settings)

    app.state.token_issuer = issuer
    app.state.authentication_service = AuthenticationService(accounts, hasher, issuer)
    app.state.address_mutator = AddressMutator(accounts)
    app.state.account_service = AccountService(accounts, hasher)
    app.state.catalog_service = CatalogService(items)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialise shared resources (Postgres pool, services) for the app lifecycle."""
    pool = AsyncConnectionPool(settings.database_url, open=False)
    await pool.open()
    app.state.pool = pool
    if settings.auto_create_schema:
        await ensure_schema(pool)
    wire_services(app, AccountRepository(pool), ItemRepository(pool), settings)
    logger.info("%s %s ready", settings.app_name, settings.version)
    try:
        yield
    finally:
        await pool.close()


app = FastAPI(title=settings.app_name, version=settings.version, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
    max_age=600,
)

register_exception_handlers(app)


@app.get("/healthz", tags=["health"])
def healthz() -> dict[str, str]:
    """Return a minimal readiness indicator used by orchestration systems."""
    return {"status": "ok"}


@app.get("/metrics", include_in_schema=False)
def metrics() -> Response:
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


app.include_router(accounts_router)
app.include_router(items_router)
