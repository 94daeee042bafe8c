# ledger/main.py
# FastAPI application factory and core setup

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import __version__
from .auth import PasswordHasher, TokenService
from .config import LEGACY_31_DAY, Settings, get_settings
from .errors import register_error_handlers
from .models import Database
from .routers import auth, expenses

logger = logging.getLogger(__name__)


def configure_logging(level: str):
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def create_app(settings: Settings = None, database: Database = None) -> FastAPI:
    """Build the application.

    The database handle and token service are created once here and live on
    ``app.state`` for the lifetime of the process. Any failure (missing
    secret, unreachable database) propagates and aborts startup.
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    token_service = TokenService(settings.jwt_secret, settings.token_ttl_minutes, settings.jwt_algorithm)
    if database is None:
        database = Database(settings.database_url, echo=settings.sql_echo)
    database.connect()

    if settings.month_window_policy == LEGACY_31_DAY:
        logger.warning("Month filters use the legacy 31-day window, not calendar months")

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        database.dispose()

    app = FastAPI(
        title="Ledger API",
        description="Personal-finance ledger with token authentication",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.database = database
    app.state.token_service = token_service
    app.state.password_hasher = PasswordHasher(settings.bcrypt_rounds)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_error_handlers(app)

    app.include_router(auth.router, tags=["auth"])
    app.include_router(expenses.router, tags=["expenses"])

    @app.get("/health")
    def health_check():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "version": __version__,
        }

    logger.info("Ledger API %s ready", __version__)
    return app
