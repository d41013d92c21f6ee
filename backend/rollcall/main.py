"""FastAPI application entry point."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .auth import router as auth_router
from .config import Settings, configure_logging, get_settings
from .database import Database
from .errors import register_error_handlers
from .realtime import ScanFeed
from .routers.admin import router as admin_router
from .routers.scanner import router as scanner_router
from .routers.system import router as system_router
from .services.users import ensure_bootstrap_admin

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Ensure database tables exist and the first admin is present."""

    database: Database = app.state.database
    settings: Settings = app.state.settings

    await database.create_all()
    logger.info("Database schema ready")

    async with database.sessionmaker() as session:
        await ensure_bootstrap_admin(
            session,
            settings.bootstrap_admin_username,
            settings.bootstrap_admin_password,
        )

    yield

    await database.dispose()


def create_app(settings: Settings | None = None, database: Database | None = None) -> FastAPI:
    """
    Build the application around an explicit settings object and store.

    Missing or invalid configuration raises ConfigurationError here, so a
    misconfigured server never starts accepting requests.
    """

    settings = settings or get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(title="Roll Call Backend", version="0.1.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.database = database or Database(settings.database_url, echo=settings.echo_sql)
    app.state.scan_feed = ScanFeed()

    if settings.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    register_error_handlers(app)
    app.include_router(system_router)
    app.include_router(auth_router)
    app.include_router(admin_router)
    app.include_router(scanner_router)
    return app
