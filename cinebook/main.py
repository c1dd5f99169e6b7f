import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware import Middleware

from .core.config import Settings, get_settings
from .core.logging_config import configure_logging
from .database import Database
from .exceptions import AccountError
from .models import utc_now
from .notifications import build_sender
from .routers import auth, watchlist

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None, sender=None, clock=utc_now) -> FastAPI:
    """Builds the app with its database and mail sender constructed exactly once."""
    settings = settings or get_settings()
    configure_logging(settings.LOG_LEVEL)
    database = Database(settings.DATABASE_URL)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        database.create_all()
        logger.info("Startup: Database tables checked/created")
        yield
        database.dispose()
        logger.info("Shutdown: Database connections released")

    middleware = [
        Middleware(TrustedHostMiddleware, allowed_hosts=settings.ALLOWED_HOSTS),
        Middleware(CORSMiddleware,
                   allow_origins=settings.CORS_ORIGINS,
                   allow_credentials=True,
                   allow_methods=["*"],
                   allow_headers=["*"]),

        Middleware(GZipMiddleware, minimum_size=1000)
    ]

    app = FastAPI(
        title=f"{settings.APP_NAME} Api",
        description="Movie discovery and watchlist api",
        version="1.0.0",
        lifespan=lifespan,
        middleware=middleware
    )
    app.state.settings = settings
    app.state.database = database
    app.state.sender = sender or build_sender(settings)
    app.state.clock = clock

    @app.exception_handler(AccountError)
    async def account_error_handler(request: Request, exc: AccountError):
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})

    @app.middleware("http")
    async def add_security_headers(request: Request, call_next):
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-XSS-Protection"] = "1; mode=block"
        return response

    @app.middleware("http")
    async def add_process_time_header(request: Request, call_next):
        start_time = time.time()
        response = await call_next(request)
        process_time = time.time() - start_time
        response.headers["X-Process-Time"] = str(process_time)
        return response

    app.include_router(auth.router, prefix="/auth", tags=["Authentication"])
    app.include_router(watchlist.router, prefix="/watchlist", tags=["Watchlist"])

    @app.get("/")
    def health_check():
        return {"status": "ok", "message": "Nice and Healthy"}

    return app
