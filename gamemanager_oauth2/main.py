from contextlib import asynccontextmanager
from datetime import timedelta
from logging import getLogger
from typing import AsyncIterator, Callable, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response

from .app_logging import setup_logger
from .authentication import login_error_handler, router as auth_router
from .config import DEFAULT_JWT_SECRET, SERVICE_NAME, Settings, load_settings
from .credentials import SignedCredentialService
from .db import create_db_engine, create_tables
from .exceptions import LoginError
from .identity import IdentityExchanger
from .login import LoginOrchestrator


def create_app(settings: Optional[Settings] = None,
               exchanger: Optional[IdentityExchanger] = None) -> FastAPI:
    if settings is None:
        settings = load_settings()
    setup_logger(settings.log_level)
    logger = getLogger(__name__)

    jwt_secret = settings.jwt_secret.get_secret_value()
    if not jwt_secret or jwt_secret == DEFAULT_JWT_SECRET:
        if settings.is_production:
            logger.error("JWT_SECRET needs to be set correctly.")
            raise ValueError("JWT_SECRET is not set correctly.")
        logger.warning("JWT_SECRET is the development default. Do not use this in production.")

    if exchanger is None:
        exchanger = IdentityExchanger(
            settings.google_client_id,
            settings.google_client_secret.get_secret_value(),
            settings.google_redirect_url,
        )
    if not exchanger.is_configured:
        logger.warning("Google OAuth client id/secret are not set; /auth/login will fail.")

    credentials = SignedCredentialService(
        jwt_secret, timedelta(hours=settings.jwt_expiry_hours))

    engine = create_db_engine(settings.database_url)
    create_tables(engine)
    logger.info("Database tables ready")

    logger.info(f"ENV: {settings.env}")
    logger.info(f"CALLBACK_URL: {settings.google_redirect_url}")
    logger.info(f"JWT_EXPIRY_HOURS: {settings.jwt_expiry_hours}")

    @asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
        yield
        logger.info("Shutting down, disposing database engine")
        engine.dispose()

    app = FastAPI(
        lifespan=lifespan,
        settings=settings,
        engine=engine,
        credentials=credentials,
        login=LoginOrchestrator(exchanger, credentials),
    )

    if settings.cors_origins:
        logger.info(f"cors origins: {','.join(settings.cors_origins)}")
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.add_exception_handler(LoginError, login_error_handler)
    app.include_router(auth_router)

    @app.middleware("http")
    async def apply_response_headers(request: Request, call_next: Callable) -> Response:
        """Apply response headers to all responses.
           Prevent UI redress attacks.
        """
        response: Response = await call_next(request)
        response.headers['Content-Security-Policy'] = "frame-ancestors 'none'"
        response.headers['X-Frame-Options'] = 'DENY'
        return response

    @app.get("/health")
    async def health() -> dict:
        return {"status": "healthy", "service": SERVICE_NAME}

    return app
