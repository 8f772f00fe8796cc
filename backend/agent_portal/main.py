import logging
import traceback
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.engine import Engine
from starlette.exceptions import HTTPException as StarletteHTTPException

from agent_portal.api import agents
from agent_portal.core.config import settings
from agent_portal.core.database import Base, create_db_engine, create_session_factory
from agent_portal.core.errors import DataUnavailable, PortalError
from agent_portal.services.gateway import DataStoreGateway

logger = logging.getLogger(__name__)


def init_database(engine: Engine):
    """Create tables that do not exist yet."""
    from agent_portal import models  # noqa: F401  register tables with Base.metadata

    logger.info("Creating database tables...")
    Base.metadata.create_all(bind=engine)
    logger.info(f"Registered {len(Base.metadata.tables)} tables")


def create_app(gateway: Optional[DataStoreGateway] = None) -> FastAPI:
    """Build the app. Tests pass their own gateway; otherwise the lifespan creates one."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        engine = None
        if gateway is None:
            engine = create_db_engine(settings)
            if settings.AUTO_CREATE_TABLES:
                init_database(engine)
            app.state.gateway = DataStoreGateway(create_session_factory(engine))
        else:
            app.state.gateway = gateway
        logger.info("Data store gateway ready")

        yield

        if engine is not None:
            app.state.gateway.shutdown()
            engine.dispose()

    # Disable API docs in production
    docs_url = "/docs" if settings.ENVIRONMENT != "production" else None
    redoc_url = "/redoc" if settings.ENVIRONMENT != "production" else None

    app = FastAPI(
        title=settings.APP_NAME,
        description="Agent portal - retailers, commission summaries and statements",
        version="1.0.0",
        lifespan=lifespan,
        docs_url=docs_url,
        redoc_url=redoc_url,
    )
    if gateway is not None:
        app.state.gateway = gateway

    # Always answer JSON, never leak storage internals
    @app.exception_handler(PortalError)
    async def portal_exception_handler(request, exc: PortalError):
        content = {"detail": exc.detail}
        if isinstance(exc, DataUnavailable):
            content["retryable"] = True
        return JSONResponse(status_code=exc.status_code, content=content)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request, exc):
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request, exc):
        logger.error("Unhandled exception: %s\n%s", exc, traceback.format_exc())
        return JSONResponse(status_code=500, content={"detail": "Internal error"})

    # CORS - local dev + configured frontend
    allowed_origins = ["http://localhost:3000"]
    if settings.FRONTEND_URL and settings.FRONTEND_URL not in allowed_origins:
        allowed_origins.append(settings.FRONTEND_URL)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    def health_check():
        return {"status": "healthy", "service": "agent-portal-api", "version": "1.0.0"}

    app.include_router(agents.router)
    return app


logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)

app = create_app()
