from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker
from agent_portal.core.config import Settings, settings as default_settings

# Base class for models
Base = declarative_base()


def normalize_database_url(url: str) -> str:
    # Hosted Postgres hands out postgres:// but SQLAlchemy + psycopg3 needs postgresql+psycopg://
    if url.startswith("postgres://"):
        return "postgresql+psycopg://" + url[len("postgres://"):]
    if url.startswith("postgresql://") and "+psycopg" not in url:
        return "postgresql+psycopg://" + url[len("postgresql://"):]
    return url


def create_db_engine(settings: Settings = default_settings, url: str = None) -> Engine:
    """Build the engine for the process entry point.

    Engines are not created at import time; whoever owns the process
    (the FastAPI lifespan, init_db.py, the test suite) creates one and
    hands a session factory to the data store gateway.
    """
    db_url = normalize_database_url(url or settings.DATABASE_URL)

    if db_url.startswith("sqlite"):
        # Gateway workers each open their own session from pool threads.
        # SQLite fills server_default=func.now() with UTC, while period bounds
        # are naive reference-zone times; set created_at explicitly here.
        return create_engine(
            db_url,
            connect_args={"check_same_thread": False},
            echo=False,
        )

    timeout_ms = int(settings.QUERY_TIMEOUT_SECONDS * 1000)
    return create_engine(
        db_url,
        pool_pre_ping=True,
        pool_size=settings.DATASTORE_MAX_WORKERS,
        max_overflow=10,
        echo=False,
        connect_args={
            "options": f"-c statement_timeout={timeout_ms} -c timezone={settings.TIMEZONE}",
        },
    )


def create_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine, expire_on_commit=False)
