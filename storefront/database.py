# storefront/database.py
from sqlalchemy.engine import Engine
from sqlmodel import SQLModel, create_engine, Session

from storefront.core.config import get_settings

settings = get_settings()


def with_sslmode(url: str) -> str:
    """Force sslmode=require on Postgres URLs that do not set it."""
    if "sslmode=" in url:
        return url
    separator = "&" if "?" in url else "?"
    return f"{url}{separator}sslmode=require"


def build_engine(url: str, echo: bool = False) -> Engine:
    """
    SQLite (local dev) gets a thread-agnostic connection.

    Postgres goes through a session-mode pooler that caps client count,
    so each process holds a single pre-pinged connection.
    """
    if url.startswith("sqlite"):
        return create_engine(url, echo=echo, connect_args={"check_same_thread": False})

    return create_engine(
        with_sslmode(url),
        echo=echo,
        pool_pre_ping=True,
        pool_size=1,
        max_overflow=0,
    )


engine = build_engine(settings.DATABASE_URL, echo=settings.DB_ECHO)


def create_db_and_tables() -> None:
    """Create every storefront table that does not exist yet (startup only)."""
    SQLModel.metadata.create_all(engine)


def get_session():
    """
    FastAPI dependency: one Session per request.

    Repositories never open their own sessions; services decide when to
    commit.
    """
    with Session(engine) as session:
        yield session
