"""
Engine and session factory for the list store.

Every request gets its own Session through *get_db*; services receive it as
an explicit argument and own its transaction boundaries.
"""
from collections.abc import Generator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from cinelist.core.config import settings


def build_engine(url: str, echo: bool = False, **engine_kwargs) -> Engine:
    """Create an engine for *url*. SQLite (local runs, tests) gets thread-safe connections."""
    if url.startswith("sqlite"):
        return create_engine(
            url,
            echo=echo,
            connect_args={"check_same_thread": False, "timeout": 30},
            **engine_kwargs,
        )
    return create_engine(url, echo=echo, pool_pre_ping=True, **engine_kwargs)


def build_session_factory(bind: Engine) -> sessionmaker:
    # Payloads are built from ORM rows after commit; don't expire them
    return sessionmaker(bind=bind, autoflush=False, expire_on_commit=False)


engine = build_engine(settings.DATABASE_URL, echo=settings.is_dev)
SessionLocal = build_session_factory(engine)


def get_db() -> Generator[Session, None, None]:
    """FastAPI dependency: one Session per request, always closed."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
