"""
Engine, session factory and declarative base.

DATABASE_URL selects the backend: PostgreSQL in deployment, a local
SQLite file otherwise. Routes get a session per request through get_db().
"""

import os
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, DeclarativeBase

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./deptquiz.db")


def set_sqlite_pragma(dbapi_connection, connection_record):
    """WAL for concurrent readers, and SQLite only enforces FKs when asked."""
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_engine(url: str, **overrides):
    """
    Create an engine with the pool settings that suit ``url``.

    SQLite engines get the pragma hook and may be shared across threads;
    PostgreSQL engines get a pre-pinged pool. ``overrides`` win over both.
    """
    options = {"echo": False}
    if url.startswith("postgresql"):
        options.update(pool_size=10, max_overflow=20, pool_pre_ping=True)
    elif url.startswith("sqlite"):
        options["connect_args"] = {"check_same_thread": False}
    options.update(overrides)

    built = create_engine(url, **options)
    if url.startswith("sqlite"):
        event.listen(built, "connect", set_sqlite_pragma)
    return built


engine = build_engine(DATABASE_URL)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class Base(DeclarativeBase):
    pass


def get_db():
    """FastAPI dependency: one session per request, always closed."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def create_tables(bind=None):
    """
    Create every table on ``bind`` (default: the app engine).

    Used for SQLite and tests; PostgreSQL deployments run the alembic
    migration instead.
    """
    import deptquiz.models  # noqa: F401  registers the mappers on Base.metadata

    Base.metadata.create_all(bind=bind or engine)
