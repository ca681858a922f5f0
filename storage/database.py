"""
Database configuration for the preference store.
Supports SQLite (default) and any other SQLAlchemy URL (e.g. PostgreSQL).
"""
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool


def create_session_factory(database_url: str) -> sessionmaker:
    """Build an engine for `database_url`, create tables, and return a session factory."""
    if database_url.startswith("postgresql"):
        engine = create_engine(database_url, pool_pre_ping=True, echo=False)
    elif database_url in ("sqlite://", "sqlite:///:memory:"):
        # In-memory SQLite needs a single shared connection
        engine = create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
            echo=False,
        )
    else:
        engine = create_engine(
            database_url,
            connect_args={"check_same_thread": False} if database_url.startswith("sqlite") else {},
            echo=False,
        )

    if database_url.startswith("sqlite"):
        @event.listens_for(engine, "connect")
        def _set_sqlite_pragma(dbapi_conn, connection_record):
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA journal_mode=WAL")
            cursor.close()

    init_db(engine)
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(engine):
    """Create all tables."""
    from storage.models import Base
    Base.metadata.create_all(bind=engine)
