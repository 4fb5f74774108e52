"""Database factory functions for creating database instances."""

from typing import Optional

from celeiro.config import Settings
from celeiro.database.sqlalchemy_db import SQLAlchemyDatabase


def create_database(settings: Settings) -> SQLAlchemyDatabase:
    """Create a database from application settings.

    Args:
        settings: Application settings; DATABASE_URL picks the backend and
            PG_MAX_IDLE / PG_MAX_CONN size the pool for server databases.

    Returns:
        SQLAlchemyDatabase instance with its schema initialized
    """
    max_overflow = max(settings.PG_MAX_CONN - settings.PG_MAX_IDLE, 0)
    db = SQLAlchemyDatabase(
        settings.DATABASE_URL, pool_size=settings.PG_MAX_IDLE, max_overflow=max_overflow
    )
    db.initialize_schema()
    return db


def create_sqlite_database(database_path: Optional[str] = None) -> SQLAlchemyDatabase:
    """Create a SQLite database instance.

    Args:
        database_path: Path to SQLite database file. If None, an in-memory
            database is used.

    Returns:
        SQLAlchemyDatabase instance configured for SQLite, schema initialized
    """
    if database_path is None:
        database_url = "sqlite://"
    else:
        database_url = f"sqlite:///{database_path}"
    db = SQLAlchemyDatabase(database_url)
    db.initialize_schema()
    return db
