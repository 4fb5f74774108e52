"""Database layer for celeiro application."""

from celeiro.database.base import Database
from celeiro.database.factories import create_database, create_sqlite_database

__all__ = ["Database", "create_database", "create_sqlite_database"]
