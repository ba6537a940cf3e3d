"""Database layer for katalis application."""

from katalis.database.base import Database
from katalis.database.factories import create_sqlite_database

__all__ = ["Database", "create_sqlite_database"]
