"""Database layer for bankimport."""

from bankimport.database.base import Database
from bankimport.database.factories import create_sqlite_database

__all__ = ["Database", "create_sqlite_database"]
