"""Persistence layer: declarative base and session management."""

from journey.storage.db import Database, db, get_database
from journey.storage.models import Base, utcnow

__all__ = ["Base", "Database", "db", "get_database", "utcnow"]
