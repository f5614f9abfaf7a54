"""
YAO - Database Layer

Record store for authored books, kept as user documents in PostgreSQL
(SQLite through aiosqlite for tests).
"""
from db.models import Base, UserDocument
from db.postgres import PostgresClient

__all__ = [
    "Base",
    "UserDocument",
    "PostgresClient",
]
