"""Database package."""
from tagvault.db.base import Base
from tagvault.db.session import AsyncSessionLocal, engine, get_session

__all__ = ["Base", "AsyncSessionLocal", "engine", "get_session"]
