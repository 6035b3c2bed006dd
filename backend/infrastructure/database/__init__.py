"""Async database engine, session factory and ORM models."""

from .connection import (
    Base,
    async_session_maker,
    close_db,
    engine,
    get_db,
    init_db,
)

__all__ = [
    "Base",
    "async_session_maker",
    "close_db",
    "engine",
    "get_db",
    "init_db",
]
