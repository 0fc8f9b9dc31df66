"""Database package — async engine, session factory, Base, and the SQL gateway."""
from bizcore.db.base import Base, build_engine, build_session_factory, get_db
from bizcore.db.gateway import QueryGateway, QueryParameterError, ScopedClient, escape_like

__all__ = [
    "Base",
    "QueryGateway",
    "QueryParameterError",
    "ScopedClient",
    "build_engine",
    "build_session_factory",
    "escape_like",
    "get_db",
]
