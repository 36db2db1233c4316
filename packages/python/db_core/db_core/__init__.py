"""Minimal MongoDB helpers shared across domain repositories.

Example usage in a domain repository:

    from db_core import get_db

    async def find_event(slug: str):
        db = await get_db()
        return await db["events"].find_one({"slug": slug})
"""

from .errors import ConfigurationError, StoreConnectionError
from .settings import MongoSettings, configure, get_settings, settings
from .mongo import ConnectionCache, get_connection_cache, get_db, mongo_lifespan, ping

__all__ = [
    "ConfigurationError",
    "StoreConnectionError",
    "MongoSettings",
    "settings",
    "configure",
    "get_settings",
    "ConnectionCache",
    "get_connection_cache",
    "get_db",
    "mongo_lifespan",
    "ping",
]
