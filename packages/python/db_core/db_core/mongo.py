"""Async MongoDB helpers built on top of Motor.

Only generic utilities live here; domain repositories import these helpers and
build their own schemas and validation on top.

The connection is memoized per process by :class:`ConnectionCache`, so repeated
module initialization (for example a dev server hot reload re-importing the
repositories) never opens a second client.
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from functools import lru_cache
from typing import Any, AsyncIterator, Callable, Optional

from loguru import logger
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo.errors import ConfigurationError as PyMongoConfigurationError
from pymongo.errors import PyMongoError

from .errors import ConfigurationError, StoreConnectionError
from .settings import MongoSettings, get_settings

ClientFactory = Callable[..., AsyncIOMotorClient]


class ConnectionCache:
    """Holds the single database handle shared by every caller in the process."""

    def __init__(
        self,
        settings: MongoSettings,
        client_factory: ClientFactory = AsyncIOMotorClient,
    ) -> None:
        self._settings = settings
        self._client_factory = client_factory
        self._client: Optional[AsyncIOMotorClient] = None
        self._handle: Optional[AsyncIOMotorDatabase] = None
        self._pending: Optional[asyncio.Future] = None

    @property
    def connected(self) -> bool:
        return self._handle is not None

    @property
    def settings(self) -> MongoSettings:
        return self._settings

    async def connect(self) -> AsyncIOMotorDatabase:
        """Return the shared handle, opening the connection on first use.

        Concurrent first callers all await the same attempt. If the attempt
        fails every waiter receives the error and the next call starts over.

        Raises:
            ConfigurationError: If no connection URI is configured or it is malformed.
            StoreConnectionError: If the server cannot be reached.
        """

        if self._handle is not None:
            return self._handle

        # No await between the check and the assignment below.
        if self._pending is None:
            uri = self._settings.uri
            if not uri:
                raise ConfigurationError(
                    "MongoDB connection target missing: define MONGODB_URI in the environment."
                )
            self._pending = asyncio.ensure_future(self._open(uri))

        pending = self._pending
        try:
            handle = await asyncio.shield(pending)
        except Exception:
            if self._pending is pending:
                self._pending = None
            raise

        # A waiter resuming after shutdown() must not resurrect a closed client.
        if self._pending is pending:
            self._handle = handle
        return handle

    async def _open(self, uri: str) -> AsyncIOMotorDatabase:
        client: Optional[AsyncIOMotorClient] = None
        try:
            client = self._client_factory(
                uri,
                serverSelectionTimeoutMS=self._settings.server_selection_timeout_ms,
            )
            await client.admin.command("ping")
        except PyMongoConfigurationError as exc:
            if client is not None:
                client.close()
            logger.warning("MongoDB connection settings rejected: {error}", error=exc)
            raise ConfigurationError(f"Invalid MongoDB connection settings: {exc}") from exc
        except PyMongoError as exc:
            if client is not None:
                client.close()
            logger.warning("MongoDB connection attempt failed: {error}", error=exc)
            raise StoreConnectionError(f"Could not connect to MongoDB: {exc}") from exc

        self._client = client
        handle = client.get_default_database(self._settings.db_name)
        logger.info("MongoDB connection established to database {name}", name=handle.name)
        return handle

    async def init(self) -> AsyncIOMotorDatabase:
        """Eagerly connect; meant to run once at application startup."""

        return await self.connect()

    async def shutdown(self) -> None:
        """Close the client and forget the handle so a later call reconnects."""

        pending, self._pending = self._pending, None
        if pending is not None and not pending.done():
            pending.cancel()

        client, self._client = self._client, None
        self._handle = None
        if client is not None:
            client.close()
            logger.info("MongoDB connection closed")


@lru_cache
def get_connection_cache() -> ConnectionCache:
    """Return the process-wide cache configured via ``db_core.configure``."""

    return ConnectionCache(get_settings())


async def get_db() -> AsyncIOMotorDatabase:
    """Return the main application database, connecting on first use."""

    return await get_connection_cache().connect()


async def ping() -> dict[str, Any]:
    """Run a simple ``ping`` command against the configured MongoDB server."""

    db = await get_db()
    await db.command("ping")
    return {"ok": True}


@asynccontextmanager
async def mongo_lifespan(cache: Optional[ConnectionCache] = None) -> AsyncIterator[AsyncIOMotorDatabase]:
    """Connect on entry and close on exit, e.g. inside an app's lifespan handler."""

    cache = cache or get_connection_cache()
    handle = await cache.init()
    try:
        yield handle
    finally:
        await cache.shutdown()
