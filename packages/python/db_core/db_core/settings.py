"""Configuration helpers for the MongoDB connection used by db_core.

Applications can build a new ``MongoSettings`` instance at startup and pass it
to ``configure`` before the first call to ``get_db`` to override the values
read from the environment.
"""
from loguru import logger
import os
from typing import Optional

from pydantic import BaseModel, Field


class MongoSettings(BaseModel):
    """MongoDB connection target and client options."""

    uri: Optional[str] = Field(default_factory=lambda: os.getenv("MONGODB_URI") or None)
    db_name: str = Field(default_factory=lambda: os.getenv("MONGODB_DB_NAME", "events"))
    server_selection_timeout_ms: int = Field(
        default_factory=lambda: int(os.getenv("MONGODB_SERVER_SELECTION_TIMEOUT_MS", "5000"))
    )


settings: MongoSettings = MongoSettings()
logger.info(
    "MongoSettings initialized with db_name={db_name} uri_configured={configured}",
    db_name=settings.db_name,
    configured=settings.uri is not None,
)


def get_settings() -> MongoSettings:
    return settings


def configure(new_settings: MongoSettings) -> None:
    """Replace the active settings; only affects caches created afterwards."""

    global settings
    settings = new_settings
