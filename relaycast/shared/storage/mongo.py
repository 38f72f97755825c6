"""
Simple MongoDB client manager that creates and tracks one Motor client.
"""

import atexit
import threading

from loguru import logger
from motor.motor_asyncio import AsyncIOMotorClient

from ..config import config


def hide_password_in_connection_string(connection_string: str) -> str:
    """Return the connection string with the password part replaced by `***`."""
    if "://" not in connection_string or "@" not in connection_string:
        return connection_string

    protocol_part, rest = connection_string.split("://", 1)
    # the last @ separates credentials from hosts; passwords may contain @
    last_at_index = rest.rfind("@")
    auth_part, host_part = rest[:last_at_index], rest[last_at_index + 1 :]
    if ":" not in auth_part:
        return connection_string

    username, _ = auth_part.split(":", 1)
    return f"{protocol_part}://{username}:***@{host_part}"


class MongoManager:
    """
    MongoDB client manager.

    - Lazily creates a single AsyncIOMotorClient from MONGO_URL
    - Configurable connection pool size (MONGO_MAX_POOL_SIZE)
    - Ensures the client is closed on process exit
    - Thread-safe singleton pattern
    """

    _instance = None
    _lock = threading.Lock()

    def __new__(cls):
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        if hasattr(self, "_initialized"):
            return

        self._client: AsyncIOMotorClient | None = None
        self._url = config.get_mongo_url()
        self._max_pool_size = config.get_mongo_max_pool_size()
        logger.info(
            "Using MongoDB connection string: {} (max pool size {})",
            hide_password_in_connection_string(self._url),
            self._max_pool_size,
        )

        atexit.register(self.close)
        self._initialized = True

    def get_client(self) -> AsyncIOMotorClient:
        with self._lock:
            if self._client is None:
                self._client = AsyncIOMotorClient(
                    self._url,
                    maxPoolSize=self._max_pool_size,
                    tz_aware=True,
                )
                logger.debug("Created MongoDB client")
            return self._client

    def close(self) -> None:
        with self._lock:
            if self._client is not None:
                self._client.close()
                self._client = None
                logger.info("Closed MongoDB client")


def get_mongo_manager() -> MongoManager:
    return MongoManager()


def get_mongo_client() -> AsyncIOMotorClient:
    return get_mongo_manager().get_client()
