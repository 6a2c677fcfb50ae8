"""
# Database Management Module

This module provides the **MongoDB infrastructure** for the LuxeBlog API through the
`DatabaseManager` class, built on the **Motor** async driver.

## Architecture Overview

```
┌─────────────────────────────────────────────────────────────┐
│                  Database Layer Architecture                │
├─────────────────────────────────────────────────────────────┤
│   ┌──────────────┐      ┌───────────────────────────────┐   │
│   │   Services   │─────▶│        DatabaseManager        │   │
│   │ (Content,    │      │          (Singleton)          │   │
│   │  Comments)   │      └──────────────┬────────────────┘   │
│   └──────────────┘                     │                    │
│                         ┌──────────────▼──────────────┐     │
│                         │      Connection Pool        │     │
│                         │  (Motor/PyMongo Internal)   │     │
│                         └──────────────┬──────────────┘     │
│                                        ▼                    │
│        blog_posts · blog_categories · blog_tags · blog_comments
└─────────────────────────────────────────────────────────────┘
```

## Key Features

- **Connection Lifecycle**: `connect()` with exponential backoff, `disconnect()` on shutdown.
- **Health Monitoring**: `health_check()` pings the server without raising.
- **Index Management**: `create_indexes()` ensures the unique indexes the content graph relies on.
- **Query Logging**: `log_query_start()` / `log_query_success()` / `log_query_error()` time every
  store operation and redact sensitive keys.

## Usage

```python
from luxeblog.database import db_manager

posts = db_manager.get_collection("blog_posts")
post = await posts.find_one({"slug": "luxury-living"})
```

Attributes:
    db_manager (DatabaseManager): Global singleton, connected in the FastAPI lifespan.
"""

import asyncio
import time
from typing import Any, Dict, Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo.errors import ConnectionFailure, PyMongoError, ServerSelectionTimeoutError

from luxeblog.config import settings
from luxeblog.managers.logging_manager import get_logger

logger = get_logger()
db_logger = get_logger(prefix="[DATABASE]")
perf_logger = get_logger(prefix="[DB_PERFORMANCE]")
health_logger = get_logger(prefix="[DB_HEALTH]")


class DatabaseManager:
    """
    Manages MongoDB connections, collections, and index creation.

    **Lifecycle:**
    1. **Instantiation**: `client=None`, `database=None`
    2. **Connection**: `connect()` establishes the Motor client
    3. **Operations**: `get_collection()` hands out collections
    4. **Shutdown**: `disconnect()` closes the pool

    Attributes:
        client (`Optional[AsyncIOMotorClient]`): Motor client, `None` until connected.
        database (`Optional[AsyncIOMotorDatabase]`): Selected database, `None` until connected.
    """

    def __init__(self):
        self.client: Optional[AsyncIOMotorClient] = None
        self.database: Optional[AsyncIOMotorDatabase] = None
        self._connection_retries = 3

    def _connection_string(self) -> str:
        if settings.MONGODB_USERNAME and settings.MONGODB_PASSWORD:
            password = settings.MONGODB_PASSWORD.get_secret_value()
            db_logger.debug("Using authenticated connection to MongoDB")
            return f"mongodb://{settings.MONGODB_USERNAME}:{password}@{settings.MONGODB_URL.replace('mongodb://', '')}"
        db_logger.debug("Using unauthenticated connection to MongoDB")
        return settings.MONGODB_URL

    async def connect(self):
        """
        Establish connection to MongoDB with exponential backoff retry logic.

        Up to three attempts are made with delays of 1s and 2s between them. Each attempt creates
        the Motor client, selects `MONGODB_DATABASE` and pings the server.

        Raises:
            `ServerSelectionTimeoutError`: If MongoDB is unreachable after all attempts.
            `ConnectionFailure`: If authentication fails or the connection is refused.
        """
        start_time = time.time()
        db_logger.info("Starting MongoDB connection process")

        for attempt in range(self._connection_retries):
            attempt_start = time.time()
            try:
                db_logger.info("Connection attempt %d/%d to MongoDB", attempt + 1, self._connection_retries)
                db_logger.info(
                    "MongoDB connection config - URL: %s, Database: %s, ServerTimeout: %dms, ConnTimeout: %dms",
                    settings.MONGODB_URL,
                    settings.MONGODB_DATABASE,
                    settings.MONGODB_SERVER_SELECTION_TIMEOUT,
                    settings.MONGODB_CONNECTION_TIMEOUT,
                )

                self.client = AsyncIOMotorClient(
                    self._connection_string(),
                    serverSelectionTimeoutMS=settings.MONGODB_SERVER_SELECTION_TIMEOUT,
                    connectTimeoutMS=settings.MONGODB_CONNECTION_TIMEOUT,
                    maxPoolSize=50,
                    minPoolSize=5,
                )
                self.database = self.client[settings.MONGODB_DATABASE]

                ping_start = time.time()
                await self.client.admin.command("ping")
                ping_duration = time.time() - ping_start

                total_duration = time.time() - start_time
                perf_logger.info(
                    "MongoDB connection established successfully in %.3fs (ping: %.3fs)", total_duration, ping_duration
                )
                db_logger.info("Successfully connected to MongoDB database: %s", settings.MONGODB_DATABASE)
                return

            except (ServerSelectionTimeoutError, ConnectionFailure) as e:
                attempt_duration = time.time() - attempt_start
                perf_logger.warning("Connection attempt %d failed after %.3fs", attempt + 1, attempt_duration)
                db_logger.warning(
                    "Failed to connect to MongoDB (attempt %d/%d): %s", attempt + 1, self._connection_retries, e
                )
                if attempt == self._connection_retries - 1:
                    db_logger.error("All connection attempts failed after %.3fs", time.time() - start_time)
                    raise

                backoff_time = 2**attempt
                db_logger.info("Waiting %.1fs before retry (exponential backoff)", backoff_time)
                await asyncio.sleep(backoff_time)

    async def disconnect(self):
        """Close the Motor client and release pooled connections."""
        start_time = time.time()
        db_logger.info("Starting MongoDB disconnection process")

        if self.client is None:
            db_logger.warning("Disconnect called but no active MongoDB connection found")
            return

        try:
            self.client.close()
            perf_logger.info("MongoDB disconnection completed in %.3fs", time.time() - start_time)
            db_logger.info("Successfully disconnected from MongoDB")
        except Exception as e:
            perf_logger.error("MongoDB disconnection failed after %.3fs", time.time() - start_time)
            db_logger.error("Error during MongoDB disconnection: %s", e)
            raise

    async def health_check(self) -> bool:
        """
        Verify MongoDB connection health with a `ping`.

        Returns:
            `bool`: `True` if the database answers, `False` otherwise (never raises).
        """
        start_time = time.time()
        if self.client is None:
            health_logger.warning("Health check failed: no MongoDB client")
            return False

        try:
            await self.client.admin.command("ping")
            perf_logger.debug("Database health check completed in %.3fs", time.time() - start_time)
            return True
        except (ServerSelectionTimeoutError, ConnectionFailure) as e:
            perf_logger.warning("Database health check connection error after %.3fs", time.time() - start_time)
            health_logger.error("Connection error during health check: %s", e)
            return False
        except PyMongoError as e:
            health_logger.error("Unexpected error during health check: %s", e)
            return False

    def get_collection(self, collection_name: str) -> AsyncIOMotorCollection:
        """
        Retrieve a MongoDB collection by name from the connected database.

        Args:
            collection_name (`str`): e.g. `"blog_posts"`.

        Returns:
            `AsyncIOMotorCollection`: The collection handle.

        Raises:
            `ConnectionError`: If `connect()` has not been called.
        """
        if self.database is None:
            db_logger.error("Attempted to get collection '%s' without database connection", collection_name)
            raise ConnectionError("Database not connected. Call connect() first.")

        return self.database[collection_name]

    async def create_indexes(self):
        """Create the indexes the blog content graph depends on."""
        from luxeblog.database.blog_indexes import create_blog_indexes

        start_time = time.time()
        db_logger.info("Starting database index creation process")
        try:
            await create_blog_indexes(self)
            perf_logger.info("Database index creation completed successfully in %.3fs", time.time() - start_time)
            db_logger.info("Database indexes created successfully")
        except Exception as e:
            perf_logger.error("Unexpected error during index creation after %.3fs", time.time() - start_time)
            db_logger.error("Unexpected error creating database indexes: %s", e)
            raise

    async def _create_index_if_not_exists(
        self, collection: AsyncIOMotorCollection, field_spec: Any, options: Dict[str, Any]
    ):
        """Create an index if it doesn't already exist"""
        start_time = time.time()
        try:
            await collection.create_index(field_spec, **options)
            perf_logger.debug("Created/ensured index '%s' in %.3fs", field_spec, time.time() - start_time)
        except PyMongoError as e:
            perf_logger.warning("Failed to create/ensure index '%s' after %.3fs", field_spec, time.time() - start_time)
            db_logger.warning("Could not create/ensure index '%s': %s", field_spec, e)
            if options.get("unique"):
                # Uniqueness backs slug and taxonomy invariants; do not start without it
                raise

    # Database operation logging utilities
    def log_query_start(
        self, collection_name: str, operation: str, query: Optional[Dict] = None, options: Optional[Dict] = None
    ) -> float:
        """Log the start of a database query and return start time for performance tracking"""
        start_time = time.time()
        safe_query = self._sanitize_query_for_logging(query) if query else {}
        safe_options = self._sanitize_query_for_logging(options) if options else {}
        db_logger.debug(
            "Starting %s operation on collection '%s' - Query: %s, Options: %s",
            operation,
            collection_name,
            safe_query,
            safe_options,
        )
        return start_time

    def log_query_success(
        self,
        collection_name: str,
        operation: str,
        start_time: float,
        result_count: Optional[int] = None,
        result_info: Optional[str] = None,
    ):
        """Log successful completion of a database query with performance metrics"""
        duration = time.time() - start_time
        if result_count is not None:
            perf_logger.info(
                "%s on '%s' completed successfully in %.3fs - %d records",
                operation,
                collection_name,
                duration,
                result_count,
            )
        else:
            perf_logger.info("%s on '%s' completed successfully in %.3fs", operation, collection_name, duration)

        if result_info:
            db_logger.debug("Additional result info for %s on '%s': %s", operation, collection_name, result_info)

    def log_query_error(
        self, collection_name: str, operation: str, start_time: float, error: Exception, query: Optional[Dict] = None
    ):
        """Log database query errors with context and performance metrics"""
        duration = time.time() - start_time
        safe_query = self._sanitize_query_for_logging(query) if query else {}
        perf_logger.error("%s on '%s' failed after %.3fs", operation, collection_name, duration)
        db_logger.error(
            "%s operation failed on collection '%s' after %.3fs - Error: %s, Query: %s",
            operation,
            collection_name,
            duration,
            error,
            safe_query,
        )

    def _sanitize_query_for_logging(self, query: Dict[str, Any]) -> Dict[str, Any]:
        """Sanitize database queries for safe logging by removing sensitive data"""
        if not isinstance(query, dict):
            return {}

        sensitive_fields = {"password", "token", "secret", "email"}

        sanitized: Dict[str, Any] = {}
        for key, value in query.items():
            if any(sensitive_field in str(key).lower() for sensitive_field in sensitive_fields):
                sanitized[key] = "[REDACTED]"
            elif isinstance(value, dict):
                sanitized[key] = self._sanitize_query_for_logging(value)
            elif isinstance(value, list):
                sanitized[key] = [
                    self._sanitize_query_for_logging(item) if isinstance(item, dict) else item for item in value
                ]
            else:
                sanitized[key] = value

        return sanitized


db_manager = DatabaseManager()
