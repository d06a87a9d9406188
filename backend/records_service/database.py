"""
Records Service: Connection Provider
======================================

What:  Opens timed, verified connections to MongoDB.
How:   For every unit of work: build an async PyMongo client from the StoreConfig,
       force a round-trip `ping`, hand the caller the target collection, and
       close the client on every exit path. The whole scope, liveness check
       included, is bounded by `StoreConfig.timeout` (asyncio.timeout).
Who:   Used by RecordStore (one connection per operation) and by the
       health check.
When:  Provider is created once during startup; connections per operation.

Failure stages (all raise StoreConnectionError, nothing is returned half-built):
    construct → the driver rejected the address or options
    connect   → no server selectable before the deadline
    ping      → the server answered the liveness check with an error

Usage:
    async with provider.connect() as conn:
        doc = await conn.collection.find_one({"_id": oid})
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator

from fastapi import Request
from pymongo import AsyncMongoClient
from pymongo.asynchronous.collection import AsyncCollection
from pymongo.errors import ConnectionFailure, PyMongoError

from records_service.config import StoreConfig
from records_service.exceptions import (
    RecordsServiceError,
    StoreConnectionError,
    StoreTimeoutError,
)

logger = logging.getLogger(__name__)


@dataclass
class StoreConnection:
    """A live, verified client and the collection it is bound to."""

    client: AsyncMongoClient
    collection: AsyncCollection


class ConnectionProvider:
    """
    Hands out disposable, verified MongoDB connections.

    Holds no client between calls: each `connect()` builds its own and
    closes it when the caller's block exits.
    """

    def __init__(self, config: StoreConfig):
        self.config = config

    def _construct(self) -> AsyncMongoClient:
        timeout_ms = int(self.config.timeout * 1000)
        try:
            return AsyncMongoClient(
                self.config.uri,
                serverSelectionTimeoutMS=timeout_ms,
                connectTimeoutMS=timeout_ms,
                uuidRepresentation="standard",
            )
        except (PyMongoError, ValueError, TypeError) as e:
            logger.error("Failed to create client for %s: %s", self.config.redacted_uri, e)
            raise StoreConnectionError(
                stage="construct",
                message=f"Failed to create client: {e}",
                context={"endpoint": self.config.endpoint},
            ) from e

    async def _verify(self, client: AsyncMongoClient) -> None:
        try:
            await client.admin.command("ping")
        except ConnectionFailure as e:
            # ServerSelectionTimeoutError lands here
            logger.error("Failed to connect to cluster %s: %s", self.config.endpoint, e)
            raise StoreConnectionError(
                stage="connect",
                message=f"Failed to connect to cluster: {e}",
                context={"endpoint": self.config.endpoint},
            ) from e
        except PyMongoError as e:
            logger.error("Failed to ping cluster %s: %s", self.config.endpoint, e)
            raise StoreConnectionError(
                stage="ping",
                message=f"Failed to ping cluster: {e}",
                context={"endpoint": self.config.endpoint},
            ) from e

    @asynccontextmanager
    async def connect(self) -> AsyncIterator[StoreConnection]:
        """
        Yield a verified connection bound to the configured timeout.

        The deadline starts when this is called. If it passes during the
        liveness check the call fails with StoreConnectionError(stage="connect");
        if it passes while the caller is working, the caller is cancelled and
        StoreTimeoutError is raised instead.
        """
        client = self._construct()
        verified = False
        try:
            async with asyncio.timeout(self.config.timeout):
                await self._verify(client)
                verified = True
                logger.debug("Connected to MongoDB at %s", self.config.endpoint)
                yield StoreConnection(
                    client=client,
                    collection=client[self.config.database][self.config.collection],
                )
        except TimeoutError as e:
            if not verified:
                logger.error(
                    "Failed to connect to cluster %s within %gs",
                    self.config.endpoint,
                    self.config.timeout,
                )
                raise StoreConnectionError(
                    stage="connect",
                    message=f"Failed to connect to cluster within {self.config.timeout:g} seconds",
                    context={"endpoint": self.config.endpoint},
                ) from e
            logger.error("Store operation exceeded %gs timeout", self.config.timeout)
            raise StoreTimeoutError(timeout=self.config.timeout) from e
        finally:
            await client.close()

    async def check(self) -> bool:
        """Connect-and-ping probe for health checks. Never raises app errors."""
        try:
            async with self.connect():
                return True
        except RecordsServiceError:
            return False


# ── FastAPI Dependency ────────────────────────────────────────────────────
def get_connection_provider(request: Request) -> ConnectionProvider:
    """Provider created by the application lifespan."""
    return request.app.state.connection_provider
