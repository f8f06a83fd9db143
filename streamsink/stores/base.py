"""Store protocol for persisted messages.

The ingestor opens one connection per batch and writes one record per
message through it. Schema ownership stays with the store: records land in
ProcessedData(MessageContent, ProcessedTimestamp).
"""

from contextlib import AbstractAsyncContextManager
from typing import Protocol

from streamsink.core.message import PersistedRecord


class StoreConnection(Protocol):
    """A connection scoped to one batch."""

    async def insert(self, record: PersistedRecord) -> None:
        """Write one record as an independent unit of work.

        Args:
            record: The record to persist.
        """
        ...


class Store(Protocol):
    """Protocol defining how the ingestor reaches durable storage."""

    def open(self, connection_string: str) -> AbstractAsyncContextManager[StoreConnection]:
        """Open a connection, released when the context exits.

        Args:
            connection_string: Store destination, e.g. an SQLAlchemy URL.

        Returns:
            An async context manager yielding a StoreConnection.
        """
        ...
