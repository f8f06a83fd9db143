"""In-memory store for development and tests."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from streamsink.core.message import PersistedRecord


class InMemoryStoreConnection:
    """Connection that appends records to its store's list."""

    def __init__(self, store: "InMemoryStore", connection_string: str) -> None:
        self._store = store
        self.connection_string = connection_string
        self.closed = False

    async def insert(self, record: PersistedRecord) -> None:
        if self.closed:
            raise RuntimeError("connection is closed")
        self._store.records.append(record)


class InMemoryStore:
    """Store that keeps records in a list.

    No durability guarantees; records are lost when the process exits.
    Connection counts are tracked so callers can verify that every opened
    connection was released.
    """

    def __init__(self) -> None:
        self.records: list[PersistedRecord] = []
        self.opened = 0
        self.closed = 0

    @property
    def open_connections(self) -> int:
        return self.opened - self.closed

    @property
    def contents(self) -> list[str]:
        return [r.content for r in self.records]

    @asynccontextmanager
    async def open(self, connection_string: str) -> AsyncIterator[InMemoryStoreConnection]:
        conn = InMemoryStoreConnection(self, connection_string)
        self.opened += 1
        try:
            yield conn
        finally:
            conn.closed = True
            self.closed += 1
