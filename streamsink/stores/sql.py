"""SQLAlchemy-backed store writing to the ProcessedData table.

Features:
- One engine per connection URL, with pre-ping for stale connections
- One connection per batch, always returned to the pool
- Each insert committed on its own; a failed insert is rolled back so the
  connection stays usable for the rest of the batch
- Blocking driver calls run in a worker thread
"""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from threading import Lock

from sqlalchemy import Column, DateTime, Integer, MetaData, Table, UnicodeText, create_engine
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.engine.url import make_url

from streamsink.core.logging import get_logger
from streamsink.core.message import PersistedRecord

logger = get_logger("streamsink.sql")

metadata = MetaData()

processed_data = Table(
    "ProcessedData",
    metadata,
    Column("Id", Integer, primary_key=True, autoincrement=True),
    Column("MessageContent", UnicodeText, nullable=False),
    Column("ProcessedTimestamp", DateTime(timezone=True), nullable=False),
)


class SqlStoreConnection:
    """Batch-scoped wrapper around a SQLAlchemy Connection."""

    def __init__(self, connection: Connection) -> None:
        self._connection = connection

    def _insert(self, record: PersistedRecord) -> None:
        try:
            self._connection.execute(
                processed_data.insert().values(
                    MessageContent=record.content,
                    ProcessedTimestamp=record.processed_at,
                )
            )
            self._connection.commit()
        except Exception:
            self._connection.rollback()
            raise

    async def insert(self, record: PersistedRecord) -> None:
        await asyncio.to_thread(self._insert, record)


class SqlStore:
    """Store writing one ProcessedData row per message."""

    def __init__(self, pool_size: int = 5, pool_pre_ping: bool = True) -> None:
        self._pool_size = pool_size
        self._pool_pre_ping = pool_pre_ping
        self._engines: dict[str, Engine] = {}
        self._lock = Lock()

    def _engine_for(self, connection_string: str) -> Engine:
        with self._lock:
            engine = self._engines.get(connection_string)
            if engine is None:
                url = make_url(connection_string)
                kwargs: dict = {"pool_pre_ping": self._pool_pre_ping}
                if url.get_backend_name() == "sqlite":
                    # Connections hop between worker threads
                    kwargs["connect_args"] = {"check_same_thread": False}
                else:
                    kwargs["pool_size"] = self._pool_size
                engine = create_engine(url, **kwargs)
                self._engines[connection_string] = engine
                logger.info(
                    "Created engine",
                    extra={"destination": url.render_as_string(hide_password=True)},
                )
            return engine

    def create_schema(self, connection_string: str) -> None:
        """Create the ProcessedData table if it does not exist."""
        metadata.create_all(self._engine_for(connection_string))

    @asynccontextmanager
    async def open(self, connection_string: str) -> AsyncIterator[SqlStoreConnection]:
        engine = self._engine_for(connection_string)
        connection = await asyncio.to_thread(engine.connect)
        try:
            yield SqlStoreConnection(connection)
        finally:
            await asyncio.to_thread(connection.close)

    def dispose(self) -> None:
        """Close every pooled connection."""
        with self._lock:
            for engine in self._engines.values():
                engine.dispose()
            self._engines.clear()
