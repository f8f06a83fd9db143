"""Store implementations for persisted messages."""

from streamsink.stores.base import Store, StoreConnection
from streamsink.stores.memory import InMemoryStore
from streamsink.stores.sql import SqlStore

__all__ = ["Store", "StoreConnection", "InMemoryStore", "SqlStore"]
