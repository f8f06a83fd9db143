"""Pytest configuration, Hypothesis profiles and shared test doubles."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import pytest
from hypothesis import settings

from streamsink.core.message import PersistedRecord
from streamsink.stores.memory import InMemoryStore

# Register Hypothesis profiles
settings.register_profile("ci", max_examples=100)
settings.register_profile("dev", max_examples=20)

# Load dev profile by default, CI can override via --hypothesis-profile=ci
settings.load_profile("dev")

CONNECTION_STRING = "memory://test"


@pytest.fixture(scope="session")
def anyio_backend() -> str:
    """Use asyncio as the async backend for pytest-asyncio."""
    return "asyncio"


class FailingStore(InMemoryStore):
    """In-memory store whose inserts fail for selected message contents.

    fail_on can be changed between batches to simulate a fault clearing.
    """

    def __init__(self, fail_on: set[str] | None = None):
        super().__init__()
        self.fail_on: set[str] = set(fail_on or ())
        self.attempts: list[str] = []

    @asynccontextmanager
    async def open(self, connection_string: str) -> AsyncIterator["FailingConnection"]:
        async with super().open(connection_string) as conn:
            yield FailingConnection(self, conn)


class FailingConnection:
    def __init__(self, store: FailingStore, inner):
        self._store = store
        self._inner = inner

    async def insert(self, record: PersistedRecord) -> None:
        self._store.attempts.append(record.content)
        if record.content in self._store.fail_on:
            raise ConnectionError(f"Simulated write failure for {record.content!r}")
        await self._inner.insert(record)


class UnreachableStore:
    """Store whose connections can never be opened."""

    def __init__(self):
        self.open_attempts = 0

    @asynccontextmanager
    async def open(self, connection_string: str) -> AsyncIterator[None]:
        self.open_attempts += 1
        raise ConnectionRefusedError("store unreachable")
        yield  # pragma: no cover


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def failing_store() -> FailingStore:
    return FailingStore()
