"""In-memory stream for development and tests."""

import asyncio
from collections import deque
from itertools import count

from streamsink.core.config import DEFAULT_MAX_BATCH_BYTES
from streamsink.streams.base import EventBatch, ReceivedBatch


class InMemoryStream:
    """Stream that keeps published events in process memory.

    Published batches are recorded as sent, and their events become
    available to read_batch() in FIFO order. A nacked batch is put back at
    the head of the stream and redelivered as a whole.

    Args:
        name: Stream name reported as destination.
        max_batch_bytes: Byte budget of batches from create_batch().
    """

    def __init__(self, name: str = "streamsink", max_batch_bytes: int = DEFAULT_MAX_BATCH_BYTES) -> None:
        self.name = name
        self.max_batch_bytes = max_batch_bytes
        self.sent_batches: list[tuple[bytes, ...]] = []
        self._pending: deque[tuple[str, bytes | str]] = deque()
        self._redeliveries: deque[ReceivedBatch] = deque()
        self._inflight: dict[str, ReceivedBatch] = {}
        self._ids = count(1)
        self._available = asyncio.Event()
        self.acked: list[str] = []

    @property
    def destination(self) -> str:
        return self.name

    @property
    def sent_events(self) -> list[bytes]:
        return [body for batch in self.sent_batches for body in batch]

    async def create_batch(self) -> EventBatch:
        return EventBatch(max_bytes=self.max_batch_bytes)

    async def send(self, batch: EventBatch) -> None:
        self.sent_batches.append(batch.bodies)
        for body in batch.bodies:
            self._pending.append((f"{next(self._ids)}-0", body))
        self._available.set()

    def put(self, *bodies: bytes | str) -> None:
        """Append raw messages to the stream without batching."""
        for body in bodies:
            self._pending.append((f"{next(self._ids)}-0", body))
        self._available.set()

    async def read_batch(self, max_count: int, timeout: float = 1.0) -> ReceivedBatch | None:
        if not self._redeliveries and not self._pending:
            self._available.clear()
            try:
                await asyncio.wait_for(self._available.wait(), timeout)
            except TimeoutError:
                return None

        if self._redeliveries:
            batch = self._redeliveries.popleft()
            batch.delivery += 1
        else:
            items = [self._pending.popleft() for _ in range(min(max_count, len(self._pending)))]
            batch = ReceivedBatch(ids=[i for i, _ in items], bodies=[b for _, b in items])

        self._inflight[batch.ids[0]] = batch
        return batch

    async def ack(self, batch: ReceivedBatch) -> None:
        self._inflight.pop(batch.ids[0], None)
        self.acked.extend(batch.ids)

    async def nack(self, batch: ReceivedBatch) -> None:
        if self._inflight.pop(batch.ids[0], None) is not None:
            self._redeliveries.append(batch)
            self._available.set()

    def qsize(self) -> int:
        """Messages waiting to be read, including batches due for redelivery."""
        return len(self._pending) + sum(len(b) for b in self._redeliveries)

    async def close(self) -> None:
        pass
