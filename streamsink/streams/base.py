"""Stream protocol for publishing and consuming batches.

The publisher only needs create_batch() and send(). The processor loop
reads batches, hands them to the ingestor, and acks or nacks them.
"""

from dataclasses import dataclass
from typing import Protocol

from streamsink.core.packing import Accepted, PackState, try_add


class EventBatch:
    """Mutable, size-bounded batch handed out by a stream.

    Args:
        max_bytes: Byte budget of the batch, set by the stream.
    """

    def __init__(self, max_bytes: int) -> None:
        self._state = PackState(max_bytes=max_bytes)

    def try_add(self, body: bytes) -> bool:
        """Add body if it fits. Returns False, leaving the batch unchanged, if not."""
        result = try_add(self._state, body)
        if isinstance(result, Accepted):
            self._state = result.state
            return True
        return False

    @property
    def count(self) -> int:
        return self._state.count

    @property
    def size_bytes(self) -> int:
        return self._state.size_bytes

    @property
    def max_bytes(self) -> int:
        return self._state.max_bytes

    @property
    def bodies(self) -> tuple[bytes, ...]:
        return self._state.events

    def __len__(self) -> int:
        return self._state.count


@dataclass
class ReceivedBatch:
    """A batch delivered to a consumer.

    Attributes:
        ids: Transport identifiers of the messages, used for ack.
        bodies: Message payloads in delivery order.
        delivery: 1 for a first delivery, higher for redeliveries.
    """

    ids: list[str]
    bodies: list[bytes | str]
    delivery: int = 1

    def __len__(self) -> int:
        return len(self.bodies)


class Stream(Protocol):
    """Protocol defining the event stream transport."""

    @property
    def destination(self) -> str:
        """Name of the stream, used in logs and reports."""
        ...

    async def create_batch(self) -> EventBatch:
        """Return an empty batch bounded by the stream's size limit."""
        ...

    async def send(self, batch: EventBatch) -> None:
        """Publish every event of the batch as one operation."""
        ...

    async def read_batch(self, max_count: int, timeout: float = 1.0) -> ReceivedBatch | None:
        """Retrieve up to max_count messages, or None if timeout expires."""
        ...

    async def ack(self, batch: ReceivedBatch) -> None:
        """Mark every message of the batch as processed."""
        ...

    async def nack(self, batch: ReceivedBatch) -> None:
        """Leave the batch for redelivery."""
        ...

    async def close(self) -> None: ...
