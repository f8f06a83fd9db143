"""Stream transports for publishing and consuming batches."""

from streamsink.streams.base import EventBatch, ReceivedBatch, Stream
from streamsink.streams.memory import InMemoryStream
from streamsink.streams.redis_stream import RedisStream

__all__ = ["Stream", "EventBatch", "ReceivedBatch", "InMemoryStream", "RedisStream"]
