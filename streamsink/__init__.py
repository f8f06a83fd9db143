"""streamsink - Batch ingestion of event-stream messages with partial-failure redelivery."""

from streamsink.core import (
    BatchFailure,
    BatchIngestor,
    BatchPublisher,
    ConfigurationError,
    EventTooLargeError,
    Message,
    MessagePersistError,
    PartialFailure,
    PersistedRecord,
    PublishReport,
    Settings,
    StoreUnavailableError,
    StreamsinkError,
    StreamUnavailableError,
    Success,
    SyntheticEvent,
    TransportSendError,
    clamp_count,
)
from streamsink.stores import InMemoryStore, SqlStore, Store
from streamsink.streams import EventBatch, InMemoryStream, RedisStream, Stream

__version__ = "0.1.0"

__all__ = [
    # Core
    "Message",
    "PersistedRecord",
    "SyntheticEvent",
    "Settings",
    "BatchIngestor",
    "Success",
    "PartialFailure",
    "BatchPublisher",
    "PublishReport",
    "clamp_count",
    # Errors
    "StreamsinkError",
    "ConfigurationError",
    "MessagePersistError",
    "BatchFailure",
    "TransportSendError",
    "EventTooLargeError",
    "StreamUnavailableError",
    "StoreUnavailableError",
    # Stores
    "Store",
    "InMemoryStore",
    "SqlStore",
    # Streams
    "Stream",
    "EventBatch",
    "InMemoryStream",
    "RedisStream",
    # Meta
    "__version__",
]
