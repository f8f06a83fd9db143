"""Core components for streamsink.

Types:
    Message: Validated, immutable payload received from the stream.
    PersistedRecord: Durable form of a Message (content + processing timestamp).
    SyntheticEvent: Sequence-numbered event generated by the simulator.
    Settings: Process configuration read from STREAMSINK_* variables.

Ingestion:
    BatchIngestor: Persists a batch, isolating per-message failures.
    Success / PartialFailure: Batch outcomes (BatchOutcome).

Publishing:
    BatchPublisher: Packs and sends synthetic events in bounded batches.
    PublishReport: Totals of a publish run.
    clamp_count: Normalizes a requested event count.

Errors:
    ConfigurationError, MessagePersistError, BatchFailure,
    TransportSendError, EventTooLargeError, StreamUnavailableError,
    StoreUnavailableError.
"""

from streamsink.core.config import Settings
from streamsink.core.errors import (
    BatchFailure,
    ConfigurationError,
    EventTooLargeError,
    MessagePersistError,
    StoreUnavailableError,
    StreamsinkError,
    StreamUnavailableError,
    TransportSendError,
)
from streamsink.core.ingestor import BatchIngestor
from streamsink.core.message import Message, PersistedRecord, SyntheticEvent
from streamsink.core.outcome import BatchOutcome, PartialFailure, Success
from streamsink.core.publisher import BatchPublisher, PublishReport, clamp_count

__all__ = [
    "Message",
    "PersistedRecord",
    "SyntheticEvent",
    "Settings",
    "BatchIngestor",
    "BatchOutcome",
    "Success",
    "PartialFailure",
    "BatchPublisher",
    "PublishReport",
    "clamp_count",
    "StreamsinkError",
    "ConfigurationError",
    "MessagePersistError",
    "BatchFailure",
    "TransportSendError",
    "EventTooLargeError",
    "StreamUnavailableError",
    "StoreUnavailableError",
]
