"""Process configuration for streamsink.

Settings are read once from the environment and passed explicitly to the
components that need them.
"""

import os
from collections.abc import Mapping

from pydantic import BaseModel, Field, field_validator

from streamsink.core.errors import ConfigurationError

ENV_PREFIX = "STREAMSINK_"

# Largest batch a stream accepts by default (1 MiB)
DEFAULT_MAX_BATCH_BYTES = 1_048_576


class Settings(BaseModel):
    """Connection strings, stream name and batching limits.

    Attributes:
        store_url: SQLAlchemy URL of the ProcessedData store.
        stream_url: Redis URL of the event stream.
        stream_name: Stream key that events are published to and read from.
        consumer_group: Consumer group used by the processor.
        consumer_name: Consumer name within the group (generated if None).
        max_batch_count: Maximum events per published batch.
        max_batch_bytes: Maximum serialized size of a published batch.
        default_event_count: Events simulated when no count is requested.
        max_event_count: Upper bound on events per simulation.
        read_batch_size: Maximum messages handed to the ingestor per batch.
        claim_min_idle_ms: Idle time before an unacked batch is redelivered.
    """

    store_url: str | None = None
    stream_url: str | None = None
    stream_name: str | None = None
    consumer_group: str = "streamsink"
    consumer_name: str | None = None
    max_batch_count: int = Field(default=250, gt=0)
    max_batch_bytes: int = Field(default=DEFAULT_MAX_BATCH_BYTES, gt=0)
    default_event_count: int = Field(default=1000, ge=0)
    max_event_count: int = Field(default=10_000, ge=0)
    read_batch_size: int = Field(default=100, gt=0)
    claim_min_idle_ms: int = Field(default=30_000, ge=0)

    model_config = {
        "extra": "ignore",
        "frozen": True,
    }

    @field_validator("store_url", "stream_url", "stream_name", "consumer_name")
    @classmethod
    def blank_to_none(cls, v: str | None) -> str | None:
        """Treat empty or whitespace-only values as unset."""
        if v is None:
            return None
        v = v.strip()
        return v or None

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        """Build settings from STREAMSINK_* environment variables.

        STREAMSINK_STORE_URL maps to store_url, STREAMSINK_MAX_BATCH_COUNT to
        max_batch_count, and so on. Unknown variables are ignored.
        """
        environ = os.environ if environ is None else environ
        values = {
            key[len(ENV_PREFIX):].lower(): value
            for key, value in environ.items()
            if key.startswith(ENV_PREFIX)
        }
        return cls(**values)

    def require(self, *fields: str) -> "Settings":
        """Raise ConfigurationError for the first field in fields that is unset."""
        for name in fields:
            if getattr(self, name) is None:
                raise ConfigurationError(name)
        return self
