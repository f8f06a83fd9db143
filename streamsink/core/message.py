"""Message models for streamsink."""

from dataclasses import dataclass
from datetime import UTC, datetime

from pydantic import BaseModel, Field, field_validator


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(UTC)


class Message(BaseModel):
    """One payload received from the stream.

    Bytes payloads are decoded as UTF-8; undecodable bytes fail validation,
    which the ingestor records as a failure of that message only.
    """

    content: str

    model_config = {
        "extra": "forbid",
        "frozen": True,
    }

    @field_validator("content", mode="before")
    @classmethod
    def decode_content(cls, v: str | bytes) -> str:
        if isinstance(v, (bytes, bytearray)):
            return bytes(v).decode("utf-8")
        return v


class PersistedRecord(BaseModel):
    """Durable form of a Message: one ProcessedData row."""

    content: str
    processed_at: datetime = Field(default_factory=utc_now)

    model_config = {
        "extra": "forbid",
        "frozen": True,
    }

    @field_validator("processed_at")
    @classmethod
    def ensure_utc(cls, v: datetime) -> datetime:
        """Naive timestamps are taken to be UTC."""
        if v.tzinfo is None:
            return v.replace(tzinfo=UTC)
        return v.astimezone(UTC)


@dataclass(frozen=True, slots=True)
class SyntheticEvent:
    """A generated load-test event. Exists only inside the packing loop."""

    sequence: int

    @property
    def text(self) -> str:
        return f"Event {self.sequence}"

    @property
    def body(self) -> bytes:
        return self.text.encode("utf-8")
