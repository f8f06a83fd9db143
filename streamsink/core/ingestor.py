"""Batch ingestor for streamsink.

The ingestor persists every message of a batch through one store
connection and reports the batch outcome:

- Each message is written on its own; a failed write is recorded and the
  remaining messages are still attempted
- Any recorded failure makes ingest() raise, which the transport treats as
  "redeliver this batch"
- Missing configuration and connection errors abort the batch before any
  message is written
"""

from collections.abc import Callable, Sequence
from datetime import datetime

from streamsink.core.errors import ConfigurationError, MessagePersistError
from streamsink.core.logging import get_logger
from streamsink.core.message import Message, PersistedRecord, utc_now
from streamsink.core.outcome import BatchOutcome, PartialFailure, Success
from streamsink.stores.base import Store


class BatchIngestor:
    """Persists batches of stream messages, one record per message.

    The ingestor holds no per-batch state, so one instance can serve
    concurrent batches; each call opens and releases its own connection.
    """

    def __init__(
        self,
        store: Store,
        connection_string: str | None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """Initialize the ingestor.

        Args:
            store: Store the records are written to.
            connection_string: Store destination. Checked on every batch.
            clock: Source of the processing timestamp, read once per write.
        """
        self.store = store
        self.connection_string = connection_string
        self.clock = clock
        self._log = get_logger("streamsink.ingestor")

    async def process(self, messages: Sequence[str | bytes]) -> BatchOutcome:
        """Persist every message and return the batch outcome.

        Per-message write errors are collected, not raised.

        Raises:
            ConfigurationError: If the store destination is not configured.
        """
        if not self.connection_string:
            self._log.error("Store connection string is not set; refusing to process batch")
            raise ConfigurationError("store_url", "Store connection string is not configured")

        errors: list[MessagePersistError] = []

        async with self.store.open(self.connection_string) as conn:
            for index, body in enumerate(messages):
                try:
                    message = Message(content=body)
                    self._log.info(
                        f"Processing message: {message.content}",
                        extra={"message_index": index},
                    )
                    await conn.insert(
                        PersistedRecord(content=message.content, processed_at=self.clock())
                    )
                except Exception as e:
                    self._log.error(
                        f"Error processing message: {body!r}. Exception: {e}",
                        extra={"message_index": index, "error": str(e)},
                    )
                    errors.append(MessagePersistError(index, body, e))

        total = len(messages)
        if errors:
            outcome: BatchOutcome = PartialFailure(total=total, errors=errors)
            self._log.warning(
                f"{len(errors)} out of {total} messages in the batch failed to process",
                extra={"batch_size": total, "failed": len(errors)},
            )
        else:
            outcome = Success(count=total)
            self._log.info(
                f"Successfully processed {total} messages",
                extra={"batch_size": total, "failed": 0},
            )
        return outcome

    async def ingest(self, messages: Sequence[str | bytes]) -> Success:
        """Persist the batch, raising if any message failed.

        Raises:
            ConfigurationError: If the store destination is not configured.
            MessagePersistError: If exactly one message failed.
            BatchFailure: If more than one message failed, in batch order.
        """
        outcome = await self.process(messages)
        return outcome.raise_for_failure()
