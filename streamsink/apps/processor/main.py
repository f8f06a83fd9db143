"""Stream processor entrypoint.

Reads batches from the stream and hands each one to the BatchIngestor:

    read_batch → ingest → ack            (every message persisted)
                        → nack           (any message or the store failed; batch redelivered)

Usage:
    python -m streamsink.apps.processor.main [--max-batches N]

Configuration is taken from STREAMSINK_* environment variables.
"""

import argparse
import asyncio
from dataclasses import dataclass

from streamsink.core.config import Settings
from streamsink.core.errors import (
    BatchFailure,
    ConfigurationError,
    MessagePersistError,
    StoreUnavailableError,
    StreamUnavailableError,
)
from streamsink.core.ingestor import BatchIngestor
from streamsink.core.logging import get_logger
from streamsink.stores.sql import SqlStore
from streamsink.streams.base import ReceivedBatch, Stream
from streamsink.streams.redis_stream import RedisStream

DEFAULT_MAX_CONSECUTIVE_FAILURES = 10


@dataclass
class ProcessorStats:
    """Statistics from a Processor run."""

    batches_received: int = 0
    batches_acked: int = 0
    batches_redelivered: int = 0
    messages_persisted: int = 0
    read_errors: int = 0
    store_errors: int = 0
    ack_errors: int = 0


class Processor:
    """Feeds stream batches to an ingestor and settles them with the stream."""

    def __init__(
        self,
        stream: Stream,
        ingestor: BatchIngestor,
        read_batch_size: int = 100,
        max_batches: int | None = None,
        read_timeout: float = 1.0,
        max_consecutive_read_failures: int = DEFAULT_MAX_CONSECUTIVE_FAILURES,
        max_consecutive_store_failures: int = DEFAULT_MAX_CONSECUTIVE_FAILURES,
    ) -> None:
        self.stream = stream
        self.ingestor = ingestor
        self.read_batch_size = read_batch_size
        self.max_batches = max_batches
        self.read_timeout = read_timeout
        self.max_consecutive_read_failures = max_consecutive_read_failures
        self.max_consecutive_store_failures = max_consecutive_store_failures
        self._log = get_logger("streamsink.processor")
        self._running = False
        self._stats = ProcessorStats()
        self._consecutive_read_failures = 0
        self._last_read_error: str | None = None
        self._consecutive_store_failures = 0
        self._last_store_error: str | None = None

    def stop(self) -> None:
        self._running = False

    def get_stats(self) -> ProcessorStats:
        """Return a copy of current statistics."""
        return ProcessorStats(**vars(self._stats))

    async def run(self) -> ProcessorStats:
        """Process batches until stopped or max_batches is reached.

        Raises:
            ConfigurationError: If the ingestor has no store configured.
            StreamUnavailableError: If reading fails too many times in a row.
            StoreUnavailableError: If the store cannot be opened for too many
                batches in a row.
        """
        self._stats = ProcessorStats()
        self._running = True
        self._consecutive_read_failures = 0
        self._consecutive_store_failures = 0

        while self._running:
            if self.max_batches is not None and self._stats.batches_received >= self.max_batches:
                break

            if self._consecutive_read_failures >= self.max_consecutive_read_failures:
                raise StreamUnavailableError(
                    f"Stream unavailable after {self._consecutive_read_failures} failures",
                    failure_count=self._consecutive_read_failures,
                    last_error=self._last_read_error,
                )

            if self._consecutive_store_failures >= self.max_consecutive_store_failures:
                raise StoreUnavailableError(
                    f"Store unavailable after {self._consecutive_store_failures} failures",
                    failure_count=self._consecutive_store_failures,
                    last_error=self._last_store_error,
                )

            try:
                batch = await self.stream.read_batch(self.read_batch_size, timeout=self.read_timeout)
                self._consecutive_read_failures = 0
                self._last_read_error = None
            except Exception as e:
                self._consecutive_read_failures += 1
                self._stats.read_errors += 1
                self._last_read_error = str(e)
                self._log.error(
                    f"Stream read failed ({self._consecutive_read_failures}/"
                    f"{self.max_consecutive_read_failures}): {e}",
                    extra={"error": str(e), "consecutive_failures": self._consecutive_read_failures},
                )
                continue

            if batch is None:
                continue

            self._stats.batches_received += 1
            await self._handle(batch)

        return self._stats

    async def _handle(self, batch: ReceivedBatch) -> None:
        try:
            outcome = await self.ingestor.ingest(batch.bodies)
        except ConfigurationError:
            raise
        except (MessagePersistError, BatchFailure) as e:
            self._consecutive_store_failures = 0
            self._stats.batches_redelivered += 1
            self._log.warning(
                f"Batch failed, requesting redelivery: {e}",
                extra={"batch_size": len(batch), "delivery": batch.delivery},
            )
            await self.stream.nack(batch)
            return
        except Exception as e:
            # Batch-fatal: the store could not be opened or closed
            self._consecutive_store_failures += 1
            self._last_store_error = str(e)
            self._stats.store_errors += 1
            self._stats.batches_redelivered += 1
            self._log.error(
                f"Store failed ({self._consecutive_store_failures}/"
                f"{self.max_consecutive_store_failures}), requesting redelivery: {e}",
                extra={
                    "batch_size": len(batch),
                    "error": str(e),
                    "consecutive_failures": self._consecutive_store_failures,
                },
            )
            await self.stream.nack(batch)
            return

        self._consecutive_store_failures = 0
        self._stats.messages_persisted += outcome.count
        try:
            await self.stream.ack(batch)
            self._stats.batches_acked += 1
        except Exception as e:
            self._stats.ack_errors += 1
            self._log.error(
                f"Failed to ack batch: {e}",
                extra={"batch_size": len(batch), "error": str(e)},
            )


async def run_processor(settings: Settings, max_batches: int | None = None) -> ProcessorStats:
    """Wire a SQL store and a Redis stream from settings and run the processor."""
    settings.require("store_url", "stream_url", "stream_name")

    store = SqlStore()
    stream = RedisStream(
        redis_url=settings.stream_url,
        stream_key=settings.stream_name,
        consumer_group=settings.consumer_group,
        consumer_name=settings.consumer_name,
        max_batch_bytes=settings.max_batch_bytes,
        claim_min_idle_ms=settings.claim_min_idle_ms,
    )
    processor = Processor(
        stream=stream,
        ingestor=BatchIngestor(store, settings.store_url),
        read_batch_size=settings.read_batch_size,
        max_batches=max_batches,
    )
    try:
        return await processor.run()
    finally:
        await stream.close()
        store.dispose()


def main() -> None:
    """Main entry point for the stream processor."""
    parser = argparse.ArgumentParser(description="Persist stream batches to the ProcessedData store")
    parser.add_argument("--max-batches", type=int, default=None, help="Stop after N batches")
    args = parser.parse_args()

    stats = asyncio.run(run_processor(Settings.from_env(), max_batches=args.max_batches))
    get_logger("streamsink.processor").info(
        f"Processor stopped: {stats.batches_acked} batches acked, "
        f"{stats.batches_redelivered} redelivered",
        extra={"messages_persisted": stats.messages_persisted},
    )


if __name__ == "__main__":
    main()
