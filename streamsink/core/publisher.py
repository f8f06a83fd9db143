"""Batch publisher for synthetic load.

Generates a bounded number of sequence-numbered events and packs them into
as few stream batches as the count and size limits allow. A send failure
aborts the whole run.
"""

import re
from dataclasses import dataclass, field

from streamsink.core.errors import EventTooLargeError, TransportSendError
from streamsink.core.logging import get_logger
from streamsink.core.message import SyntheticEvent
from streamsink.streams.base import Stream

DEFAULT_EVENT_COUNT = 1000
MAX_EVENT_COUNT = 10_000
MAX_BATCH_COUNT = 250

_INTEGER = re.compile(r"[+-]?[0-9]+", re.ASCII)


def clamp_count(
    raw: str | int | None,
    default: int = DEFAULT_EVENT_COUNT,
    maximum: int = MAX_EVENT_COUNT,
) -> int:
    """Turn a requested event count into the number of events to send.

    Missing or non-numeric values fall back to default. Only plain ASCII
    integers count as numeric, so "2_000" or "1e3" use the default. Values
    above maximum are capped; negative values become 0.
    """
    if raw is None:
        return default
    if isinstance(raw, bool):
        return default
    if isinstance(raw, int):
        count = raw
    else:
        text = raw.strip()
        if not _INTEGER.fullmatch(text):
            return default
        count = int(text)
    return max(0, min(count, maximum))


@dataclass
class PublishReport:
    """Result of a publish run."""

    requested: int
    destination: str
    total_sent: int = 0
    batch_sizes: list[int] = field(default_factory=list)

    @property
    def batches_sent(self) -> int:
        return len(self.batch_sizes)


class BatchPublisher:
    """Publishes synthetic events in count- and size-bounded batches."""

    def __init__(self, stream: Stream, max_batch_count: int = MAX_BATCH_COUNT) -> None:
        if max_batch_count <= 0:
            raise ValueError(f"max_batch_count must be positive, got {max_batch_count}")
        self.stream = stream
        self.max_batch_count = max_batch_count
        self._log = get_logger("streamsink.publisher")

    async def publish(self, count: int) -> PublishReport:
        """Send exactly count events to the stream.

        An event rejected by a partly filled batch becomes the first event of
        the next batch.

        Raises:
            EventTooLargeError: If an event does not fit into an empty batch.
            TransportSendError: If creating or sending a batch fails.
        """
        destination = self.stream.destination
        report = PublishReport(requested=count, destination=destination)
        self._log.info(
            f"Starting simulation to send {count} events to '{destination}'",
            extra={"destination": destination},
        )

        carried: SyntheticEvent | None = None

        while report.total_sent < count:
            try:
                batch = await self.stream.create_batch()
            except Exception as e:
                raise self._send_failed(destination, e) from e

            while report.total_sent < count and batch.count < self.max_batch_count:
                event = carried or SyntheticEvent(report.total_sent + 1)
                carried = None
                if batch.try_add(event.body):
                    report.total_sent += 1
                    continue
                if batch.count == 0:
                    raise EventTooLargeError(destination, event.sequence, len(event.body))
                carried = event
                break

            if batch.count > 0:
                try:
                    await self.stream.send(batch)
                except Exception as e:
                    raise self._send_failed(destination, e) from e
                report.batch_sizes.append(batch.count)
                self._log.info(
                    f"Sent a batch of {batch.count} events",
                    extra={"destination": destination, "batch_size": batch.count},
                )

        self._log.info(
            f"A total of {report.total_sent} events have been published to {destination}",
            extra={"destination": destination, "sent": report.total_sent},
        )
        return report

    def _send_failed(self, destination: str, error: Exception) -> TransportSendError:
        self._log.error(
            f"Error publishing events to {destination}: {error}",
            extra={"destination": destination, "error": str(error)},
        )
        return TransportSendError(destination, error)
