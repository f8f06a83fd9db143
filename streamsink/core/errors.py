"""Error taxonomy for streamsink.

ConfigurationError and TransportSendError are fatal for the run that raises
them. MessagePersistError is local to one message and is collected by the
ingestor; BatchFailure aggregates more than one of them.
"""


class StreamsinkError(Exception):
    """Base class for all streamsink errors."""


class ConfigurationError(StreamsinkError):
    """Raised when a required setting is missing.

    Attributes:
        field: Name of the missing setting.
    """

    def __init__(self, field: str, message: str | None = None) -> None:
        self.field = field
        super().__init__(message or f"Required setting '{field}' is not configured")


class MessagePersistError(StreamsinkError):
    """Raised (and recorded) when a single message cannot be written to the store.

    Attributes:
        index: Position of the message in its batch.
        content: The offending message content.
        cause: The underlying store exception.
    """

    def __init__(self, index: int, content: str | bytes, cause: Exception) -> None:
        self.index = index
        self.content = content
        self.cause = cause
        super().__init__(f"Failed to process message: {content!r}")
        self.__cause__ = cause


class BatchFailure(StreamsinkError):
    """Aggregate of several MessagePersistError from one batch, in batch order."""

    def __init__(self, errors: list[MessagePersistError], total: int | None = None) -> None:
        self.errors = list(errors)
        self.total = total if total is not None else len(self.errors)
        super().__init__(f"{len(self.errors)} out of {self.total} messages in the batch failed")

    def __str__(self) -> str:
        base = super().__str__()
        details = "; ".join(str(e) for e in self.errors)
        return f"{base} ({details})" if details else base

    def __len__(self) -> int:
        return len(self.errors)


class TransportSendError(StreamsinkError):
    """Raised when publishing to the stream fails. Aborts the simulation run.

    Attributes:
        destination: Stream the events were bound for.
        cause: The underlying transport exception, if any.
    """

    def __init__(self, destination: str, cause: Exception | None = None, message: str | None = None):
        self.destination = destination
        self.cause = cause
        super().__init__(message or f"Failed to send events to {destination!r}: {cause}")
        if cause is not None:
            self.__cause__ = cause


class EventTooLargeError(TransportSendError):
    """Raised when an event does not fit even into an empty batch."""

    def __init__(self, destination: str, sequence: int, size: int) -> None:
        self.sequence = sequence
        self.size = size
        super().__init__(
            destination,
            message=f"Event {sequence} ({size} bytes) exceeds the batch size limit of {destination!r}",
        )


class StreamUnavailableError(StreamsinkError):
    """Raised when reading from the stream fails consecutively beyond threshold.

    Attributes:
        failure_count: Number of consecutive failures that triggered this error.
        last_error: The last exception message from the stream.
    """

    def __init__(self, message: str, failure_count: int = 0, last_error: str | None = None):
        self.failure_count = failure_count
        self.last_error = last_error
        super().__init__(message)

    def __str__(self) -> str:
        base = super().__str__()
        if self.last_error:
            return f"{base} (last error: {self.last_error})"
        return base


class StoreUnavailableError(StreamUnavailableError):
    """Raised when opening the store fails for consecutive batches beyond threshold.

    Every affected batch has already been handed back to the stream for
    redelivery when this is raised.
    """
