"""Batch outcomes returned by the ingestor.

A batch either fully succeeds or partially fails. Callers that need the
transport's redelivery signal call raise_for_failure(); callers that only
report can inspect the errors directly.
"""

from dataclasses import dataclass

from streamsink.core.errors import BatchFailure, MessagePersistError


@dataclass(frozen=True)
class Success:
    """Every message in the batch was persisted."""

    count: int

    @property
    def total(self) -> int:
        return self.count

    @property
    def succeeded(self) -> int:
        return self.count

    @property
    def failed(self) -> int:
        return 0

    @property
    def summary(self) -> str:
        return f"{self.count} of {self.count} succeeded"

    def raise_for_failure(self) -> "Success":
        return self


@dataclass(frozen=True)
class PartialFailure:
    """At least one message failed. errors are kept in batch order."""

    total: int
    errors: tuple[MessagePersistError, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "errors", tuple(self.errors))
        if not self.errors:
            raise ValueError("PartialFailure needs at least one error")

    @property
    def succeeded(self) -> int:
        return self.total - len(self.errors)

    @property
    def failed(self) -> int:
        return len(self.errors)

    @property
    def failed_indexes(self) -> list[int]:
        return [e.index for e in self.errors]

    @property
    def summary(self) -> str:
        return f"{self.succeeded} of {self.total} succeeded"

    def raise_for_failure(self) -> "Success":
        """Raise the failure that asks the transport to redeliver the batch.

        A single failure is raised as-is; several are wrapped in BatchFailure.
        """
        if len(self.errors) == 1:
            raise self.errors[0]
        raise BatchFailure(self.errors, total=self.total)


BatchOutcome = Success | PartialFailure
