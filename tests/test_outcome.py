"""Tests for batch outcomes and the error taxonomy."""

import pytest

from streamsink.core.errors import (
    BatchFailure,
    EventTooLargeError,
    MessagePersistError,
    StoreUnavailableError,
    StreamsinkError,
    TransportSendError,
)
from streamsink.core.outcome import PartialFailure, Success


def _error(index: int, content: str) -> MessagePersistError:
    return MessagePersistError(index, content, OSError(f"write {index} failed"))


def test_success_does_not_raise():
    outcome = Success(count=4)
    assert outcome.raise_for_failure() is outcome
    assert (outcome.succeeded, outcome.failed, outcome.total) == (4, 0, 4)


def test_single_failure_raised_unwrapped():
    error = _error(2, "c")
    outcome = PartialFailure(total=3, errors=[error])

    with pytest.raises(MessagePersistError) as exc_info:
        outcome.raise_for_failure()

    assert exc_info.value is error


def test_multiple_failures_raised_as_aggregate():
    errors = [_error(0, "a"), _error(3, "d"), _error(4, "e")]
    outcome = PartialFailure(total=5, errors=errors)

    with pytest.raises(BatchFailure) as exc_info:
        outcome.raise_for_failure()

    assert exc_info.value.errors == errors
    assert "3 out of 5" in str(exc_info.value)
    assert "'d'" in str(exc_info.value)


def test_partial_failure_requires_an_error():
    with pytest.raises(ValueError):
        PartialFailure(total=3, errors=[])


def test_partial_failure_does_not_track_callers_list():
    errors = [_error(1, "b")]
    outcome = PartialFailure(total=3, errors=errors)

    errors.append(_error(2, "c"))

    assert outcome.failed == 1
    assert outcome.failed_indexes == [1]
    assert isinstance(outcome.errors, tuple)


def test_error_hierarchy():
    assert issubclass(MessagePersistError, StreamsinkError)
    assert issubclass(BatchFailure, StreamsinkError)
    assert issubclass(EventTooLargeError, TransportSendError)
    assert issubclass(StoreUnavailableError, StreamsinkError)


def test_transport_send_error_chains_cause():
    cause = ConnectionResetError("reset")
    error = TransportSendError("events", cause)

    assert error.destination == "events"
    assert error.__cause__ is cause
    assert "events" in str(error)
