"""Tests for message models."""

from datetime import UTC, datetime, timedelta, timezone

import pytest
from hypothesis import given
from hypothesis import strategies as st
from pydantic import ValidationError

from streamsink.core.message import Message, PersistedRecord, SyntheticEvent


class TestMessage:
    def test_text_content_kept(self):
        assert Message(content="hello").content == "hello"

    def test_bytes_content_decoded(self):
        assert Message(content="żółw".encode()).content == "żółw"

    def test_invalid_utf8_rejected(self):
        with pytest.raises(ValidationError):
            Message(content=b"\xc3\x28")

    def test_frozen(self):
        message = Message(content="x")
        with pytest.raises(ValidationError):
            message.content = "y"

    def test_extra_fields_forbidden(self):
        with pytest.raises(ValidationError):
            Message(content="x", partition=3)


class TestPersistedRecord:
    def test_default_timestamp_is_utc(self):
        record = PersistedRecord(content="x")
        assert record.processed_at.tzinfo is not None
        assert record.processed_at.utcoffset() == timedelta(0)

    def test_naive_timestamp_taken_as_utc(self):
        record = PersistedRecord(content="x", processed_at=datetime(2024, 5, 1, 12, 0))
        assert record.processed_at == datetime(2024, 5, 1, 12, 0, tzinfo=UTC)

    def test_aware_timestamp_converted_to_utc(self):
        plus_two = timezone(timedelta(hours=2))
        record = PersistedRecord(content="x", processed_at=datetime(2024, 5, 1, 14, 0, tzinfo=plus_two))
        assert record.processed_at == datetime(2024, 5, 1, 12, 0, tzinfo=UTC)
        assert record.processed_at.tzinfo == UTC


class TestSyntheticEvent:
    def test_body_derived_from_sequence(self):
        event = SyntheticEvent(7)
        assert event.text == "Event 7"
        assert event.body == b"Event 7"

    @given(a=st.integers(min_value=1, max_value=10_000), b=st.integers(min_value=1, max_value=10_000))
    def test_distinct_sequences_have_distinct_bodies(self, a: int, b: int):
        assert (SyntheticEvent(a).body == SyntheticEvent(b).body) == (a == b)
