"""Tests for InMemoryStream."""

import asyncio
import time

import pytest

from streamsink.streams.memory import InMemoryStream


async def _publish(stream: InMemoryStream, *bodies: bytes) -> None:
    batch = await stream.create_batch()
    for body in bodies:
        assert batch.try_add(body)
    await stream.send(batch)


async def test_sent_events_are_readable_in_order():
    stream = InMemoryStream()
    await _publish(stream, b"a", b"b", b"c")

    batch = await stream.read_batch(max_count=10, timeout=0.1)

    assert batch is not None
    assert batch.bodies == [b"a", b"b", b"c"]
    assert batch.delivery == 1


async def test_read_respects_max_count():
    stream = InMemoryStream()
    stream.put("1", "2", "3", "4", "5")

    first = await stream.read_batch(max_count=2, timeout=0.1)
    second = await stream.read_batch(max_count=2, timeout=0.1)
    third = await stream.read_batch(max_count=2, timeout=0.1)

    assert [first.bodies, second.bodies, third.bodies] == [["1", "2"], ["3", "4"], ["5"]]


@pytest.mark.timeout(5)
async def test_read_times_out_on_empty_stream():
    stream = InMemoryStream()

    start = time.monotonic()
    assert await stream.read_batch(max_count=10, timeout=0.05) is None
    assert time.monotonic() - start < 1.0


@pytest.mark.timeout(5)
async def test_read_wakes_on_send():
    stream = InMemoryStream()

    reader = asyncio.create_task(stream.read_batch(max_count=10, timeout=2.0))
    await asyncio.sleep(0.01)
    stream.put("late")

    batch = await reader
    assert batch is not None
    assert batch.bodies == ["late"]


async def test_nacked_batch_redelivered_whole_before_new_messages():
    stream = InMemoryStream()
    stream.put("a", "b", "c")

    batch = await stream.read_batch(max_count=2, timeout=0.1)
    await stream.nack(batch)

    again = await stream.read_batch(max_count=10, timeout=0.1)
    assert again.ids == batch.ids
    assert again.bodies == ["a", "b"]
    assert again.delivery == 2

    await stream.ack(again)
    rest = await stream.read_batch(max_count=10, timeout=0.1)
    assert rest.bodies == ["c"]
    assert stream.qsize() == 0


async def test_ack_records_ids():
    stream = InMemoryStream()
    stream.put("a", "b")

    batch = await stream.read_batch(max_count=10, timeout=0.1)
    await stream.ack(batch)

    assert stream.acked == batch.ids
    await stream.nack(batch)
    assert stream.qsize() == 0
