"""Tests for the simulator HTTP endpoint."""

import pytest
from fastapi.testclient import TestClient

from streamsink.apps.simulator.main import create_app
from streamsink.core.config import Settings
from streamsink.streams.base import EventBatch
from streamsink.streams.memory import InMemoryStream

SETTINGS = Settings(stream_url="redis://localhost:6379/0", stream_name="realtime-events")


class BrokenStream(InMemoryStream):
    async def send(self, batch: EventBatch) -> None:
        raise ConnectionError("secret internal detail")


class UnclosableStream(InMemoryStream):
    async def close(self) -> None:
        raise ConnectionError("close failed")


@pytest.fixture
def streams() -> list[InMemoryStream]:
    return []


@pytest.fixture
def client(streams) -> TestClient:
    def factory(settings: Settings) -> InMemoryStream:
        stream = InMemoryStream(name=settings.stream_name)
        streams.append(stream)
        return stream

    return TestClient(create_app(SETTINGS, stream_factory=factory))


def _sent(streams) -> int:
    return sum(len(s.sent_events) for s in streams)


def test_default_count(client, streams):
    response = client.get("/api/simulate")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/plain")
    assert response.text == "Simulation finished. 1000 events sent to realtime-events."
    assert _sent(streams) == 1000


def test_requested_count(client, streams):
    response = client.get("/api/simulate", params={"count": "5000"})

    assert response.status_code == 200
    assert "5000 events" in response.text
    assert [len(b) for b in streams[0].sent_batches] == [250] * 20


def test_post_supported(client, streams):
    response = client.post("/api/simulate?count=3")

    assert response.status_code == 200
    assert _sent(streams) == 3


def test_count_above_maximum_clamped(client, streams):
    response = client.get("/api/simulate", params={"count": "25000"})

    assert response.status_code == 200
    assert "10000 events" in response.text
    assert _sent(streams) == 10_000


def test_non_numeric_count_uses_default(client, streams):
    response = client.get("/api/simulate", params={"count": "lots"})

    assert response.status_code == 200
    assert _sent(streams) == 1000


def test_missing_stream_url_is_configuration_error():
    app = create_app(Settings(stream_name="s"), stream_factory=lambda s: InMemoryStream())

    response = TestClient(app).get("/api/simulate")

    assert response.status_code == 500
    assert response.text == "Configuration error: stream connection string is missing."


def test_missing_stream_name_is_configuration_error():
    app = create_app(Settings(stream_url="redis://x"), stream_factory=lambda s: InMemoryStream())

    response = TestClient(app).get("/api/simulate")

    assert response.status_code == 500
    assert response.text == "Configuration error: stream name is missing."


def test_send_failure_returns_generic_error():
    app = create_app(SETTINGS, stream_factory=lambda s: BrokenStream())

    response = TestClient(app).get("/api/simulate", params={"count": "10"})

    assert response.status_code == 500
    assert response.text == "An unexpected error occurred while sending events."
    assert "secret" not in response.text


def test_stream_construction_failure_returns_generic_error():
    def factory(settings: Settings) -> InMemoryStream:
        raise ValueError("bad stream url: secret")

    response = TestClient(create_app(SETTINGS, stream_factory=factory)).get("/api/simulate")

    assert response.status_code == 500
    assert response.text == "An unexpected error occurred while sending events."


def test_close_failure_after_send_still_succeeds():
    stream = UnclosableStream(name="realtime-events")
    app = create_app(SETTINGS, stream_factory=lambda s: stream)

    response = TestClient(app).get("/api/simulate", params={"count": "5"})

    assert response.status_code == 200
    assert response.text == "Simulation finished. 5 events sent to realtime-events."
    assert len(stream.sent_events) == 5
