"""Load simulator entrypoint.

Exposes an HTTP endpoint that publishes synthetic events to the stream:

    GET|POST /api/simulate?count=N   → BatchPublisher → stream

Usage:
    python -m streamsink.apps.simulator.main [--host HOST] [--port PORT]

Configuration is taken from STREAMSINK_* environment variables.
"""

import argparse
import logging
from collections.abc import Callable

from fastapi import FastAPI, Query
from fastapi.responses import PlainTextResponse

from streamsink.core.config import Settings
from streamsink.core.logging import get_logger
from streamsink.core.publisher import BatchPublisher, clamp_count
from streamsink.streams.base import Stream
from streamsink.streams.redis_stream import RedisStream

StreamFactory = Callable[[Settings], Stream]


def redis_stream_factory(settings: Settings) -> Stream:
    """Build the Redis stream events are published to."""
    return RedisStream(
        redis_url=settings.stream_url,
        stream_key=settings.stream_name,
        consumer_group=settings.consumer_group,
        max_batch_bytes=settings.max_batch_bytes,
    )


async def _close_quietly(stream: Stream, log: logging.Logger) -> None:
    try:
        await stream.close()
    except Exception as e:
        log.warning(
            f"Failed to close stream: {e}",
            extra={"destination": stream.destination, "error": str(e)},
        )


def create_app(
    settings: Settings | None = None,
    stream_factory: StreamFactory = redis_stream_factory,
) -> FastAPI:
    """Create the simulator application.

    Args:
        settings: Settings to use. Read from the environment if None.
        stream_factory: Builds a stream per request from the settings.
    """
    settings = settings or Settings.from_env()
    log = get_logger("streamsink.simulator")
    app = FastAPI(title="streamsink simulator")

    @app.api_route("/api/simulate", methods=["GET", "POST"], response_class=PlainTextResponse)
    async def simulate(count: str | None = Query(default=None)) -> PlainTextResponse:
        """Publish count synthetic events (default 1000, at most max_event_count)."""
        log.info("Processing a request to start simulation")

        if settings.stream_url is None:
            log.error("'stream_url' is not set in application settings")
            return PlainTextResponse(
                "Configuration error: stream connection string is missing.", status_code=500
            )
        if settings.stream_name is None:
            log.error("'stream_name' is not set in application settings")
            return PlainTextResponse("Configuration error: stream name is missing.", status_code=500)

        event_count = clamp_count(
            count, default=settings.default_event_count, maximum=settings.max_event_count
        )

        stream: Stream | None = None
        try:
            stream = stream_factory(settings)
            publisher = BatchPublisher(stream, max_batch_count=settings.max_batch_count)
            report = await publisher.publish(event_count)
        except Exception as e:
            log.error(
                f"Simulation aborted: {e}",
                extra={"destination": settings.stream_name, "error": str(e)},
            )
            return PlainTextResponse(
                "An unexpected error occurred while sending events.", status_code=500
            )
        finally:
            if stream is not None:
                await _close_quietly(stream, log)

        return PlainTextResponse(
            f"Simulation finished. {report.total_sent} events sent to {report.destination}."
        )

    return app


def main() -> None:
    """Main entry point for the simulator."""
    import uvicorn

    parser = argparse.ArgumentParser(description="Publish synthetic events to the stream")
    parser.add_argument("--host", default="127.0.0.1", help="Bind address")
    parser.add_argument("--port", type=int, default=8000, help="Bind port")
    args = parser.parse_args()

    uvicorn.run(create_app(), host=args.host, port=args.port)


if __name__ == "__main__":
    main()
