"""Redis Streams transport.

Features:
- Batches published atomically with a MULTI/EXEC pipeline of XADD
- Consumer groups with XREADGROUP/XACK
- Automatic consumer group creation
- Redelivery of unacked batches through XAUTOCLAIM
- Connection pooling with reconnection on failure
"""

import asyncio
import logging
from typing import Any
from urllib.parse import urlparse, urlunparse
from uuid import uuid4

from streamsink.core.config import DEFAULT_MAX_BATCH_BYTES
from streamsink.core.logging import get_logger
from streamsink.streams.base import EventBatch, ReceivedBatch

logger = get_logger("streamsink.redis")

BODY_FIELD = b"body"


def _sanitize_url(url: str) -> str:
    """Mask password in Redis URL for logging."""
    try:
        parsed = urlparse(url)
        if parsed.password:
            netloc = f"{parsed.username or ''}:****@{parsed.hostname}"
            if parsed.port:
                netloc += f":{parsed.port}"
            return urlunparse(
                (parsed.scheme, netloc, parsed.path, parsed.params, parsed.query, parsed.fragment)
            )
        return f"{parsed.hostname}:{parsed.port or 6379}"
    except Exception:
        return "<url>"


def _text(value: bytes | str) -> str:
    return value.decode() if isinstance(value, bytes) else value


class RedisStream:
    """Redis Streams transport with consumer groups."""

    def __init__(
        self,
        redis_url: str,
        stream_key: str,
        consumer_group: str = "streamsink",
        consumer_name: str | None = None,
        max_batch_bytes: int = DEFAULT_MAX_BATCH_BYTES,
        claim_min_idle_ms: int = 30_000,
        pool_size: int = 10,
    ) -> None:
        """Initialize the stream.

        Args:
            redis_url: Redis connection URL.
            stream_key: Stream key events are published to and read from.
            consumer_group: Consumer group name.
            consumer_name: Unique consumer name (auto-generated if None).
            max_batch_bytes: Byte budget of batches from create_batch().
            claim_min_idle_ms: Idle time before unacked messages are redelivered.
            pool_size: Connection pool size.
        """
        self._url = redis_url
        self._url_safe = _sanitize_url(redis_url)
        self.stream_key = stream_key
        self.consumer_group = consumer_group
        self.consumer_name = consumer_name or f"consumer-{uuid4().hex[:8]}"
        self.max_batch_bytes = max_batch_bytes
        self._claim_min_idle_ms = claim_min_idle_ms
        self._pool_size = pool_size

        self._redis: Any = None
        self._group_created = False
        self._conn_lock = asyncio.Lock()

    @property
    def destination(self) -> str:
        return self.stream_key

    async def _get_client(self) -> Any:
        """Get Redis client with connection pooling."""
        if self._redis is not None:
            return self._redis

        from redis.asyncio import ConnectionPool, Redis

        async with self._conn_lock:
            if self._redis is not None:
                return self._redis

            pool = ConnectionPool.from_url(self._url, max_connections=self._pool_size)
            client = Redis(connection_pool=pool)
            try:
                await client.ping()
            except Exception:
                await client.aclose()
                raise

            self._redis = client
            logger.info(f"Connected to Redis at {self._url_safe}")
            return self._redis

    async def _reset_client(self) -> None:
        """Drop the current connection so the next call reconnects."""
        client, self._redis = self._redis, None
        self._group_created = False
        if client is not None:
            try:
                await client.aclose()
            except Exception as close_err:
                logger.debug(f"Error closing old connection: {close_err}")

    async def _ensure_consumer_group(self) -> None:
        """Create consumer group if it doesn't exist."""
        if self._group_created:
            return

        redis = await self._get_client()
        try:
            await redis.xgroup_create(self.stream_key, self.consumer_group, id="0", mkstream=True)
            logger.info(f"Created consumer group '{self.consumer_group}' on '{self.stream_key}'")
        except Exception as e:
            if "BUSYGROUP" in str(e):
                logger.debug(f"Consumer group '{self.consumer_group}' already exists")
            else:
                raise
        self._group_created = True

    async def create_batch(self) -> EventBatch:
        return EventBatch(max_bytes=self.max_batch_bytes)

    async def send(self, batch: EventBatch) -> None:
        """Publish every event of the batch in one MULTI/EXEC transaction."""
        if batch.count == 0:
            return
        redis = await self._get_client()
        try:
            async with redis.pipeline(transaction=True) as pipe:
                for body in batch.bodies:
                    pipe.xadd(self.stream_key, {BODY_FIELD: body})
                await pipe.execute()
        except Exception:
            await self._reset_client()
            raise
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(f"Sent {batch.count} events to {self.stream_key}")

    def _to_batch(self, messages: list, delivery: int = 1) -> ReceivedBatch | None:
        ids: list[str] = []
        bodies: list[bytes | str] = []
        for msg_id, fields in messages:
            if not fields:
                # Entry deleted from the stream while pending
                continue
            ids.append(_text(msg_id))
            bodies.append(fields.get(BODY_FIELD, b""))
        if not ids:
            return None
        return ReceivedBatch(ids=ids, bodies=bodies, delivery=delivery)

    async def _reclaim(self, max_count: int) -> ReceivedBatch | None:
        """Claim messages left unacked longer than claim_min_idle_ms."""
        redis = await self._get_client()
        try:
            result = await redis.xautoclaim(
                self.stream_key,
                self.consumer_group,
                self.consumer_name,
                min_idle_time=self._claim_min_idle_ms,
                start_id="0-0",
                count=max_count,
            )
        except Exception as e:
            logger.warning(f"XAUTOCLAIM failed on {self.stream_key}: {e}")
            return None

        messages = result[1] if result and len(result) > 1 else []
        batch = self._to_batch(messages, delivery=2)
        if batch is not None:
            logger.info(
                f"Reclaimed {len(batch)} unacked messages for redelivery",
                extra={"destination": self.stream_key, "batch_size": len(batch)},
            )
        return batch

    async def read_batch(self, max_count: int, timeout: float = 1.0) -> ReceivedBatch | None:
        """Read up to max_count messages, redeliveries first."""
        await self._ensure_consumer_group()

        reclaimed = await self._reclaim(max_count)
        if reclaimed is not None:
            return reclaimed

        redis = await self._get_client()
        try:
            response = await redis.xreadgroup(
                groupname=self.consumer_group,
                consumername=self.consumer_name,
                streams={self.stream_key: ">"},
                count=max_count,
                block=int(timeout * 1000),
            )
        except Exception:
            await self._reset_client()
            raise

        if not response:
            return None

        _, messages = response[0]
        return self._to_batch(messages)

    async def ack(self, batch: ReceivedBatch) -> None:
        """Acknowledge every message of the batch with XACK."""
        redis = await self._get_client()
        await redis.xack(self.stream_key, self.consumer_group, *batch.ids)
        logger.debug(f"Acked {len(batch.ids)} messages on {self.stream_key}")

    async def nack(self, batch: ReceivedBatch) -> None:
        """Leave the batch pending. It is reclaimed once idle for claim_min_idle_ms."""
        logger.warning(
            f"Batch of {len(batch)} messages left pending for redelivery",
            extra={"destination": self.stream_key, "batch_size": len(batch)},
        )

    async def close(self) -> None:
        """Close Redis connection."""
        if self._redis:
            await self._redis.aclose()
            self._redis = None
            logger.info("Closed Redis connection")

    async def delete_stream(self) -> None:
        """Delete the stream (for testing)."""
        redis = await self._get_client()
        await redis.delete(self.stream_key)
