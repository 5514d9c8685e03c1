"""
Redis Streams consumer for the relay service.

Each inbound stream is read through a consumer group.  An entry is
acknowledged only after the handler has settled, so a crashed worker
leaves its entries pending; they are claimed again by any consumer once
they have been idle for ``claim_idle_ms``.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any

import structlog

from relay_common.logging import bind_context, clear_context
from relay_common.messaging import RedisClient

logger = structlog.get_logger()

BODY_FIELDS = ("body", "data")

Handler = Callable[[str | None], Awaitable[Any]]


def entry_body(fields: dict[str, str]) -> str | None:
    """Return the message body stored in a stream entry."""
    for name in BODY_FIELDS:
        if name in fields:
            return fields[name]
    return None


class StreamConsumer:
    """Read a stream through a consumer group and hand bodies to *handler*.

    Args:
        redis: Connected :class:`RedisClient`.
        stream: Stream key.
        group: Consumer group name.
        consumer: This consumer's name within the group.
        handler: ``async (body) -> Any``; expected not to raise.
        count: Maximum entries per read.
        block_ms: How long a read blocks waiting for entries.
        claim_idle_ms: Idle time after which pending entries are reclaimed.
    """

    def __init__(
        self,
        redis: RedisClient,
        stream: str,
        group: str,
        consumer: str,
        handler: Handler,
        *,
        count: int = 10,
        block_ms: int = 5000,
        claim_idle_ms: int = 60000,
    ) -> None:
        self._redis = redis
        self.stream = stream
        self.group = group
        self.consumer = consumer
        self._handler = handler
        self.count = count
        self.block_ms = block_ms
        self.claim_idle_ms = claim_idle_ms
        self._running = False

    async def setup(self) -> None:
        await self._redis.ensure_group(self.stream, self.group)

    async def _process(self, entry_id: str, fields: dict[str, str]) -> None:
        # Runs in its own task, so the bound context stays per entry.
        bind_context(stream=self.stream, message_id=entry_id)
        try:
            await self._handler(entry_body(fields))
        except Exception as exc:  # noqa: BLE001
            logger.error("stream_handler_failed", reason=repr(exc))
        finally:
            clear_context()
        await self._redis.xack(self.stream, self.group, entry_id)

    async def poll_once(self) -> int:
        """Process reclaimed entries, then one batch of new entries.

        Returns:
            Number of entries processed.
        """
        claimed = await self._redis.xautoclaim(
            self.stream,
            self.group,
            self.consumer,
            min_idle_ms=self.claim_idle_ms,
            count=self.count,
        )
        if claimed:
            logger.info("stream_entries_reclaimed", stream=self.stream, count=len(claimed))
        entries = await self._redis.xreadgroup(
            self.stream,
            self.group,
            self.consumer,
            count=self.count,
            block=self.block_ms,
        )
        batch = claimed + entries
        if batch:
            await asyncio.gather(*(self._process(entry_id, fields) for entry_id, fields in batch))
        return len(batch)

    async def run(self) -> None:
        """Consume until cancelled or :meth:`stop` is called."""
        log = logger.bind(stream=self.stream, group=self.group, consumer=self.consumer)
        await self.setup()
        self._running = True
        log.info("stream_consumer_started")
        try:
            while self._running:
                try:
                    await self.poll_once()
                except asyncio.CancelledError:
                    raise
                except Exception as exc:  # noqa: BLE001
                    log.error("stream_poll_failed", reason=repr(exc))
                    await asyncio.sleep(1.0)
        finally:
            self._running = False
            log.info("stream_consumer_stopped")

    def stop(self) -> None:
        self._running = False
