"""
Redis client wrapper for alert-relay.

Provides an async Redis client for pub/sub publishing (the chat
notification bus) and consumer-group stream operations (the inbound
queue: XREADGROUP / XACK / XAUTOCLAIM).
"""

from __future__ import annotations

import json
from typing import Any

import redis.asyncio as aioredis
from redis.exceptions import ResponseError

from relay_common.config import get_settings


class RedisClient:
    """Async Redis wrapper with publish and consumer-group stream helpers.

    Args:
        url: Redis connection URL.  Falls back to ``Settings.redis_url``.
    """

    def __init__(self, url: str | None = None) -> None:
        self._url = url or get_settings().redis_url
        self._redis: aioredis.Redis | None = None

    # ── lifecycle ──

    async def connect(self) -> None:
        """Establish the Redis connection (idempotent)."""
        if self._redis is None:
            self._redis = aioredis.from_url(
                self._url,
                decode_responses=True,
            )

    async def close(self) -> None:
        """Close the Redis connection, if open."""
        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None

    @property
    def redis(self) -> aioredis.Redis:
        """Return the underlying ``aioredis.Redis`` instance.

        Raises:
            RuntimeError: If ``connect()`` has not been called.
        """
        if self._redis is None:
            raise RuntimeError("RedisClient is not connected. Call connect() first.")
        return self._redis

    # ── pub/sub ──

    async def publish(self, channel: str, message: dict[str, Any] | str) -> int:
        """Publish a message to a Redis pub/sub *channel*.

        Args:
            channel: Channel name.
            message: Message payload (dict is JSON-serialised automatically).

        Returns:
            Number of subscribers that received the message.
        """
        payload = json.dumps(message) if isinstance(message, dict) else message
        result: int = await self.redis.publish(channel, payload)
        return result

    # ── consumer-group streams ──

    async def ensure_group(self, stream: str, group: str) -> None:
        """Create *group* on *stream* (and the stream itself) if missing."""
        try:
            await self.redis.xgroup_create(stream, group, id="0", mkstream=True)
        except ResponseError as exc:
            if "BUSYGROUP" not in str(exc):
                raise

    async def xreadgroup(
        self,
        stream: str,
        group: str,
        consumer: str,
        count: int = 10,
        block: int | None = None,
    ) -> list[tuple[str, dict[str, str]]]:
        """Read new entries for *consumer* and flatten them.

        Returns:
            A list of ``(entry_id, fields)`` tuples.
        """
        result: list[Any] = await self.redis.xreadgroup(  # type: ignore[assignment]
            group,
            consumer,
            {stream: ">"},
            count=count,
            block=block,
        )
        entries: list[tuple[str, dict[str, str]]] = []
        for _stream, messages in result or []:
            entries.extend(messages)
        return entries

    async def xautoclaim(
        self,
        stream: str,
        group: str,
        consumer: str,
        min_idle_ms: int,
        count: int = 10,
    ) -> list[tuple[str, dict[str, str]]]:
        """Claim entries left unacknowledged for longer than *min_idle_ms*.

        Returns:
            A list of ``(entry_id, fields)`` tuples now owned by *consumer*.
        """
        result: list[Any] = await self.redis.xautoclaim(  # type: ignore[assignment]
            stream,
            group,
            consumer,
            min_idle_time=min_idle_ms,
            start_id="0-0",
            count=count,
        )
        claimed = result[1] if len(result) > 1 else []
        return [(entry_id, fields) for entry_id, fields in claimed if fields is not None]

    async def xack(self, stream: str, group: str, *entry_ids: str) -> int:
        """Acknowledge *entry_ids* and delete them from *stream*."""
        acked: int = await self.redis.xack(stream, group, *entry_ids)
        await self.redis.xdel(stream, *entry_ids)
        return acked

    # ── health check ──

    async def health_check(self) -> bool:
        """Verify connectivity by issuing a ``PING``.

        Returns:
            ``True`` if Redis responds, ``False`` otherwise.
        """
        try:
            return bool(await self.redis.ping())
        except Exception:  # noqa: BLE001
            return False
