"""
Messaging utilities for alert-relay.

Wraps the Redis connection used both as the inbound message queue and
as the chat notification bus.
"""

from relay_common.messaging.redis_client import RedisClient

__all__ = ["RedisClient"]
