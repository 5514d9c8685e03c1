"""
Shared types for notification channels.

Defines the per-dispatch :class:`ChannelResult`, the collaborator
protocols the channels depend on, and the :class:`AlertChannel` base
every alert channel implements.
"""

from __future__ import annotations

import enum
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Protocol

from relay_common.models import Alert, EmailContent


class DeliveryStatus(str, enum.Enum):
    """What happened to one channel dispatch."""

    DELIVERED = "delivered"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class ChannelResult:
    """Outcome of dispatching one notification on one channel.

    Attributes:
        channel: Channel name.
        status: Delivered, skipped (nothing to do) or failed.
        reason: Short machine-friendly explanation.
        sent: Number of downstream sends accepted.
        failed: Number of downstream sends rejected.
    """

    channel: str
    status: DeliveryStatus
    reason: str = ""
    sent: int = 0
    failed: int = 0

    @classmethod
    def skipped(cls, channel: str, reason: str) -> ChannelResult:
        return cls(channel=channel, status=DeliveryStatus.SKIPPED, reason=reason)


class EmailTransport(Protocol):
    async def send(self, sender: str, content: EmailContent, recipients: list[str]) -> Any: ...


class PagerTransport(Protocol):
    async def enqueue(
        self,
        routing_key: str,
        payload: dict[str, Any],
        *,
        event_action: str,
        dedup_key: str | None = None,
        link_url: str | None = None,
    ) -> Any: ...


class ChatBus(Protocol):
    async def publish(self, channel: str, message: dict[str, Any]) -> Any: ...


class AlertChannel(ABC):
    """Base class every alert delivery channel implements.

    Subclasses override :meth:`send` to resolve their own recipients and
    deliver the alert.  ``send`` must not raise: failures are logged and
    reported in the returned :class:`ChannelResult`.

    Attributes:
        name: Channel name used in logs, metrics and results.
        enabled: ``False`` resolves recipients but sends nothing.
    """

    name: str = "base"
    enabled: bool = True

    @abstractmethod
    async def send(self, alert: Alert) -> ChannelResult:
        """Deliver *alert* on this channel."""
