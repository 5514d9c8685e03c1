"""
Prometheus metrics for the relay service.
"""

from __future__ import annotations

from prometheus_client import Counter

messages_total = Counter(
    "relay_messages_total",
    "Inbound queue messages handled, by kind and outcome",
    ["kind", "outcome"],
)
notifications_sent_total = Counter(
    "relay_notifications_sent_total",
    "Notifications accepted by a downstream channel",
    ["channel"],
)
notification_failures_total = Counter(
    "relay_notification_failures_total",
    "Notifications a downstream channel failed to accept",
    ["channel"],
)
