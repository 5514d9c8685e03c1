"""
Chat channel for failed GitHub workflow runs.

Builds a Slack attachment describing the failed run and publishes it to
the chat notification bus, addressed to the channel of one workflow
category.
"""

from __future__ import annotations

from typing import Any

import structlog

from relay_common.models import WorkflowEvent

from relay import metrics
from relay.workflow_filter import WorkflowCategory, WorkflowRouting

from .base import ChannelResult, ChatBus, DeliveryStatus

logger = structlog.get_logger()

FAILURE_COLOUR = "#f03f36"
GITHUB_ICON_URL = "https://www.iconfinder.com/icons/298822/download/png/512"


def build_chat_message(event: WorkflowEvent, slack_channel: str) -> dict[str, Any]:
    """Build the Slack message for a failed run of *event*.

    Format:
        *Failed GitHub Action*
        repo - 'workflow' failed
        Failed Workflow: <run link|run number>
        Commit Message: '...'  /  Author: ...
    """
    run = event.workflow_run
    repo = event.repository.name
    run_label = run.run_number if run.run_number is not None else run.name
    blocks: list[dict[str, Any]] = [
        {
            "type": "context",
            "elements": [
                {"type": "image", "image_url": GITHUB_ICON_URL, "alt_text": "GitHub"},
                {"type": "mrkdwn", "text": "*Failed GitHub Action*"},
            ],
        },
        {
            "type": "rich_text",
            "elements": [
                {
                    "type": "rich_text_section",
                    "elements": [
                        {
                            "type": "text",
                            "text": f"{repo} - '{run.name}' failed",
                            "style": {"bold": True},
                        },
                    ],
                },
            ],
        },
        {
            "type": "context",
            "elements": [
                {"type": "mrkdwn", "text": f"*Failed Workflow:* <{run.html_url}|{run_label}>"},
            ],
        },
        {
            "type": "context",
            "elements": [
                {
                    "type": "mrkdwn",
                    "text": (
                        f"*Commit Message:* '{run.head_commit.message}'\n"
                        f"*Author:* {run.head_commit.author.name}"
                    ),
                },
            ],
        },
    ]
    return {
        "channel": slack_channel,
        "attachments": [{"color": FAILURE_COLOUR, "blocks": blocks}],
    }


class ChatChannel:
    """Publish failed-workflow messages to the chat notification bus.

    Args:
        bus: Notification bus (``publish(topic, message)``).
        topic: Bus topic the chat forwarder listens on.
        routing: Category to chat channel mapping.
        team: Team the notification is attributed to.
        enabled: Switch for failed-workflow notifications.
    """

    name: str = "chat"

    def __init__(
        self,
        bus: ChatBus,
        topic: str,
        routing: WorkflowRouting,
        *,
        team: str = "platform",
        enabled: bool = True,
    ) -> None:
        self._bus = bus
        self.topic = topic
        self._routing = routing
        self.team = team
        self.enabled = enabled

    async def dispatch(self, event: WorkflowEvent, category: WorkflowCategory) -> ChannelResult:
        """Notify the chat channel configured for *category*."""
        return await self.send(event, self._routing.channel_for(category))

    async def send(self, event: WorkflowEvent, slack_channel: str) -> ChannelResult:
        """Publish a notification about *event* to *slack_channel*."""
        run = event.workflow_run
        log = logger.bind(
            channel=self.name,
            repo=event.repository.name,
            workflow=run.name,
            slack_channel=slack_channel,
        )
        log.info("workflow_failed", url=run.html_url, conclusion=run.conclusion)

        if not self.enabled:
            log.info("chat_notifications_disabled")
            return ChannelResult.skipped(self.name, "disabled")

        message = {
            "team": self.team,
            "channel": slack_channel,
            "message": build_chat_message(event, slack_channel),
        }
        try:
            await self._bus.publish(self.topic, message)
        except Exception as exc:  # noqa: BLE001
            log.error("chat_publish_failed", reason=str(exc))
            metrics.notification_failures_total.labels(channel=self.name).inc()
            return ChannelResult(
                channel=self.name,
                status=DeliveryStatus.FAILED,
                reason=str(exc),
                failed=1,
            )
        log.info("chat_published", topic=self.topic)
        metrics.notifications_sent_total.labels(channel=self.name).inc()
        return ChannelResult(channel=self.name, status=DeliveryStatus.DELIVERED, sent=1)
