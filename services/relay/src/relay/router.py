"""
Message router for the relay service.

Flow
----
1. Parse the raw queue body into alerts or a workflow event.
2. Alerts: drop duplicates, reject unexpected statuses, then run the
   e-mail and PagerDuty channels concurrently for every alert.
3. Workflow events: keep failed runs on ``main`` and notify the chat
   channel of every category the run belongs to, concurrently.

``handle`` never raises, so the consumer can always acknowledge the
message once it returns.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import structlog

from relay_common.models import Alert, WorkflowEvent

from relay import metrics
from relay.channels.base import AlertChannel, ChannelResult, DeliveryStatus
from relay.channels.chat_channel import ChatChannel
from relay.dedup import filter_duplicate_alerts
from relay.fanout import gather_settled
from relay.normalizer import parse_message
from relay.workflow_filter import WorkflowRouting, classify_workflow, is_failed_main_run

logger = structlog.get_logger()


@dataclass
class HandleResult:
    """Summary of one handled message.

    Attributes:
        kind: ``alerts``, ``workflow`` or ``empty``.
        alerts: Alerts left after de-duplication.
        results: Every channel outcome produced for the message.
    """

    kind: str
    alerts: int = 0
    results: list[ChannelResult] = field(default_factory=list)

    @property
    def failed(self) -> bool:
        return any(r.status is DeliveryStatus.FAILED for r in self.results)

    @property
    def outcome(self) -> str:
        if self.failed:
            return "failed"
        if any(r.status is DeliveryStatus.DELIVERED for r in self.results):
            return "delivered"
        return "skipped"


class MessageRouter:
    """Route queue messages to the notification channels.

    Args:
        email: E-mail alert channel.
        pager: PagerDuty alert channel.
        chat: Chat channel for failed workflow runs.
        routing: Workflow category configuration.
        timeout: Upper bound in seconds on each channel dispatch.
        max_concurrent_alerts: Alerts of one message dispatched at once.
    """

    def __init__(
        self,
        email: AlertChannel,
        pager: AlertChannel,
        chat: ChatChannel,
        routing: WorkflowRouting,
        *,
        timeout: float | None = None,
        max_concurrent_alerts: int | None = None,
    ) -> None:
        self.alert_channels: list[AlertChannel] = [email, pager]
        self.chat = chat
        self.routing = routing
        self.timeout = timeout
        self.max_concurrent_alerts = max_concurrent_alerts

    async def handle(self, body: str | bytes | None) -> HandleResult:
        """Handle one raw message body."""
        try:
            result = await self._handle(body)
        except Exception as exc:  # noqa: BLE001
            logger.error("message_handling_failed", reason=repr(exc))
            result = HandleResult(kind="error")
            metrics.messages_total.labels(kind=result.kind, outcome="failed").inc()
            return result
        metrics.messages_total.labels(kind=result.kind, outcome=result.outcome).inc()
        return result

    async def _handle(self, body: str | bytes | None) -> HandleResult:
        parsed = parse_message(body)
        if parsed.workflow_event is not None:
            return await self.handle_workflow(parsed.workflow_event)
        if parsed.is_empty:
            return HandleResult(kind="empty")
        return await self.handle_alerts(parsed.alerts)

    # ── alerts ──

    async def handle_alerts(self, alerts: list[Alert]) -> HandleResult:
        """Dispatch de-duplicated *alerts* concurrently, up to the configured limit."""
        unique = filter_duplicate_alerts(alerts)
        if len(unique) < len(alerts):
            logger.info("duplicate_alerts_dropped", received=len(alerts), kept=len(unique))

        outcomes = await gather_settled(
            [(f"alert-{i}", self.dispatch_alert(alert)) for i, alert in enumerate(unique)],
            limit=self.max_concurrent_alerts,
        )
        result = HandleResult(kind="alerts", alerts=len(unique))
        for outcome in outcomes:
            if outcome.ok:
                result.results.extend(outcome.value)
            else:
                logger.error("alert_dispatch_failed", alert=outcome.label, reason=repr(outcome.error))
        return result

    async def dispatch_alert(self, alert: Alert) -> list[ChannelResult]:
        """Run every alert channel for *alert* and collect their results."""
        log = logger.bind(service=alert.service, environment=alert.environment)
        if alert.alert_status is None:
            log.warning("alert_unexpected_status", status=alert.status)
            return []

        outcomes = await gather_settled(
            [(channel.name, channel.send(alert)) for channel in self.alert_channels],
            timeout=self.timeout,
        )
        results: list[ChannelResult] = []
        for outcome in outcomes:
            if outcome.ok:
                results.append(outcome.value)
                continue
            log.error("channel_send_error", channel=outcome.label, reason=repr(outcome.error))
            metrics.notification_failures_total.labels(channel=outcome.label).inc()
            results.append(
                ChannelResult(
                    channel=outcome.label,
                    status=DeliveryStatus.FAILED,
                    reason=repr(outcome.error),
                    failed=1,
                )
            )
        log.info(
            "alert_dispatched",
            status=alert.status,
            delivery_status={r.channel: r.status.value for r in results},
        )
        return results

    # ── workflow runs ──

    async def handle_workflow(self, event: WorkflowEvent) -> HandleResult:
        """Notify chat about *event* when it is a failed run on ``main``."""
        result = HandleResult(kind="workflow")
        log = logger.bind(repo=event.repository.name, workflow=event.workflow_run.name)
        if not is_failed_main_run(event):
            log.debug(
                "workflow_run_ignored",
                branch=event.workflow_run.head_branch,
                conclusion=event.workflow_run.conclusion,
            )
            return result

        categories = classify_workflow(event, self.routing)
        if not categories:
            log.debug("workflow_not_watched")
            return result

        outcomes = await gather_settled(
            [(category.value, self.chat.dispatch(event, category)) for category in categories],
            timeout=self.timeout,
        )
        for outcome in outcomes:
            if outcome.ok:
                result.results.append(outcome.value)
                continue
            log.error("chat_dispatch_failed", category=outcome.label, reason=repr(outcome.error))
            result.results.append(
                ChannelResult(
                    channel=self.chat.name,
                    status=DeliveryStatus.FAILED,
                    reason=repr(outcome.error),
                    failed=1,
                )
            )
        return result
