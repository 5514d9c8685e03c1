"""
PagerDuty alert channel.

Routes alerts flagged with ``pagerDuty=true`` to the PagerDuty services
of the owning teams, falling back to the alerting service's own
integration key.  One event is enqueued per integration key,
concurrently; each failure is logged on its own and never stops the
sibling sends.

Failures of the PagerDuty API itself mean the alerting path is broken,
so they raise a single best-effort meta-alert to the platform team.
"""

from __future__ import annotations

import asyncio
import hashlib
from collections.abc import Sequence
from datetime import datetime, timezone
from typing import Any

import structlog

from relay_common.models import Alert, AlertStatus, EventAction, OverrideTable

from relay import metrics
from relay.environment_filter import should_send_alert
from relay.fanout import gather_settled
from relay.integration_keys import IntegrationKeyResolver
from relay.ownership import OwnershipResolver

from .base import AlertChannel, ChannelResult, DeliveryStatus, PagerTransport

logger = structlog.get_logger()

ESCALATION_SUMMARY = "PagerDuty API returned error"

_EVENT_ACTIONS = {
    AlertStatus.FIRING: EventAction.TRIGGER,
    AlertStatus.RESOLVED: EventAction.RESOLVE,
}


def create_dedupe_key(alert: Alert) -> str:
    """Return the incident key shared by the firing and resolved alert.

    Only service, environment and alert URL take part, so both halves of
    one condition land on the same PagerDuty incident.
    """
    raw = f"{alert.service}{alert.environment}{alert.alert_url}"
    return hashlib.md5(raw.encode("utf-8"), usedforsecurity=False).hexdigest()


def event_action_for(alert: Alert) -> EventAction | None:
    """Map *alert*'s status to a PagerDuty action, ``None`` if unmapped."""
    status = alert.alert_status
    return _EVENT_ACTIONS.get(status) if status is not None else None


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def build_payload(alert: Alert, teams: Sequence[str]) -> dict[str, Any]:
    """Build the Events API ``payload`` object for *alert*."""
    summary = alert.summary or f"{alert.alert_name or alert.service} in {alert.environment}"
    return {
        "timestamp": _utc_now(),
        "summary": summary,
        "severity": "critical",
        "source": "grafana",
        "custom_details": {
            "teams": list(teams),
            "service": alert.service,
            "environment": alert.environment,
        },
    }


class PagerDutyChannel(AlertChannel):
    """Page the owners of a service through PagerDuty.

    Args:
        transport: PagerDuty transport (``enqueue``).
        resolver: Ownership resolver.
        keys: Integration-key resolver.
        environments: Default environment allow-list.
        overrides: Read-only override table.
        enabled: Global PagerDuty switch.
        escalation_team: Team paged when the PagerDuty API fails.
        source_service: Name of this service, used on meta-alerts.
        source_environment: Environment of this service, used on meta-alerts.
        timeout: Upper bound in seconds on each enqueue.
    """

    name: str = "pagerduty"

    def __init__(
        self,
        transport: PagerTransport,
        resolver: OwnershipResolver,
        keys: IntegrationKeyResolver,
        *,
        environments: Sequence[str],
        overrides: OverrideTable,
        enabled: bool = True,
        escalation_team: str = "platform",
        source_service: str = "alert-relay",
        source_environment: str = "",
        timeout: float | None = None,
    ) -> None:
        self._transport = transport
        self._resolver = resolver
        self._keys = keys
        self.environments = tuple(environments)
        self._overrides = overrides
        self.enabled = enabled
        self.escalation_team = escalation_team
        self.source_service = source_service
        self.source_environment = source_environment
        self.timeout = timeout

    def integration_keys(self, alert: Alert, teams: Sequence[str]) -> list[str]:
        """Team keys for *teams*, else the service-level key, else nothing."""
        keys = self._keys.for_teams(list(teams))
        if not keys:
            service_key = self._keys.for_service(alert.service)
            if service_key is not None:
                keys.append(service_key)
        return keys

    async def send(self, alert: Alert) -> ChannelResult:
        """Enqueue *alert* on every PagerDuty service it routes to."""
        log = logger.bind(
            channel=self.name,
            service=alert.service,
            environment=alert.environment,
            alert_name=alert.alert_name,
        )

        if not alert.pager_duty:
            log.debug("alert_not_flagged_for_pager")
            return ChannelResult.skipped(self.name, "not_flagged")

        if not should_send_alert(alert, self.environments, self._overrides):
            return ChannelResult.skipped(self.name, "environment_not_allowed")

        if not alert.service:
            log.warning("alert_missing_service")
            return ChannelResult.skipped(self.name, "missing_service")

        teams = await self._resolver.resolve_team_names(
            alert.service, alert.explicit_teams, legacy_team=alert.team
        )
        keys = self.integration_keys(alert, teams)
        if not keys:
            log.info("no_integration_key", teams=teams)
            return ChannelResult.skipped(self.name, "no_integration_key")

        if not self.enabled:
            log.warning("pagerduty_alerts_disabled")
            return ChannelResult.skipped(self.name, "disabled")

        action = event_action_for(alert)
        if action is None:
            log.warning("alert_unexpected_status", status=alert.status)
            return ChannelResult.skipped(self.name, "unexpected_status")

        dedupe_key = create_dedupe_key(alert)
        payload = build_payload(alert, teams)
        log = log.bind(event_action=action.value, dedupe_key=dedupe_key)
        log.info("pagerduty_sending", integrations=len(keys))

        outcomes = await gather_settled(
            [
                (
                    f"key-{i}",
                    self._transport.enqueue(
                        key,
                        payload,
                        event_action=action.value,
                        dedup_key=dedupe_key,
                        link_url=alert.alert_url or None,
                    ),
                )
                for i, key in enumerate(keys)
            ],
            timeout=self.timeout,
        )

        sent = 0
        failed = 0
        for outcome in outcomes:
            if outcome.ok:
                sent += 1
                log.info("pagerduty_delivered", integration=outcome.label, response=outcome.value)
            else:
                failed += 1
                log.error(
                    "pagerduty_delivery_failed",
                    integration=outcome.label,
                    reason=repr(outcome.error),
                )
        if sent:
            metrics.notifications_sent_total.labels(channel=self.name).inc(sent)
        if failed:
            metrics.notification_failures_total.labels(channel=self.name).inc(failed)
            await self.escalate(ESCALATION_SUMMARY)
            return ChannelResult(
                channel=self.name,
                status=DeliveryStatus.FAILED,
                reason=f"{failed} of {len(keys)} sends failed",
                sent=sent,
                failed=failed,
            )
        return ChannelResult(channel=self.name, status=DeliveryStatus.DELIVERED, sent=sent)

    async def escalate(self, summary: str) -> bool:
        """Page the platform team about a failure of the alerting path.

        Best effort: a failure here is logged and swallowed, and never
        escalates again.

        Returns:
            ``True`` if the meta-alert was accepted.
        """
        log = logger.bind(channel=self.name, escalation_team=self.escalation_team)
        key = self._keys.for_team(self.escalation_team)
        if key is None:
            log.warning("escalation_no_integration_key")
            return False
        payload = {
            "timestamp": _utc_now(),
            "summary": summary,
            "severity": "critical",
            "source": self.source_service,
            "custom_details": {
                "teams": [self.escalation_team],
                "service": self.source_service,
                "environment": self.source_environment,
            },
        }
        try:
            await asyncio.wait_for(
                self._transport.enqueue(key, payload, event_action=EventAction.TRIGGER.value),
                self.timeout,
            )
        except Exception as exc:  # noqa: BLE001
            log.error("escalation_failed", reason=str(exc))
            return False
        log.info("escalation_sent")
        return True
