"""
E-mail alert channel.

Resolves the owners of the alerting service, collects their alert
e-mail addresses and sends one e-mail to the union of them through the
Microsoft Graph transport.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

import structlog

from relay_common.models import Alert, AlertStatus, EmailContent, OverrideTable, Team

from relay import metrics
from relay.environment_filter import should_send_alert
from relay.fanout import gather_settled
from relay.ownership import OwnershipResolver
from relay.rendering import EmailRenderer

from .base import AlertChannel, ChannelResult, DeliveryStatus, EmailTransport

logger = structlog.get_logger()

TEMPLATE_NAME = "grafana-alert"

ALERT_COLOURS = {
    AlertStatus.FIRING: "#d4351C",
    AlertStatus.RESOLVED: "#00703c",
}
_SUBJECT_PREFIX = {
    AlertStatus.FIRING: "Alert Triggered",
    AlertStatus.RESOLVED: "Alert Resolved",
}
_PAGE_TITLE = {
    AlertStatus.FIRING: "Grafana Firing Alert",
    AlertStatus.RESOLVED: "Grafana Alert Resolved",
}


class TeamDirectory(Protocol):
    """Team contact lookups."""

    async def fetch_team(self, team_id: str) -> Team | None: ...

    async def find_teams(self, name: str) -> list[Team]: ...


def build_email(alert: Alert, status: AlertStatus, renderer: EmailRenderer) -> EmailContent:
    """Render the subject and body for *alert* in *status*."""
    subject = _SUBJECT_PREFIX[status]
    if alert.alert_name:
        subject = f"{subject} {alert.alert_name}"
    context = {
        **alert.to_context(),
        "pageTitle": _PAGE_TITLE[status],
        "statusColour": ALERT_COLOURS[status],
    }
    return EmailContent(subject=subject, body=renderer.render(TEMPLATE_NAME, context))


def merge_addresses(address_lists: Sequence[Sequence[str]]) -> list[str]:
    """Union *address_lists*, dropping repeats and keeping first appearance."""
    seen: set[str] = set()
    merged: list[str] = []
    for addresses in address_lists:
        for address in addresses:
            if address and address not in seen:
                seen.add(address)
                merged.append(address)
    return merged


class EmailChannel(AlertChannel):
    """Send alert e-mails to the owning teams of a service.

    Args:
        transport: E-mail transport (``send(sender, content, recipients)``).
        resolver: Ownership resolver.
        directory: Team contact lookups.
        renderer: E-mail template renderer.
        sender: Mailbox e-mails are sent from.
        environments: Default environment allow-list.
        overrides: Read-only override table.
        enabled: Global e-mail switch.
    """

    name: str = "email"

    def __init__(
        self,
        transport: EmailTransport,
        resolver: OwnershipResolver,
        directory: TeamDirectory,
        renderer: EmailRenderer,
        *,
        sender: str,
        environments: Sequence[str],
        overrides: OverrideTable,
        enabled: bool = True,
    ) -> None:
        self._transport = transport
        self._resolver = resolver
        self._directory = directory
        self._renderer = renderer
        self.sender = sender
        self.environments = tuple(environments)
        self._overrides = overrides
        self.enabled = enabled

    # ── contacts ──

    async def _team_addresses(self, team: Team) -> list[str]:
        if team.alert_email_addresses is not None:
            return list(team.alert_email_addresses)
        if team.team_id:
            found = await self._directory.fetch_team(team.team_id)
            return list(found.alert_email_addresses or []) if found else []
        if team.name:
            matches = await self._directory.find_teams(team.name)
            return merge_addresses([t.alert_email_addresses or [] for t in matches])
        return []

    async def find_contacts(self, alert: Alert) -> list[str]:
        """Return the de-duplicated alert addresses of *alert*'s owners."""
        teams = await self._resolver.resolve_teams(
            alert.service, alert.explicit_teams, legacy_team=alert.team
        )
        outcomes = await gather_settled(
            [(team.name or team.team_id or "?", self._team_addresses(team)) for team in teams]
        )
        address_lists: list[list[str]] = []
        for outcome in outcomes:
            if outcome.ok:
                address_lists.append(outcome.value)
            else:
                logger.warning(
                    "team_contacts_lookup_failed",
                    service=alert.service,
                    team=outcome.label,
                    reason=str(outcome.error),
                )
        contacts = merge_addresses(address_lists)
        logger.info("alert_contacts_found", service=alert.service, count=len(contacts))
        return contacts

    # ── delivery ──

    async def send(self, alert: Alert) -> ChannelResult:
        """Resolve recipients for *alert* and send one e-mail to all of them."""
        log = logger.bind(
            channel=self.name,
            service=alert.service,
            environment=alert.environment,
            alert_name=alert.alert_name,
        )

        if not should_send_alert(alert, self.environments, self._overrides):
            return ChannelResult.skipped(self.name, "environment_not_allowed")

        if not alert.service:
            log.warning("alert_missing_service")
            return ChannelResult.skipped(self.name, "missing_service")

        status = alert.alert_status
        if status is None:
            log.warning("alert_unexpected_status", status=alert.status)
            return ChannelResult.skipped(self.name, "unexpected_status")

        contacts = await self.find_contacts(alert)
        if not contacts:
            log.info("alert_no_contacts")
            return ChannelResult.skipped(self.name, "no_contacts")

        log.debug("alert_email_recipients", recipients=contacts)
        log.info("grafana_alert_received", status=alert.status)

        if not self.enabled:
            log.info("email_alerts_disabled")
            return ChannelResult.skipped(self.name, "disabled")

        try:
            content = build_email(alert, status, self._renderer)
            await self._transport.send(self.sender, content, contacts)
        except Exception as exc:  # noqa: BLE001
            log.error("email_delivery_failed", reason=str(exc))
            metrics.notification_failures_total.labels(channel=self.name).inc()
            return ChannelResult(
                channel=self.name,
                status=DeliveryStatus.FAILED,
                reason=str(exc),
                failed=1,
            )

        log.info("email_delivered", recipients=len(contacts))
        metrics.notifications_sent_total.labels(channel=self.name).inc()
        return ChannelResult(channel=self.name, status=DeliveryStatus.DELIVERED, sent=1)
