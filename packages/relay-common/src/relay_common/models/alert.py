"""
Grafana alert models for alert-relay.

Defines the normalised ``Alert`` received from the monitoring system,
together with the status and pager event-action enumerations. Inbound
messages use Grafana's camelCase keys; the model accepts those aliases
and exposes snake_case attributes.
"""

from __future__ import annotations

import enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

_TRUTHY = {"true", "1", "yes"}


class AlertStatus(str, enum.Enum):
    """Condition transition reported by the monitoring system."""

    FIRING = "firing"
    RESOLVED = "resolved"


class EventAction(str, enum.Enum):
    """PagerDuty Events API v2 action."""

    TRIGGER = "trigger"
    RESOLVE = "resolve"


class Alert(BaseModel):
    """A monitoring alert for one service in one environment.

    Attributes:
        service: Name of the service the alert belongs to.
        environment: Environment the alert originated in.
        status: Raw status string (``firing`` / ``resolved`` drive dispatch).
        alert_name: Grafana alert rule name.
        summary: Short human-readable summary.
        description: Longer description.
        starts_at: Time the condition started (as sent by Grafana).
        ends_at: Time the condition ended (as sent by Grafana).
        alert_url: Link to the alert in Grafana.
        pager_duty: Whether the alert is flagged for pager escalation.
        teams: Optional team names overriding resolution (comma-separated
            string or list).
        team: Legacy single-team label.
        series: Metric series the alert was raised on.
        runbook_url: Link to the runbook.
    """

    model_config = ConfigDict(
        populate_by_name=True, extra="ignore", frozen=True, coerce_numbers_to_str=True
    )

    service: str = Field(..., min_length=1, description="Owning service name.")
    environment: str = Field(default="", description="Originating environment.")
    status: str = Field(default="", description="Alert status.")
    alert_name: str = Field(default="", alias="alertName", description="Alert rule name.")
    summary: str = Field(default="", description="Short summary.")
    description: str = Field(default="", description="Description.")
    starts_at: str = Field(default="", alias="startsAt", description="Start time.")
    ends_at: str = Field(default="", alias="endsAt", description="End time.")
    alert_url: str = Field(default="", alias="alertURL", description="Link to the alert.")
    pager_duty: bool = Field(default=False, alias="pagerDuty", description="Pager flag.")
    teams: str | None = Field(default=None, description="Explicit team names.")
    team: str | None = Field(default=None, description="Legacy team label.")
    series: str = Field(default="", description="Metric series.")
    runbook_url: str = Field(default="", alias="runbookUrl", description="Runbook link.")

    @field_validator("pager_duty", mode="before")
    @classmethod
    def _coerce_flag(cls, value: Any) -> bool:
        if isinstance(value, bool):
            return value
        if value is None:
            return False
        return str(value).strip().lower() in _TRUTHY

    @field_validator(
        "environment",
        "status",
        "alert_name",
        "summary",
        "description",
        "starts_at",
        "ends_at",
        "alert_url",
        "series",
        "runbook_url",
        mode="before",
    )
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("teams", mode="before")
    @classmethod
    def _join_team_list(cls, value: Any) -> Any:
        if isinstance(value, (list, tuple)):
            return ",".join(str(name) for name in value if name is not None)
        return value

    @property
    def alert_status(self) -> AlertStatus | None:
        """The parsed status, or ``None`` for anything but firing/resolved."""
        try:
            return AlertStatus(self.status)
        except ValueError:
            return None

    @property
    def explicit_teams(self) -> list[str]:
        """Team names given on the alert itself, in order."""
        if not self.teams:
            return []
        return [name.strip() for name in self.teams.split(",") if name.strip()]

    def to_context(self) -> dict[str, Any]:
        """Return the alert as a template context using Grafana's keys."""
        return self.model_dump(by_alias=True)
