"""
Ownership models for alert-relay.

Defines the teams and services returned by the service registry and the
static per-service override entries that replace automatic resolution.
"""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType

from pydantic import BaseModel, ConfigDict, Field


class Team(BaseModel):
    """A team that owns services and receives their alerts.

    Attributes:
        name: Team name.
        team_id: Registry identifier (``None`` when only the name is known).
        alert_email_addresses: Addresses to e-mail, or ``None`` when the
            registry response did not embed them.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    name: str = Field(default="", description="Team name.")
    team_id: str | None = Field(default=None, alias="teamId", description="Team id.")
    alert_email_addresses: list[str] | None = Field(
        default=None,
        alias="alertEmailAddresses",
        description="Alert e-mail addresses.",
    )


class Service(BaseModel):
    """A service and the ordered list of teams owning it."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    name: str = Field(default="", description="Service name.")
    teams: list[Team] = Field(default_factory=list, description="Owning teams.")


class OverrideEntry(BaseModel):
    """Static replacement for automatic resolution of one service.

    Attributes:
        teams: Owning teams, used verbatim instead of the registry.
        environments: Environment allow-list replacing the default list.
        technical_service: Name the service is known by in PagerDuty.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    teams: tuple[Team, ...] | None = None
    environments: tuple[str, ...] | None = None
    technical_service: str | None = None


OverrideTable = Mapping[str, OverrideEntry]


def build_override_table(entries: Mapping[str, OverrideEntry]) -> OverrideTable:
    """Freeze *entries* into a read-only mapping shared by reference."""
    return MappingProxyType(dict(entries))
