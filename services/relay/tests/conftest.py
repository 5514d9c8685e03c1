"""Shared fixtures for relay service tests."""

from __future__ import annotations

import os
from typing import Any, Callable
from unittest.mock import AsyncMock

import pytest

# Set env vars before any relay_common settings are read.
os.environ.setdefault("RELAY_REDIS_URL", "redis://localhost:6379/0")
os.environ.setdefault("RELAY_LOG_FORMAT", "console")

from relay_common.models import (  # noqa: E402
    Alert,
    OverrideEntry,
    OverrideTable,
    Service,
    Team,
    WorkflowEvent,
    build_override_table,
)

from relay.integration_keys import IntegrationKeyResolver  # noqa: E402
from relay.ownership import OwnershipResolver  # noqa: E402
from relay.rendering import EmailRenderer  # noqa: E402
from relay.workflow_filter import WorkflowCategory, WorkflowRouting  # noqa: E402

PLATFORM = Team(name="Platform", team_id="platform-id")
SERVICE_KEY = "service-key-test-service"
PLATFORM_KEY = "team-key-platform"

# ─── Fixtures ────────────────────────────────────────────────────


@pytest.fixture()
def platform() -> Team:
    return PLATFORM


@pytest.fixture()
def make_alert() -> Callable[..., Alert]:
    """Factory for alerts; keyword arguments use Grafana's keys."""

    def _make(**fields: Any) -> Alert:
        data: dict[str, Any] = {
            "service": "test-service",
            "environment": "prod",
            "status": "firing",
            "pagerDuty": "true",
            "alertURL": "https://grafana.example/alerting/1",
            "startsAt": "2024-11-04 12:53:20 +0000 UTC",
            "endsAt": "0001-01-01 00:00:00 +0000 UTC",
        }
        data.update(fields)
        return Alert.model_validate(data)

    return _make


@pytest.fixture()
def make_workflow_event() -> Callable[..., WorkflowEvent]:
    """Factory for ``workflow_run`` events (a failed run on main by default)."""

    def _make(
        repo: str = "cdp-tf-infra",
        name: str = "Deploy",
        branch: str = "main",
        conclusion: str | None = "failure",
        action: str = "completed",
    ) -> WorkflowEvent:
        return WorkflowEvent.model_validate(
            {
                "github_event": "workflow_run",
                "action": action,
                "repository": {"name": repo},
                "workflow_run": {
                    "name": name,
                    "html_url": f"https://github.com/DEFRA/{repo}/actions/runs/1",
                    "run_number": 42,
                    "head_branch": branch,
                    "conclusion": conclusion,
                    "head_commit": {"message": "Bump version", "author": {"name": "Jo Dev"}},
                },
            }
        )

    return _make


@pytest.fixture()
def overrides() -> OverrideTable:
    return build_override_table(
        {
            "cdp-waf": OverrideEntry(teams=(PLATFORM,)),
            "mgmt-service": OverrideEntry(environments=("management",)),
            "renamed-service": OverrideEntry(technical_service="renamed_service"),
        }
    )


@pytest.fixture()
def registry() -> AsyncMock:
    """Service registry: ``test-service`` is owned by team ``t1``."""
    reg = AsyncMock()

    async def _fetch_service(name: str) -> Service | None:
        if name == "test-service":
            return Service(name=name, teams=[Team(name="t1", team_id="t1-id")])
        return None

    reg.fetch_service = AsyncMock(side_effect=_fetch_service)
    return reg


@pytest.fixture()
def directory() -> AsyncMock:
    """Team contact lookups: ``t1`` receives alerts at ``foo@bar.com``."""
    d = AsyncMock()

    async def _fetch_team(team_id: str) -> Team | None:
        if team_id == "t1-id":
            return Team(name="t1", team_id=team_id, alert_email_addresses=["foo@bar.com"])
        if team_id == PLATFORM.team_id:
            return Team(name="Platform", team_id=team_id, alert_email_addresses=["platform@bar.com"])
        return None

    d.fetch_team = AsyncMock(side_effect=_fetch_team)
    d.find_teams = AsyncMock(return_value=[])
    return d


@pytest.fixture()
def resolver(registry: AsyncMock, overrides: OverrideTable) -> OwnershipResolver:
    return OwnershipResolver(registry, overrides, platform_team=PLATFORM, platform_prefix="cdp-")


@pytest.fixture()
def keys(overrides: OverrideTable) -> IntegrationKeyResolver:
    return IntegrationKeyResolver(
        {"Platform": PLATFORM_KEY},
        {"test-service": SERVICE_KEY, "renamed_service": "service-key-renamed"},
        overrides,
    )


@pytest.fixture()
def renderer() -> EmailRenderer:
    return EmailRenderer()


@pytest.fixture()
def email_transport() -> AsyncMock:
    transport = AsyncMock()
    transport.send = AsyncMock(return_value=None)
    return transport


@pytest.fixture()
def pager_transport() -> AsyncMock:
    transport = AsyncMock()
    transport.enqueue = AsyncMock(return_value='{"status":"success"}')
    return transport


@pytest.fixture()
def chat_bus() -> AsyncMock:
    bus = AsyncMock()
    bus.publish = AsyncMock(return_value=1)
    return bus


@pytest.fixture()
def routing() -> WorkflowRouting:
    return WorkflowRouting(
        infra_repos=frozenset({"cdp-tf-infra", "cdp-tf-core"}),
        create_service_repos=frozenset({"cdp-tf-svc-infra", "cdp-app-config"}),
        tf_svc_infra_repo="cdp-tf-svc-infra",
        portal_journey_workflow="Journey Tests",
        channels={
            WorkflowCategory.INFRA: "infra-alerts",
            WorkflowCategory.CREATE_SERVICE: "create-service-alerts",
            WorkflowCategory.PORTAL_JOURNEY: "portal-alerts",
        },
    )
