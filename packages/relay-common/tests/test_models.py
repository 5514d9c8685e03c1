"""
Tests for relay-common shared data models.

Validates alias handling, lenient coercion and validation constraints of
the alert, ownership and workflow-event models.
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from relay_common.models import (
    Alert,
    AlertStatus,
    EmailContent,
    OverrideEntry,
    Service,
    Team,
    WorkflowEvent,
    build_override_table,
)


# ===========================================================================
# Alert model tests
# ===========================================================================


class TestAlert:
    """Tests for the Alert model (Grafana JSON → Alert)."""

    def test_reads_grafana_aliases(self) -> None:
        alert = Alert.model_validate(
            {
                "service": "test-service",
                "environment": "prod",
                "status": "firing",
                "alertName": "HighCPU",
                "startsAt": "2024-11-04 12:53:20 +0000 UTC",
                "alertURL": "https://grafana/alert/1",
                "runbookUrl": "https://runbooks/1",
            }
        )
        assert alert.alert_name == "HighCPU"
        assert alert.starts_at == "2024-11-04 12:53:20 +0000 UTC"
        assert alert.alert_url == "https://grafana/alert/1"
        assert alert.runbook_url == "https://runbooks/1"

    def test_service_required(self) -> None:
        with pytest.raises(ValidationError):
            Alert.model_validate({"environment": "prod"})

    def test_service_must_not_be_empty(self) -> None:
        with pytest.raises(ValidationError):
            Alert(service="")

    @pytest.mark.parametrize("raw", [True, "true", "TRUE", "1", "yes"])
    def test_pager_flag_truthy(self, raw) -> None:
        assert Alert.model_validate({"service": "s", "pagerDuty": raw}).pager_duty is True

    @pytest.mark.parametrize("raw", [False, "false", "", None, "0"])
    def test_pager_flag_falsy(self, raw) -> None:
        assert Alert.model_validate({"service": "s", "pagerDuty": raw}).pager_duty is False

    def test_null_strings_become_empty(self) -> None:
        alert = Alert.model_validate({"service": "s", "alertName": None, "summary": None})
        assert alert.alert_name == ""
        assert alert.summary == ""

    def test_alert_status_parsed(self) -> None:
        assert Alert(service="s", status="firing").alert_status is AlertStatus.FIRING
        assert Alert(service="s", status="resolved").alert_status is AlertStatus.RESOLVED

    def test_unknown_status_is_none(self) -> None:
        assert Alert(service="s", status="pending").alert_status is None

    def test_explicit_teams_split(self) -> None:
        alert = Alert(service="s", teams="Platform, forms ,,")
        assert alert.explicit_teams == ["Platform", "forms"]

    def test_explicit_teams_absent(self) -> None:
        assert Alert(service="s").explicit_teams == []

    def test_team_list_joined(self) -> None:
        alert = Alert.model_validate({"service": "s", "teams": ["Platform", "forms"]})
        assert alert.teams == "Platform,forms"
        assert alert.explicit_teams == ["Platform", "forms"]

    def test_numbers_coerced_to_text(self) -> None:
        alert = Alert.model_validate(
            {"service": "s", "startsAt": 1730724800, "summary": 3.5, "team": 42}
        )
        assert alert.starts_at == "1730724800"
        assert alert.summary == "3.5"
        assert alert.team == "42"

    def test_unknown_keys_ignored(self) -> None:
        alert = Alert.model_validate({"service": "s", "fingerprint": "abc"})
        assert not hasattr(alert, "fingerprint")

    def test_frozen(self) -> None:
        alert = Alert(service="s")
        with pytest.raises(ValidationError):
            alert.service = "other"

    def test_context_uses_grafana_keys(self) -> None:
        context = Alert(service="s", alert_name="HighCPU").to_context()
        assert context["alertName"] == "HighCPU"
        assert context["service"] == "s"


# ===========================================================================
# Ownership model tests
# ===========================================================================


class TestTeam:
    """Tests for registry team and service models."""

    def test_reads_registry_aliases(self) -> None:
        team = Team.model_validate(
            {"name": "t1", "teamId": "id-1", "alertEmailAddresses": ["foo@bar.com"]}
        )
        assert team.team_id == "id-1"
        assert team.alert_email_addresses == ["foo@bar.com"]

    def test_addresses_absent_is_none(self) -> None:
        assert Team(name="t1").alert_email_addresses is None

    def test_service_teams_ordered(self) -> None:
        service = Service.model_validate(
            {"name": "svc", "teams": [{"name": "a"}, {"name": "b"}]}
        )
        assert [t.name for t in service.teams] == ["a", "b"]


class TestOverrideTable:
    """Tests for override entries and the read-only table."""

    def test_unknown_field_rejected(self) -> None:
        with pytest.raises(ValidationError):
            OverrideEntry.model_validate({"team": "platform"})

    def test_table_is_read_only(self) -> None:
        table = build_override_table({"svc": OverrideEntry(environments=("prod",))})
        with pytest.raises(TypeError):
            table["other"] = OverrideEntry()  # type: ignore[index]

    def test_table_copies_entries(self) -> None:
        entries = {"svc": OverrideEntry()}
        table = build_override_table(entries)
        entries["later"] = OverrideEntry()
        assert "later" not in table


# ===========================================================================
# Workflow event tests
# ===========================================================================


class TestWorkflowEvent:
    """Tests for the workflow_run webhook subset."""

    def test_parses_webhook_subset(self) -> None:
        event = WorkflowEvent.model_validate(
            {
                "github_event": "workflow_run",
                "action": "completed",
                "repository": {"name": "cdp-tf-infra", "private": False},
                "workflow_run": {
                    "name": "Deploy",
                    "html_url": "https://github.com/run/1",
                    "run_number": 12,
                    "head_branch": "main",
                    "conclusion": "failure",
                    "head_commit": {"message": "fix", "author": {"name": "Dev"}},
                },
            }
        )
        assert event.repository.name == "cdp-tf-infra"
        assert event.workflow_run.run_number == 12
        assert event.workflow_run.head_commit.author.name == "Dev"

    def test_missing_sections_default(self) -> None:
        event = WorkflowEvent.model_validate({"github_event": "workflow_run"})
        assert event.workflow_run.conclusion is None
        assert event.workflow_run.head_commit.message == ""


# ===========================================================================
# E-mail model tests
# ===========================================================================


class TestEmailContent:
    """Rendered e-mail shared by the channel and the Graph transport."""

    def test_fields(self) -> None:
        content = EmailContent(subject="Alert Triggered", body="<p>x</p>")
        assert (content.subject, content.body) == ("Alert Triggered", "<p>x</p>")
