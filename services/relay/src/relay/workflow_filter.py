"""
Classification of GitHub workflow runs.

A run is reported when it failed on ``main`` and belongs to one or more
of the watched categories, each of which has its own chat channel.
"""

from __future__ import annotations

import enum
from collections.abc import Iterable
from dataclasses import dataclass

from relay_common.config import Settings
from relay_common.models import WorkflowEvent

MAIN_BRANCH = "main"
COMPLETED_ACTION = "completed"
FAILED_CONCLUSIONS = frozenset(
    {
        "action_required",
        "failure",
        "stale",
        "timed_out",
        "startup_failure",
    }
)
_INFRA_DEV_MARKER = "infra-dev"


class WorkflowCategory(str, enum.Enum):
    """Groups of workflows reported to a dedicated channel."""

    INFRA = "infra"
    CREATE_SERVICE = "create_service"
    PORTAL_JOURNEY = "portal_journey"


@dataclass(frozen=True)
class WorkflowRouting:
    """Static allow-lists and target channels for workflow notifications."""

    infra_repos: frozenset[str]
    create_service_repos: frozenset[str]
    tf_svc_infra_repo: str
    portal_journey_workflow: str
    channels: dict[WorkflowCategory, str]

    @classmethod
    def from_settings(cls, settings: Settings) -> WorkflowRouting:
        return cls(
            infra_repos=frozenset(settings.github_repos_infra),
            create_service_repos=frozenset(settings.github_repos_create_service),
            tf_svc_infra_repo=settings.github_tf_svc_infra_repo,
            portal_journey_workflow=settings.github_portal_journey_workflow,
            channels={
                WorkflowCategory.INFRA: settings.slack_channel_infra,
                WorkflowCategory.CREATE_SERVICE: settings.slack_channel_create_service,
                WorkflowCategory.PORTAL_JOURNEY: settings.slack_channel_portal_journey,
            },
        )

    def channel_for(self, category: WorkflowCategory) -> str:
        return self.channels[category]


def _is_create_service_run(event: WorkflowEvent, routing: WorkflowRouting) -> bool:
    repo = event.repository.name
    infra_dev_run = (
        repo == routing.tf_svc_infra_repo
        and _INFRA_DEV_MARKER in event.workflow_run.name.lower()
    )
    return repo in routing.create_service_repos and not infra_dev_run


def classify_workflow(event: WorkflowEvent, routing: WorkflowRouting) -> list[WorkflowCategory]:
    """Return every category *event* belongs to (possibly none)."""
    if event.github_event != "workflow_run":
        return []
    categories: list[WorkflowCategory] = []
    if _is_create_service_run(event, routing):
        categories.append(WorkflowCategory.CREATE_SERVICE)
    if event.workflow_run.name == routing.portal_journey_workflow:
        categories.append(WorkflowCategory.PORTAL_JOURNEY)
    if event.repository.name in routing.infra_repos:
        categories.append(WorkflowCategory.INFRA)
    return categories


def is_failed_main_run(
    event: WorkflowEvent,
    failed_conclusions: Iterable[str] = FAILED_CONCLUSIONS,
) -> bool:
    """``True`` for a completed run on ``main`` with a failing conclusion."""
    run = event.workflow_run
    return (
        run.head_branch == MAIN_BRANCH
        and event.action == COMPLETED_ACTION
        and run.conclusion in set(failed_conclusions)
    )
