"""
Shared Pydantic data models for alert-relay.

This package contains the alert, workflow-event, ownership and e-mail models
exchanged between the relay's normaliser, resolvers and dispatchers.
"""

from relay_common.models.alert import Alert, AlertStatus, EventAction
from relay_common.models.email import EmailContent
from relay_common.models.team import (
    OverrideEntry,
    OverrideTable,
    Service,
    Team,
    build_override_table,
)
from relay_common.models.workflow import (
    CommitAuthor,
    HeadCommit,
    Repository,
    WorkflowEvent,
    WorkflowRun,
)

__all__ = [
    "Alert",
    "AlertStatus",
    "CommitAuthor",
    "EmailContent",
    "EventAction",
    "HeadCommit",
    "OverrideEntry",
    "OverrideTable",
    "Repository",
    "Service",
    "Team",
    "WorkflowEvent",
    "WorkflowRun",
    "build_override_table",
]
