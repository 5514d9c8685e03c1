"""
GitHub workflow-run event models for alert-relay.

Only the fields needed to classify a run and describe it in a chat
message are modelled; everything else in the webhook body is ignored.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class _Lenient(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)


class CommitAuthor(_Lenient):
    """Author of the head commit."""

    name: str = ""


class HeadCommit(_Lenient):
    """Commit the workflow ran against."""

    message: str = ""
    author: CommitAuthor = Field(default_factory=CommitAuthor)


class Repository(_Lenient):
    """Repository the workflow belongs to."""

    name: str = ""
    html_url: str = ""


class WorkflowRun(_Lenient):
    """A single run of a GitHub Actions workflow."""

    name: str = ""
    html_url: str = ""
    run_number: int | None = None
    head_branch: str = ""
    conclusion: str | None = None
    head_commit: HeadCommit = Field(default_factory=HeadCommit)


class WorkflowEvent(_Lenient):
    """A ``workflow_run`` webhook event.

    Attributes:
        github_event: Webhook event name (always ``workflow_run``).
        action: Webhook action (``requested``, ``in_progress``, ``completed``).
        repository: Repository the run belongs to.
        workflow_run: The run itself.
    """

    github_event: str = "workflow_run"
    action: str = ""
    repository: Repository = Field(default_factory=Repository)
    workflow_run: WorkflowRun = Field(default_factory=WorkflowRun)
