"""
Inbound message normalisation for the relay service.

Turns a raw queue body into typed ``Alert`` values or a single
``WorkflowEvent``.  Malformed input is logged and dropped; nothing here
raises, so the source message can always be acknowledged.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

import structlog
from pydantic import ValidationError

from relay_common.models import Alert, WorkflowEvent

logger = structlog.get_logger()

WORKFLOW_RUN_EVENT = "workflow_run"


@dataclass
class ParsedMessage:
    """Normalised content of one queue message."""

    alerts: list[Alert] = field(default_factory=list)
    workflow_event: WorkflowEvent | None = None

    @property
    def is_empty(self) -> bool:
        return not self.alerts and self.workflow_event is None


def _parse_alert(item: Any, index: int) -> Alert | None:
    if not isinstance(item, dict):
        logger.warning("alert_not_an_object", index=index)
        return None
    try:
        return Alert.model_validate(item)
    except ValidationError as exc:
        logger.warning(
            "alert_invalid",
            index=index,
            service=item.get("service"),
            errors=exc.error_count(),
            reason=str(exc.errors()[0]["msg"]) if exc.errors() else "",
        )
        return None


def parse_message(body: str | bytes | None) -> ParsedMessage:
    """Deserialise a raw queue body.

    A JSON object with ``github_event == "workflow_run"`` becomes a
    workflow event.  Any other object, or an array of objects, is read
    as Grafana alerts; invalid items are dropped individually.

    Args:
        body: Raw message body.

    Returns:
        The parsed message (empty when nothing usable was found).
    """
    if body is None:
        logger.warning("message_empty")
        return ParsedMessage()
    try:
        data = json.loads(body)
    except (json.JSONDecodeError, TypeError, UnicodeDecodeError, RecursionError) as exc:
        logger.warning("message_parse_failed", error=str(exc))
        return ParsedMessage()

    if isinstance(data, dict) and data.get("github_event") == WORKFLOW_RUN_EVENT:
        try:
            return ParsedMessage(workflow_event=WorkflowEvent.model_validate(data))
        except ValidationError as exc:
            logger.warning("workflow_event_invalid", errors=exc.error_count())
            return ParsedMessage()

    if isinstance(data, dict):
        items: list[Any] = [data]
    elif isinstance(data, list):
        items = data
    else:
        logger.warning("message_unexpected_shape", type=type(data).__name__)
        return ParsedMessage()

    alerts = [a for i, item in enumerate(items) if (a := _parse_alert(item, i)) is not None]
    if len(alerts) < len(items):
        logger.info("alerts_dropped", received=len(items), kept=len(alerts))
    return ParsedMessage(alerts=alerts)
