"""
Environment gate for outgoing alerts.

Runs before any network call so alerts from environments nobody should
be woken up for never reach the registries or the transports.
"""

from __future__ import annotations

from collections.abc import Sequence

from relay_common.models import Alert, OverrideTable


def effective_environments(
    service: str,
    default_environments: Sequence[str],
    overrides: OverrideTable,
) -> Sequence[str]:
    """Return the allow-list for *service*; an override replaces the default."""
    entry = overrides.get(service)
    if entry is not None and entry.environments is not None:
        return entry.environments
    return default_environments


def should_send_alert(
    alert: Alert,
    default_environments: Sequence[str],
    overrides: OverrideTable,
) -> bool:
    """``True`` iff *alert*'s environment is in its effective allow-list."""
    allowed = effective_environments(alert.service, default_environments, overrides)
    return alert.environment in allowed
