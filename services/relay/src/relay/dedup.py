"""
Batch-scoped alert deduplication.

Grafana may deliver the same notification several times inside one
batch.  Duplicates are collapsed on a fingerprint of the fields that
identify a single condition transition.  No state survives between
batches.
"""

from __future__ import annotations

import hashlib
from collections.abc import Iterable

from relay_common.models import Alert


def alert_fingerprint(alert: Alert) -> str:
    """Return a stable digest of the fields identifying *alert*'s transition."""
    parts = (
        alert.service,
        alert.environment,
        alert.alert_url,
        alert.status,
        alert.starts_at,
        alert.ends_at,
    )
    return hashlib.md5("\x1f".join(parts).encode("utf-8"), usedforsecurity=False).hexdigest()


def filter_duplicate_alerts(alerts: Iterable[Alert]) -> list[Alert]:
    """Keep the first alert per fingerprint, preserving input order."""
    seen: set[str] = set()
    unique: list[Alert] = []
    for alert in alerts:
        fingerprint = alert_fingerprint(alert)
        if fingerprint in seen:
            continue
        seen.add(fingerprint)
        unique.append(alert)
    return unique
