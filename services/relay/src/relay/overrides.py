"""
Static per-service overrides.

Services are normally resolved through the service registry and mapped
1:1 onto a PagerDuty technical service, alerting for the default
environments only.  Add an entry here when a service is missing from the
registry, is known by another name in PagerDuty, or must alert for other
environments::

    "my-service": OverrideEntry(
        teams=(Team(name="platform"),),
        environments=("management", "prod"),
        technical_service="my_service",
    )
"""

from __future__ import annotations

from relay_common.config import get_settings
from relay_common.models import OverrideEntry, OverrideTable, Team, build_override_table

_PLATFORM_SERVICES = (
    "cdp-backup",
    "cdp-elasticache",
    "cdp-lambda",
    "cdp-nginx-proxy",
    "cdp-opensearch-cluster",
    "cdp-opensearch-ingestion",
    "cdp-protected-mongo",
    "cdp-squid-proxy",
    "cdp-waf",
)


def platform_team() -> Team:
    """The team owning platform services."""
    settings = get_settings()
    return Team(name=settings.platform_team, team_id=settings.platform_team_id)


def default_overrides() -> OverrideTable:
    """Build the read-only override table used by the running service."""
    platform = OverrideEntry(teams=(platform_team(),))
    entries = {name: platform for name in _PLATFORM_SERVICES}
    entries["cdp-canary-deployment-backend"] = OverrideEntry(
        teams=(Team(name="platform-tenant-cko", team_id=get_settings().platform_team_id),),
    )
    return build_override_table(entries)
