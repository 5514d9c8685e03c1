"""
PagerDuty integration-key lookup.

Keys live in static configuration, per team and per technical service.
A missing key is a normal outcome and yields ``None``.
"""

from __future__ import annotations

from collections.abc import Mapping

from relay_common.models import OverrideTable


class IntegrationKeyResolver:
    """Map teams and services to PagerDuty routing keys.

    Args:
        team_keys: Team name to integration key.
        service_keys: Technical service name to integration key.
        overrides: Override table supplying ``technical_service`` aliases.
    """

    def __init__(
        self,
        team_keys: Mapping[str, str],
        service_keys: Mapping[str, str],
        overrides: OverrideTable,
    ) -> None:
        self._team_keys = {name.lower(): key for name, key in team_keys.items()}
        self._service_keys = dict(service_keys)
        self._overrides = overrides

    def for_team(self, team: str) -> str | None:
        """Return the key for *team* (case-insensitive) or ``None``."""
        return self._team_keys.get(team.lower()) or None

    def technical_service(self, service: str) -> str:
        """Return the PagerDuty name of *service*."""
        entry = self._overrides.get(service)
        if entry is not None and entry.technical_service:
            return entry.technical_service
        return service

    def for_service(self, service: str) -> str | None:
        """Return the service-level key for *service* or ``None``."""
        return self._service_keys.get(self.technical_service(service)) or None

    def for_teams(self, teams: list[str]) -> list[str]:
        """Return the distinct keys found for *teams*, in team order."""
        keys: list[str] = []
        for team in teams:
            key = self.for_team(team)
            if key is not None and key not in keys:
                keys.append(key)
        return keys
