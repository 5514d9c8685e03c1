"""
Service ownership resolution.

Precedence, highest first:

1. team names given explicitly on the alert,
2. the static override table,
3. the service registry,
4. the platform naming convention (``cdp-*`` services belong to the
   platform team),
5. the single ``team`` label older alert rules still carry,
6. nobody.

A service without owners is a normal outcome and is only logged.
"""

from __future__ import annotations

from typing import Protocol

import structlog

from relay_common.models import OverrideTable, Service, Team

from relay.errors import RegistryError

logger = structlog.get_logger()


class ServiceRegistry(Protocol):
    """Lookups the resolver needs from the registry."""

    async def fetch_service(self, name: str) -> Service | None: ...


class OwnershipResolver:
    """Resolve the teams owning a service.

    Args:
        registry: Service registry client.
        overrides: Read-only override table.
        platform_team: Team owning services named with *platform_prefix*.
        platform_prefix: Naming-convention prefix of platform services.
    """

    def __init__(
        self,
        registry: ServiceRegistry,
        overrides: OverrideTable,
        *,
        platform_team: Team,
        platform_prefix: str = "cdp-",
    ) -> None:
        self._registry = registry
        self._overrides = overrides
        self._platform_team = platform_team
        self._platform_prefix = platform_prefix

    async def resolve_teams(
        self,
        service: str,
        explicit_teams: list[str] | None = None,
        *,
        legacy_team: str | None = None,
    ) -> list[Team]:
        """Return the ordered owners of *service*; never raises.

        Args:
            service: Service name.
            explicit_teams: Team names given on the alert.
            legacy_team: Single team label from older alert rules, used
                only when nothing else owns the service.
        """
        log = logger.bind(service=service)

        if explicit_teams:
            return [Team(name=name) for name in explicit_teams]

        entry = self._overrides.get(service)
        if entry is not None and entry.teams:
            return list(entry.teams)

        found: Service | None = None
        try:
            found = await self._registry.fetch_service(service)
        except RegistryError as exc:
            log.warning("registry_lookup_failed", reason=str(exc))
        except Exception as exc:  # noqa: BLE001
            log.error("registry_lookup_error", reason=str(exc))

        if found is not None and found.teams:
            return list(found.teams)

        if self._platform_prefix and service.startswith(self._platform_prefix):
            log.info("service_owned_by_platform_convention")
            return [self._platform_team]

        if legacy_team and legacy_team.strip():
            log.warning("alert_teams_missing", team=legacy_team)
            return [Team(name=legacy_team.strip().lower())]

        log.info("service_not_found")
        return []

    async def resolve_team_names(
        self,
        service: str,
        explicit_teams: list[str] | None = None,
        *,
        legacy_team: str | None = None,
    ) -> list[str]:
        """Return the lowercased names of *service*'s owners."""
        teams = await self.resolve_teams(service, explicit_teams, legacy_team=legacy_team)
        return [team.name.lower() for team in teams if team.name]
