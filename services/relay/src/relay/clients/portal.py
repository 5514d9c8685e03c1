"""
Service and team registry client.

Looks up the owners of a service in the portal backend and the alert
contacts of a team in the user-service backend.  Lookups are idempotent
GETs, so transport errors are retried with :mod:`tenacity`; HTTP status
codes are never retried.
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog
from pydantic import ValidationError
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from relay_common.models import Service, Team

from relay.errors import RegistryError

logger = structlog.get_logger()

_DEFAULT_TIMEOUT_S = 10.0
_DEFAULT_MAX_ATTEMPTS = 2


class PortalClient:
    """Async client for the service registry and team contact lookups.

    Args:
        portal_url: Base URL of the service registry.
        user_service_url: Base URL of the team registry.
        timeout: Per-request timeout in seconds.
        max_attempts: Attempts per lookup on transport errors.
        client: Optional pre-built ``httpx.AsyncClient`` (used in tests).
    """

    def __init__(
        self,
        portal_url: str,
        user_service_url: str,
        *,
        timeout: float = _DEFAULT_TIMEOUT_S,
        max_attempts: int = _DEFAULT_MAX_ATTEMPTS,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.portal_url = portal_url.rstrip("/")
        self.user_service_url = user_service_url.rstrip("/")
        self.timeout = timeout
        self.max_attempts = max_attempts
        self._client = client

    async def _get_client(self) -> httpx.AsyncClient:
        """Return (and lazily create) the shared ``httpx.AsyncClient``."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def _get(self, url: str, params: dict[str, str] | None = None) -> httpx.Response:
        """GET *url*, retrying transport errors only."""

        @retry(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=0.5, min=0.5, max=4),
            retry=retry_if_exception_type(httpx.TransportError),
            reraise=True,
        )
        async def _inner() -> httpx.Response:
            client = await self._get_client()
            return await client.get(
                url,
                params=params,
                headers={"Content-Type": "application/json"},
            )

        try:
            return await _inner()
        except httpx.TransportError as exc:
            raise RegistryError(f"GET {url} failed: {exc}") from exc

    @staticmethod
    def _json(resp: httpx.Response) -> Any:
        try:
            return resp.json()
        except ValueError as exc:
            raise RegistryError(
                f"invalid JSON from {resp.request.url}",
                status_code=resp.status_code,
            ) from exc

    # ── lookups ──

    async def fetch_service(self, name: str) -> Service | None:
        """Return the registry entry for *name*, or ``None`` if not found.

        Raises:
            RegistryError: The registry could not be reached.
        """
        resp = await self._get(f"{self.portal_url}/services/{name}")
        if resp.status_code != 200:
            logger.debug("registry_service_not_found", service=name, status=resp.status_code)
            return None
        data = self._json(resp)
        if not isinstance(data, dict):
            return None
        try:
            return Service.model_validate({"name": name, "teams": data.get("teams") or []})
        except ValidationError as exc:
            raise RegistryError(f"unexpected service payload for {name}") from exc

    async def fetch_team(self, team_id: str) -> Team | None:
        """Return the team with *team_id* including its alert addresses.

        Raises:
            RegistryError: The registry could not be reached.
        """
        resp = await self._get(f"{self.user_service_url}/teams/{team_id}")
        if resp.status_code != 200:
            logger.debug("registry_team_not_found", team_id=team_id, status=resp.status_code)
            return None
        data = self._json(resp)
        team = data.get("team") if isinstance(data, dict) else None
        if not isinstance(team, dict):
            return None
        return Team.model_validate({"teamId": team_id, **team})

    async def find_teams(self, name: str) -> list[Team]:
        """Return the teams called *name*.

        Raises:
            RegistryError: The registry could not be reached.
        """
        resp = await self._get(f"{self.user_service_url}/teams", params={"name": name})
        if resp.status_code != 200:
            return []
        data = self._json(resp)
        teams = data.get("teams") if isinstance(data, dict) else None
        return [Team.model_validate(t) for t in teams or [] if isinstance(t, dict)]

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None
