"""
PagerDuty Events API v2 transport.

Enqueues trigger/resolve events.  A non-2xx answer or an unreachable
API raises :class:`~relay.errors.PagerDutyError`; nothing is retried.
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from relay.errors import PagerDutyError

logger = structlog.get_logger()


class PagerDutyClient:
    """Async client for ``POST {url}/v2/enqueue``.

    Args:
        url: Events API base URL.
        timeout: Per-request timeout in seconds.
        client: Optional pre-built ``httpx.AsyncClient`` (used in tests).
    """

    name: str = "pagerduty"

    def __init__(
        self,
        url: str,
        *,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.url = url.rstrip("/")
        self.timeout = timeout
        self._client = client

    async def _get_client(self) -> httpx.AsyncClient:
        """Return (and lazily create) the shared ``httpx.AsyncClient``."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def enqueue(
        self,
        routing_key: str,
        payload: dict[str, Any],
        *,
        event_action: str,
        dedup_key: str | None = None,
        link_url: str | None = None,
    ) -> str:
        """Send one event to PagerDuty.

        Args:
            routing_key: Integration key of the destination service.
            payload: Event payload (summary, severity, source, details).
            event_action: ``trigger`` or ``resolve``.
            dedup_key: Key correlating the trigger and resolve of one incident.
            link_url: Optional link attached to the incident.

        Returns:
            The response body text.

        Raises:
            PagerDutyError: The API was unreachable or rejected the event.
        """
        body: dict[str, Any] = {
            "payload": payload,
            "routing_key": routing_key,
            "event_action": event_action,
        }
        if dedup_key:
            body["dedup_key"] = dedup_key
        if link_url:
            body["links"] = [{"href": link_url, "text": link_url}]

        try:
            client = await self._get_client()
            resp = await client.post(
                f"{self.url}/v2/enqueue",
                json=body,
                headers={"Content-Type": "application/json"},
            )
        except httpx.HTTPError as exc:
            raise PagerDutyError(f"PagerDuty unreachable: {exc}") from exc
        if not resp.is_success:
            raise PagerDutyError(
                f"HTTP Error Response: {resp.status_code} {resp.text}",
                status_code=resp.status_code,
            )
        return resp.text

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None
