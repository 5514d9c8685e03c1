"""
Microsoft Graph e-mail transport.

Authenticates with the OAuth2 client-credentials flow and sends HTML
mail from a shared mailbox via ``users/{sender}/sendMail``.
"""

from __future__ import annotations

import time

import httpx
import structlog

from relay_common.models import EmailContent

from relay.errors import EmailDeliveryError

logger = structlog.get_logger()

_GRAPH_SCOPE = "https://graph.microsoft.com/.default"
# Refresh this many seconds before the token actually expires.
_TOKEN_SKEW_S = 60.0


class MsGraphEmailClient:
    """Send e-mail through Microsoft Graph.

    Args:
        base_url: Graph API base URL (e.g. ``https://graph.microsoft.com/v1.0/``).
        login_url: Azure AD login base URL.
        tenant_id: Azure AD tenant.
        client_id: App registration client id.
        client_secret: App registration secret.
        timeout: Per-request timeout in seconds.
        client: Optional pre-built ``httpx.AsyncClient`` (used in tests).
    """

    name: str = "email"

    def __init__(
        self,
        base_url: str,
        login_url: str,
        tenant_id: str,
        client_id: str,
        client_secret: str,
        *,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = base_url if base_url.endswith("/") else base_url + "/"
        self.token_url = f"{login_url.rstrip('/')}/{tenant_id}/oauth2/v2.0/token"
        self._client_id = client_id
        self._client_secret = client_secret
        self.timeout = timeout
        self._client = client
        self._token: str | None = None
        self._token_expires_at: float = 0.0

    async def _get_client(self) -> httpx.AsyncClient:
        """Return (and lazily create) the shared ``httpx.AsyncClient``."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def _access_token(self) -> str:
        if self._token is not None and time.monotonic() < self._token_expires_at:
            return self._token
        client = await self._get_client()
        resp = await client.post(
            self.token_url,
            data={
                "grant_type": "client_credentials",
                "client_id": self._client_id,
                "client_secret": self._client_secret,
                "scope": _GRAPH_SCOPE,
            },
        )
        if resp.status_code != 200:
            raise EmailDeliveryError(
                f"token request failed: {resp.status_code} {resp.text}",
                status_code=resp.status_code,
            )
        data = resp.json()
        self._token = data["access_token"]
        self._token_expires_at = time.monotonic() + float(data.get("expires_in", 3600)) - _TOKEN_SKEW_S
        return self._token

    async def send(self, sender: str, content: EmailContent, recipients: list[str]) -> None:
        """Send *content* from *sender* to every address in *recipients*.

        Raises:
            EmailDeliveryError: Authentication or delivery failed.
        """
        message = {
            "message": {
                "subject": content.subject,
                "body": {"contentType": "html", "content": content.body},
                "toRecipients": [{"emailAddress": {"address": r}} for r in recipients],
            },
            "saveToSentItems": "false",
        }
        try:
            token = await self._access_token()
            client = await self._get_client()
            resp = await client.post(
                f"{self.base_url}users/{sender}/sendMail",
                json=message,
                headers={"Authorization": f"Bearer {token}"},
            )
        except httpx.HTTPError as exc:
            raise EmailDeliveryError(f"Microsoft Graph unreachable: {exc}") from exc
        if resp.status_code >= 300:
            raise EmailDeliveryError(
                f"HTTP Error Response: {resp.status_code} {resp.text}",
                status_code=resp.status_code,
            )
        logger.debug("msgraph_mail_accepted", status=resp.status_code, recipients=len(recipients))

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None
