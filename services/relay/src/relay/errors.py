"""
Exception hierarchy for the relay service.

Transport adapters raise these; dispatchers catch them at the channel
boundary so a failing channel never affects its siblings.
"""

from __future__ import annotations


class RelayError(Exception):
    """Base class for all relay errors."""


class TransportError(RelayError):
    """An outbound call to an external system failed.

    Attributes:
        channel: Channel or collaborator the call belonged to.
        status_code: HTTP status when the remote answered, else ``None``.
    """

    channel: str = "transport"

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class RegistryError(TransportError):
    """The service or team registry could not be queried."""

    channel = "registry"


class EmailDeliveryError(TransportError):
    """Microsoft Graph rejected or failed an e-mail send."""

    channel = "email"


class PagerDutyError(TransportError):
    """The PagerDuty Events API rejected or failed an enqueue."""

    channel = "pagerduty"
