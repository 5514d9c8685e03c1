"""
Outbound transport adapters: service registry, Microsoft Graph e-mail
and the PagerDuty Events API.
"""

from .msgraph import MsGraphEmailClient
from .pagerduty import PagerDutyClient
from .portal import PortalClient

__all__ = [
    "MsGraphEmailClient",
    "PagerDutyClient",
    "PortalClient",
]
