"""
Notification channel implementations for the relay service.

Contains the shared channel types and the e-mail, PagerDuty and chat
channels.
"""

from .base import AlertChannel, ChannelResult, DeliveryStatus
from .chat_channel import ChatChannel
from .email_channel import EmailChannel
from .pagerduty_channel import PagerDutyChannel

__all__ = [
    "AlertChannel",
    "ChannelResult",
    "ChatChannel",
    "DeliveryStatus",
    "EmailChannel",
    "PagerDutyChannel",
]
