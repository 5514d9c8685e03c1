"""
Rendered e-mail model shared by the e-mail channel and its transport.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class EmailContent:
    """Rendered e-mail."""

    subject: str
    body: str
