"""
E-mail body rendering with Jinja2.

Templates live in ``relay/templates/emails``.  Templates handle the
formatting; callers only pass a context dictionary.
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, select_autoescape

_TEMPLATE_DIR = Path(__file__).parent / "templates" / "emails"
_GRAFANA_FORMATS = ("%Y-%m-%d %H:%M:%S %z %Z", "%Y-%m-%d %H:%M:%S %z")


def _ordinal(day: int) -> str:
    if 11 <= day % 100 <= 13:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(day % 10, "th")
    return f"{day}{suffix}"


def _parse_timestamp(value: str) -> datetime | None:
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        pass
    for fmt in _GRAFANA_FORMATS:
        try:
            return datetime.strptime(value, fmt)
        except ValueError:
            continue
    return None


def format_date(value: Any) -> str:
    """Render *value* as e.g. ``Monday 4th November 2024 at 12:53:20`` (UTC).

    Values that are not recognisable timestamps are returned unchanged.
    """
    if isinstance(value, datetime):
        parsed: datetime | None = value
    elif isinstance(value, str) and value:
        parsed = _parse_timestamp(value)
    else:
        return "" if value is None else str(value)
    if parsed is None:
        return str(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    parsed = parsed.astimezone(timezone.utc)
    return (
        f"{parsed:%A} {_ordinal(parsed.day)} {parsed:%B %Y} at {parsed:%H:%M:%S}"
    )


class EmailRenderer:
    """Render named e-mail templates.

    Args:
        template_dir: Directory holding the ``*.html`` templates.
    """

    def __init__(self, template_dir: Path | None = None) -> None:
        self.template_dir = Path(template_dir or _TEMPLATE_DIR)
        self.env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            autoescape=select_autoescape(["html", "xml"]),
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.env.filters["format_date"] = format_date

    def render(self, name: str, context: dict[str, Any]) -> str:
        """Render template ``{name}.html`` with *context*."""
        return self.env.get_template(f"{name}.html").render(**context)
