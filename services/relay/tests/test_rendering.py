"""
Tests for e-mail rendering.
"""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from relay.rendering import EmailRenderer, format_date


class TestFormatDate:
    """Tests for the long-form UTC date filter."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("2024-11-04 12:53:20 +0000 UTC", "Monday 4th November 2024 at 12:53:20"),
            ("2024-11-04T12:53:20Z", "Monday 4th November 2024 at 12:53:20"),
            ("2024-11-01 09:00:00 +0000", "Friday 1st November 2024 at 09:00:00"),
            ("2024-11-02T10:00:00+01:00", "Saturday 2nd November 2024 at 09:00:00"),
            ("2024-11-13T00:00:00Z", "Wednesday 13th November 2024 at 00:00:00"),
            ("2024-11-23T00:00:00Z", "Saturday 23rd November 2024 at 00:00:00"),
        ],
    )
    def test_formats(self, value, expected) -> None:
        assert format_date(value) == expected

    def test_datetime_value(self) -> None:
        value = datetime(2024, 11, 4, 12, 53, 20, tzinfo=timezone.utc)
        assert format_date(value) == "Monday 4th November 2024 at 12:53:20"

    def test_unparsable_passthrough(self) -> None:
        assert format_date("sometime soon") == "sometime soon"

    def test_none_is_empty(self) -> None:
        assert format_date(None) == ""


class TestEmailRenderer:
    """Tests for Jinja2 template rendering."""

    def test_renders_alert_template(self, renderer: EmailRenderer, make_alert) -> None:
        context = {
            **make_alert(alertName="HighCPU", summary="CPU above 90%").to_context(),
            "pageTitle": "Grafana Firing Alert",
            "statusColour": "#d4351C",
        }
        html = renderer.render("grafana-alert", context)
        assert "HighCPU" in html
        assert "CPU above 90%" in html
        assert "Monday 4th November 2024 at 12:53:20" in html
        assert "#d4351C" in html

    def test_autoescapes(self, renderer: EmailRenderer, make_alert) -> None:
        context = {
            **make_alert(summary="<script>x</script>").to_context(),
            "pageTitle": "Grafana Firing Alert",
            "statusColour": "#d4351C",
        }
        html = renderer.render("grafana-alert", context)
        assert "<script>x</script>" not in html
        assert "&lt;script&gt;" in html
