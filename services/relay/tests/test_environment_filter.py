"""
Tests for the environment gate.
"""

from __future__ import annotations

import pytest

from relay.environment_filter import effective_environments, should_send_alert

DEFAULTS = ("prod",)


class TestEffectiveEnvironments:
    """Tests for per-service environment lists."""

    def test_default_list(self, overrides) -> None:
        assert effective_environments("test-service", DEFAULTS, overrides) == DEFAULTS

    def test_override_replaces_default(self, overrides) -> None:
        assert effective_environments("mgmt-service", DEFAULTS, overrides) == ("management",)

    def test_override_without_environments_uses_default(self, overrides) -> None:
        assert effective_environments("cdp-waf", DEFAULTS, overrides) == DEFAULTS


class TestShouldSendAlert:
    """Tests for the environment gate applied before sending."""

    @pytest.mark.parametrize(
        ("service", "environment", "expected"),
        [
            ("test-service", "prod", True),
            ("test-service", "dev", False),
            ("test-service", "", False),
            ("mgmt-service", "management", True),
            # Override replaces the default list rather than extending it.
            ("mgmt-service", "prod", False),
        ],
    )
    def test_membership(self, make_alert, overrides, service, environment, expected) -> None:
        alert = make_alert(service=service, environment=environment)
        assert should_send_alert(alert, DEFAULTS, overrides) is expected

    def test_case_sensitive(self, make_alert, overrides) -> None:
        assert should_send_alert(make_alert(environment="PROD"), DEFAULTS, overrides) is False
