"""
Tests for the static per-service override table.
"""

from __future__ import annotations

import pytest

from relay.overrides import default_overrides, platform_team


class TestDefaultOverrides:
    """Tests for the built-in override entries."""

    @pytest.mark.parametrize("service", ["cdp-waf", "cdp-squid-proxy", "cdp-protected-mongo"])
    def test_platform_services(self, service) -> None:
        entry = default_overrides()[service]
        assert entry.teams == (platform_team(),)

    def test_canary_backend_owned_by_tenant_team(self) -> None:
        entry = default_overrides()["cdp-canary-deployment-backend"]
        assert [t.name for t in entry.teams] == ["platform-tenant-cko"]

    def test_read_only(self) -> None:
        table = default_overrides()
        with pytest.raises(TypeError):
            table["new-service"] = table["cdp-waf"]  # type: ignore[index]

    def test_unknown_service_absent(self) -> None:
        assert "test-service" not in default_overrides()
