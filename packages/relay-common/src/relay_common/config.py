"""
Environment-based configuration management for alert-relay.

Uses pydantic-settings to load configuration values from environment
variables and .env files. The relay service imports its settings from
this module so configuration is read once and shared read-only.

All environment variables are prefixed with ``RELAY_`` to avoid collisions.
Mapping and list fields are given as JSON, e.g.
``RELAY_PAGERDUTY_TEAMS='{"platform": "key"}'``.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Central configuration loaded from ``RELAY_``-prefixed environment variables.

    Attributes:
        service_name: Name this service reports in logs and meta-alerts.
        environment: Deployment environment of this service.
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_format: ``json`` for production, ``console`` for local runs.
        redis_url: Redis connection URL (queue streams and chat bus).
        alerts_stream: Redis stream carrying Grafana alert messages.
        github_stream: Redis stream carrying GitHub workflow events.
        consumer_group: Consumer group used for both streams.
        consumer_name: Name of this consumer within the group.
        read_count: Maximum messages fetched per read.
        block_ms: Milliseconds to block waiting for new messages.
        claim_idle_ms: Idle time after which an unacknowledged message is
            reclaimed and redelivered.
        http_timeout_s: Timeout applied to every outbound HTTP call.
        channel_timeout_s: Upper bound on one channel dispatch.
        max_concurrent_alerts: Alerts of one message dispatched at once.
        alert_environments: Environments allowed to raise notifications.
        platform_team: Name of the team owning platform services.
        platform_team_id: Registry id of the platform team.
        platform_service_prefix: Service-name prefix owned by the platform team.
        portal_backend_url: Base URL of the service registry.
        user_service_backend_url: Base URL of the team contact registry.
        registry_max_attempts: Attempts for registry lookups on transport errors.
        send_email_alerts: Global switch for e-mail delivery.
        sender_email_address: Mailbox e-mails are sent from.
        azure_client_base_url: Microsoft Graph API base URL.
        azure_login_url: Azure AD login base URL.
        azure_tenant_id: Azure AD tenant.
        azure_client_id: Azure app client id.
        azure_client_secret: Azure app client secret.
        pagerduty_url: PagerDuty Events API base URL.
        pagerduty_send_alerts: Global switch for PagerDuty delivery.
        pagerduty_teams: Team name to integration key.
        pagerduty_services: Technical service name to integration key.
        slack_send_failed_action_notification: Switch for workflow notifications.
        slack_topic: Chat notification bus topic.
        github_repos_infra: Repositories whose failures go to the infra channel.
        github_repos_create_service: Repositories used when creating services.
        github_tf_svc_infra_repo: Repository whose infra-dev runs are excluded
            from the create-service category.
        github_portal_journey_workflow: Name of the portal journey test workflow.
        slack_channel_infra: Chat channel for infra failures.
        slack_channel_create_service: Chat channel for create-service failures.
        slack_channel_portal_journey: Chat channel for journey-test failures.
    """

    model_config = SettingsConfigDict(
        env_prefix="RELAY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Service ──
    service_name: str = Field(default="alert-relay", description="Service name.")
    environment: str = Field(default="local", description="Deployment environment.")

    # ── Logging ──
    log_level: str = Field(default="INFO", description="Logging level.")
    log_format: Literal["json", "console"] = Field(
        default="json",
        description="Log renderer.",
    )

    # ── Queue (Redis streams) ──
    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL.",
    )
    alerts_stream: str = Field(default="grafana_alerts", description="Alert stream key.")
    github_stream: str = Field(default="github_events", description="GitHub stream key.")
    consumer_group: str = Field(default="alert-relay", description="Consumer group.")
    consumer_name: str = Field(default="relay-1", description="Consumer name.")
    read_count: int = Field(default=10, ge=1, description="Messages per read.")
    block_ms: int = Field(default=20_000, ge=0, description="XREADGROUP block time.")
    claim_idle_ms: int = Field(
        default=300_000,
        ge=1000,
        description="Idle time before a pending message is redelivered.",
    )

    # ── Timeouts ──
    http_timeout_s: float = Field(default=10.0, gt=0, description="HTTP timeout.")
    channel_timeout_s: float = Field(default=30.0, gt=0, description="Channel timeout.")
    max_concurrent_alerts: int = Field(
        default=10, ge=1, description="Concurrent alert dispatches per message."
    )

    # ── Routing ──
    alert_environments: list[str] = Field(
        default_factory=lambda: ["prod"],
        description="Environments allowed to raise notifications.",
    )
    platform_team: str = Field(default="platform", description="Platform team name.")
    platform_team_id: str = Field(
        default="3b202138-1689-4397-8b55-4227362b249d",
        description="Platform team registry id.",
    )
    platform_service_prefix: str = Field(
        default="cdp-",
        description="Prefix of services owned by the platform team.",
    )

    # ── Registries ──
    portal_backend_url: str = Field(
        default="http://localhost:5094",
        description="Service registry base URL.",
    )
    user_service_backend_url: str = Field(
        default="http://localhost:3001",
        description="Team contact registry base URL.",
    )
    registry_max_attempts: int = Field(
        default=2,
        ge=1,
        le=5,
        description="Registry lookup attempts on transport errors.",
    )

    # ── E-mail (Microsoft Graph) ──
    send_email_alerts: bool = Field(default=True, description="Enable e-mail alerts.")
    sender_email_address: str = Field(
        default="alerts@example.com",
        description="Mailbox e-mails are sent from.",
    )
    azure_client_base_url: str = Field(
        default="https://graph.microsoft.com/v1.0/",
        description="Microsoft Graph base URL.",
    )
    azure_login_url: str = Field(
        default="https://login.microsoftonline.com",
        description="Azure AD login base URL.",
    )
    azure_tenant_id: str = Field(default="", description="Azure AD tenant id.")
    azure_client_id: str = Field(default="", description="Azure app client id.")
    azure_client_secret: str = Field(default="", description="Azure app client secret.")

    # ── PagerDuty ──
    pagerduty_url: str = Field(
        default="https://events.pagerduty.com",
        description="PagerDuty Events API base URL.",
    )
    pagerduty_send_alerts: bool = Field(default=False, description="Enable PagerDuty.")
    pagerduty_teams: dict[str, str] = Field(
        default_factory=dict,
        description="Team name to integration key.",
    )
    pagerduty_services: dict[str, str] = Field(
        default_factory=dict,
        description="Technical service name to integration key.",
    )

    # ── Chat (GitHub workflow failures) ──
    slack_send_failed_action_notification: bool = Field(
        default=True,
        description="Enable failed workflow notifications.",
    )
    slack_topic: str = Field(default="cdp_notification", description="Chat bus topic.")
    github_repos_infra: list[str] = Field(
        default_factory=lambda: ["cdp-tf-infra", "cdp-tf-core", "cdp-tf-modules"],
        description="Infra repositories.",
    )
    github_repos_create_service: list[str] = Field(
        default_factory=lambda: [
            "cdp-tf-svc-infra",
            "cdp-app-config",
            "cdp-nginx-upstreams",
            "cdp-squid-proxy-config",
            "cdp-grafana-svc",
        ],
        description="Repositories used when creating services.",
    )
    github_tf_svc_infra_repo: str = Field(
        default="cdp-tf-svc-infra",
        description="Repository whose infra-dev runs are excluded.",
    )
    github_portal_journey_workflow: str = Field(
        default="Journey Tests",
        description="Portal journey test workflow name.",
    )
    slack_channel_infra: str = Field(default="cdp-infra-alerts", description="Infra channel.")
    slack_channel_create_service: str = Field(
        default="cdp-create-service-alerts",
        description="Create-service channel.",
    )
    slack_channel_portal_journey: str = Field(
        default="cdp-portal-alerts",
        description="Portal journey channel.",
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the cached application settings singleton.

    Returns:
        The global ``Settings`` instance.
    """
    return Settings()
