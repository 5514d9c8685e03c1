"""
Relay service entry point.

Builds the notification channels and the message router, starts one
stream consumer per inbound stream (Grafana alerts, GitHub workflow
events), and exposes health and metrics endpoints.
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator

import structlog
import uvicorn
from fastapi import FastAPI
from prometheus_client import make_asgi_app

from relay_common.config import Settings, get_settings
from relay_common.logging import configure_logging
from relay_common.messaging import RedisClient

from relay.channels import ChatChannel, EmailChannel, PagerDutyChannel
from relay.clients import MsGraphEmailClient, PagerDutyClient, PortalClient
from relay.consumer import StreamConsumer
from relay.health import router as health_router
from relay.integration_keys import IntegrationKeyResolver
from relay.overrides import default_overrides, platform_team
from relay.ownership import OwnershipResolver
from relay.rendering import EmailRenderer
from relay.router import MessageRouter
from relay.workflow_filter import WorkflowRouting

logger = structlog.get_logger()


@dataclass
class Clients:
    """Outbound adapters owned by the running service."""

    portal: PortalClient
    email: MsGraphEmailClient
    pagerduty: PagerDutyClient

    async def close(self) -> None:
        await self.portal.close()
        await self.email.close()
        await self.pagerduty.close()


def build_clients(settings: Settings) -> Clients:
    return Clients(
        portal=PortalClient(
            settings.portal_backend_url,
            settings.user_service_backend_url,
            timeout=settings.http_timeout_s,
            max_attempts=settings.registry_max_attempts,
        ),
        email=MsGraphEmailClient(
            settings.azure_client_base_url,
            settings.azure_login_url,
            settings.azure_tenant_id,
            settings.azure_client_id,
            settings.azure_client_secret,
            timeout=settings.http_timeout_s,
        ),
        pagerduty=PagerDutyClient(settings.pagerduty_url, timeout=settings.http_timeout_s),
    )


def build_router(settings: Settings, clients: Clients, bus: RedisClient) -> MessageRouter:
    """Wire the channels and the router from *settings*."""
    overrides = default_overrides()
    resolver = OwnershipResolver(
        clients.portal,
        overrides,
        platform_team=platform_team(),
        platform_prefix=settings.platform_service_prefix,
    )
    keys = IntegrationKeyResolver(settings.pagerduty_teams, settings.pagerduty_services, overrides)
    routing = WorkflowRouting.from_settings(settings)

    email = EmailChannel(
        clients.email,
        resolver,
        clients.portal,
        EmailRenderer(),
        sender=settings.sender_email_address,
        environments=settings.alert_environments,
        overrides=overrides,
        enabled=settings.send_email_alerts,
    )
    pager = PagerDutyChannel(
        clients.pagerduty,
        resolver,
        keys,
        environments=settings.alert_environments,
        overrides=overrides,
        enabled=settings.pagerduty_send_alerts,
        escalation_team=settings.platform_team,
        source_service=settings.service_name,
        source_environment=settings.environment,
        timeout=settings.http_timeout_s,
    )
    chat = ChatChannel(
        bus,
        settings.slack_topic,
        routing,
        team=settings.platform_team,
        enabled=settings.slack_send_failed_action_notification,
    )
    return MessageRouter(
        email,
        pager,
        chat,
        routing,
        timeout=settings.channel_timeout_s,
        max_concurrent_alerts=settings.max_concurrent_alerts,
    )


def build_consumers(settings: Settings, redis: RedisClient, router: MessageRouter) -> list[StreamConsumer]:
    return [
        StreamConsumer(
            redis,
            stream,
            settings.consumer_group,
            settings.consumer_name,
            router.handle,
            count=settings.read_count,
            block_ms=settings.block_ms,
            claim_idle_ms=settings.claim_idle_ms,
        )
        for stream in (settings.alerts_stream, settings.github_stream)
    ]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Startup / shutdown lifecycle for the relay service."""
    settings = get_settings()
    configure_logging(settings.log_level, settings.log_format)
    logger.info("relay_service_starting", environment=settings.environment)

    redis = RedisClient(settings.redis_url)
    await redis.connect()
    app.state.redis = redis

    clients = build_clients(settings)
    router = build_router(settings, clients, redis)
    consumers = build_consumers(settings, redis, router)
    tasks = [asyncio.create_task(c.run(), name=f"consumer:{c.stream}") for c in consumers]
    try:
        yield
    finally:
        logger.info("relay_service_stopping")
        for consumer in consumers:
            consumer.stop()
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        await clients.close()
        await redis.close()


def create_app() -> FastAPI:
    """Build and return the FastAPI application."""
    app = FastAPI(title="Alert Relay", lifespan=lifespan)
    app.include_router(health_router)
    app.mount("/metrics", make_asgi_app())
    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run(
        "relay.main:app",
        host="0.0.0.0",
        port=8085,
        reload=False,
    )
