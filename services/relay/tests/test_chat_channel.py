"""
Tests for the chat channel.

Validates Slack message formatting and publication to the chat
notification bus.
"""

from __future__ import annotations

import pytest

from relay.channels.base import DeliveryStatus
from relay.channels.chat_channel import FAILURE_COLOUR, ChatChannel, build_chat_message
from relay.workflow_filter import WorkflowCategory


@pytest.fixture()
def channel(chat_bus, routing) -> ChatChannel:
    return ChatChannel(chat_bus, "cdp_notification", routing)


def _texts(message: dict) -> str:
    """Concatenate every text element of a message for easy assertions."""
    out: list[str] = []

    def _walk(node) -> None:
        if isinstance(node, dict):
            if isinstance(node.get("text"), str):
                out.append(node["text"])
            for value in node.values():
                _walk(value)
        elif isinstance(node, list):
            for item in node:
                _walk(item)

    _walk(message)
    return "\n".join(out)


# ── formatting ──


class TestChatFormatting:
    """Tests for the Slack attachment describing a failed run."""

    def test_attachment_colour_and_channel(self, make_workflow_event) -> None:
        message = build_chat_message(make_workflow_event(), "infra-alerts")
        assert message["channel"] == "infra-alerts"
        assert message["attachments"][0]["color"] == FAILURE_COLOUR

    def test_header(self, make_workflow_event) -> None:
        assert "*Failed GitHub Action*" in _texts(build_chat_message(make_workflow_event(), "c"))

    def test_repo_and_workflow(self, make_workflow_event) -> None:
        text = _texts(build_chat_message(make_workflow_event(repo="cdp-tf-core", name="Apply"), "c"))
        assert "cdp-tf-core - 'Apply' failed" in text

    def test_run_link(self, make_workflow_event) -> None:
        text = _texts(build_chat_message(make_workflow_event(repo="cdp-tf-core"), "c"))
        assert "<https://github.com/DEFRA/cdp-tf-core/actions/runs/1|42>" in text

    def test_commit_and_author(self, make_workflow_event) -> None:
        text = _texts(build_chat_message(make_workflow_event(), "c"))
        assert "*Commit Message:* 'Bump version'" in text
        assert "*Author:* Jo Dev" in text


# ── publishing ──


class TestChatChannelSend:
    """Tests for publishing chat messages on the notification bus."""

    async def test_publishes_envelope(self, channel, chat_bus, make_workflow_event) -> None:
        result = await channel.send(make_workflow_event(), "infra-alerts")
        assert result.status is DeliveryStatus.DELIVERED
        topic, message = chat_bus.publish.await_args.args
        assert topic == "cdp_notification"
        assert message["team"] == "platform"
        assert message["channel"] == "infra-alerts"
        assert message["message"]["channel"] == "infra-alerts"

    async def test_dispatch_uses_category_channel(self, channel, chat_bus, make_workflow_event) -> None:
        await channel.dispatch(make_workflow_event(), WorkflowCategory.PORTAL_JOURNEY)
        assert chat_bus.publish.await_args.args[1]["channel"] == "portal-alerts"

    async def test_disabled(self, chat_bus, routing, make_workflow_event) -> None:
        channel = ChatChannel(chat_bus, "cdp_notification", routing, enabled=False)
        result = await channel.send(make_workflow_event(), "infra-alerts")
        assert result.reason == "disabled"
        chat_bus.publish.assert_not_awaited()

    async def test_publish_failure_reported(self, channel, chat_bus, make_workflow_event) -> None:
        chat_bus.publish.side_effect = ConnectionError("redis down")
        result = await channel.send(make_workflow_event(), "infra-alerts")
        assert result.status is DeliveryStatus.FAILED
        assert "redis down" in result.reason
