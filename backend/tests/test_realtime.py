"""Tests for the realtime change feed and its SSE endpoint."""

import asyncio
import json
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from buildtrack.main import app
from buildtrack.routers.realtime import _sse_line, _stream_changes
from buildtrack.schemas.realtime import ChangeMessage
from buildtrack.services.realtime import ChangeFeed, Subscription, change_feed


@pytest.fixture
def client():
    """Create test client."""
    return TestClient(app)


def _fake_request(*disconnected):
    request = MagicMock()
    request.is_disconnected = AsyncMock(side_effect=list(disconnected))
    return request


class TestChangeMessage:
    def test_row_prefers_new(self):
        message = ChangeMessage(type="UPDATE", table="t", new={"a": 1}, old={"a": 0})
        assert message.row() == {"a": 1}

    def test_row_falls_back_to_old(self):
        message = ChangeMessage(type="DELETE", table="t", old={"a": 0})
        assert message.row() == {"a": 0}

    def test_row_empty(self):
        assert ChangeMessage(type="INSERT", table="t").row() == {}


class TestChangeFeed:
    @pytest.mark.asyncio
    async def test_publish_to_matching_subscription(self):
        feed = ChangeFeed()
        subscription = feed.subscribe("activity_events")

        delivered = feed.publish("activity_events", "INSERT", new={"id": "e1"})
        message = await asyncio.wait_for(subscription.get(), timeout=1)

        assert delivered == 1
        assert message.type == "INSERT"
        assert message.new == {"id": "e1"}

    @pytest.mark.asyncio
    async def test_publish_skips_other_tables(self):
        feed = ChangeFeed()
        feed.subscribe("notifications")
        assert feed.publish("activity_events", "INSERT", new={"id": "e1"}) == 0

    @pytest.mark.asyncio
    async def test_filters_match_on_row(self):
        feed = ChangeFeed()
        user_id = uuid4()
        mine = feed.subscribe("activity_event_states", {"user_id": str(user_id)})

        assert feed.publish("activity_event_states", "INSERT", new={"user_id": str(uuid4())}) == 0
        assert feed.publish("activity_event_states", "INSERT", new={"user_id": str(user_id)}) == 1
        assert feed.publish("activity_event_states", "DELETE", old={"user_id": str(user_id)}) == 1

        first = await asyncio.wait_for(mine.get(), timeout=1)
        second = await asyncio.wait_for(mine.get(), timeout=1)
        assert first.type == "INSERT"
        assert second.type == "DELETE"

    @pytest.mark.asyncio
    async def test_unsubscribe(self):
        feed = ChangeFeed()
        subscription = feed.subscribe("notifications")
        assert feed.subscriber_count == 1
        feed.unsubscribe(subscription)
        assert feed.subscriber_count == 0
        assert feed.publish("notifications", "INSERT", new={}) == 0

    @pytest.mark.asyncio
    async def test_unknown_table(self):
        with pytest.raises(ValueError, match="not available"):
            ChangeFeed().subscribe("projects")

    @pytest.mark.asyncio
    async def test_slow_subscriber_drops_oldest(self):
        subscription = Subscription("notifications", maxsize=2)
        for i in range(3):
            subscription._put(ChangeMessage(type="INSERT", table="notifications", new={"n": i}))

        assert subscription.dropped == 1
        assert (await subscription.get()).new == {"n": 1}
        assert (await subscription.get()).new == {"n": 2}

    @pytest.mark.asyncio
    async def test_closed_loop_subscription_is_dropped(self):
        feed = ChangeFeed()
        subscription = feed.subscribe("notifications")
        subscription.loop = MagicMock()
        subscription.loop.call_soon_threadsafe.side_effect = RuntimeError("Event loop is closed")

        assert feed.publish("notifications", "INSERT", new={}) == 0
        assert feed.subscriber_count == 0


class TestStreamChanges:
    def test_sse_line(self):
        message = ChangeMessage(type="INSERT", table="notifications", new={"id": "n1"})
        line = _sse_line(message)
        assert line.startswith(b"data: ")
        assert line.endswith(b"\n\n")
        payload = json.loads(line[6:].decode())
        assert payload == {
            "type": "INSERT",
            "table": "notifications",
            "new": {"id": "n1"},
            "old": None,
        }

    @pytest.mark.asyncio
    async def test_yields_published_messages(self):
        subscription = change_feed.subscribe("notifications")
        change_feed.publish("notifications", "UPDATE", new={"id": "n1"})
        request = _fake_request(False, True)

        chunks = [c async for c in _stream_changes(request, subscription, keepalive=0.5)]

        assert len(chunks) == 1
        assert json.loads(chunks[0][6:])["type"] == "UPDATE"
        assert subscription not in change_feed._subscriptions

    @pytest.mark.asyncio
    async def test_keepalive_when_idle(self):
        subscription = change_feed.subscribe("notifications")
        request = _fake_request(False, True)

        chunks = [c async for c in _stream_changes(request, subscription, keepalive=0.01)]

        assert chunks == [b": keep-alive\n\n"]

    @pytest.mark.asyncio
    async def test_hidden_stream_sends_nothing(self):
        subscription = change_feed.subscribe("activity_events")
        change_feed.publish("activity_events", "INSERT", new={"id": "e1"})
        request = _fake_request(False, True)

        chunks = [
            c async for c in _stream_changes(request, subscription, visible=False, keepalive=0.5)
        ]

        assert chunks == []

    @pytest.mark.asyncio
    async def test_stops_when_disconnected(self):
        subscription = change_feed.subscribe("notifications")
        request = _fake_request(True)

        chunks = [c async for c in _stream_changes(request, subscription)]

        assert chunks == []
        assert subscription not in change_feed._subscriptions


class TestRealtimeAPI:
    def test_requires_auth(self, client):
        assert client.get("/v1/realtime/notifications").status_code == 401

    def test_unknown_table(self, client, member_headers):
        response = client.get("/v1/realtime/projects", headers=member_headers)
        assert response.status_code == 404
