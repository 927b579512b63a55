"""HTTP implementation of the notification backend.

Talks to the BuildTrack API with a lazily created httpx.AsyncClient; live
channels read the Server-Sent Events stream of ``/v1/realtime/{table}``.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import AsyncIterator
from datetime import datetime
from typing import Any

import httpx
from pydantic import ValidationError

from buildtrack.client.backend import ChannelBinding, LiveChannel, NotificationBackend
from buildtrack.client.errors import BackendError
from buildtrack.client.models import (
    ActivityEvent,
    ActivityEventState,
    AppNotification,
    ChangePayload,
    NotificationRule,
    SessionIdentity,
    validate_row,
    validate_rows,
)
from buildtrack.core.config import settings

logger = logging.getLogger(__name__)


def _serialize_patch(patch: dict[str, datetime | None]) -> dict[str, str | None]:
    return {key: value.isoformat() if value is not None else None for key, value in patch.items()}


class HttpNotificationBackend(NotificationBackend):
    """Notification backend over the BuildTrack REST + SSE API."""

    def __init__(
        self,
        base_url: str | None = None,
        access_token: str | None = None,
        timeout: float | None = None,
    ) -> None:
        self.base_url = (base_url or settings.BACKEND_URL).rstrip("/")
        self.access_token = access_token
        self.timeout = timeout if timeout is not None else settings.BACKEND_TIMEOUT_SECONDS
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout)
        return self._client

    async def close(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()
        self._client = None

    def set_access_token(self, access_token: str | None) -> None:
        """Switch identity; None signs out."""
        self.access_token = access_token

    def _headers(self) -> dict[str, str]:
        if not self.access_token:
            return {}
        return {"Authorization": f"Bearer {self.access_token}"}

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        client = await self._get_client()
        try:
            response = await client.request(method, path, headers=self._headers(), **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise BackendError(
                f"{method} {path} failed: {e.response.text}",
                e.response.status_code,
            ) from e
        except httpx.RequestError as e:
            raise BackendError(f"Request failed: {e}") from e
        try:
            return response.json()
        except ValueError as e:
            raise BackendError(f"{method} {path} returned invalid JSON") from e

    async def get_session(self) -> SessionIdentity | None:
        if not self.access_token:
            return None
        try:
            data = await self._request("GET", "/v1/auth/session")
        except BackendError as e:
            # An expired or revoked token is a signed-out session, not a failure
            if e.status_code == 401:
                return None
            raise
        if data is None:
            return None
        return validate_row(SessionIdentity, data)

    async def select_recent_events(self, limit: int) -> list[ActivityEvent]:
        data = await self._request("GET", "/v1/activity_events/", params={"limit": limit})
        return validate_rows(ActivityEvent, data)

    async def select_event_states(
        self, user_id: str, event_ids: list[str]
    ) -> list[ActivityEventState]:
        if not event_ids:
            return []
        data = await self._request(
            "GET",
            "/v1/activity_event_states/",
            params=[("event_id", event_id) for event_id in event_ids],
        )
        return [s for s in validate_rows(ActivityEventState, data) if s.user_id == user_id]

    async def upsert_event_states(
        self, user_id: str, event_ids: list[str], patch: dict[str, datetime | None]
    ) -> list[ActivityEventState]:
        body = [{"event_id": event_id, **_serialize_patch(patch)} for event_id in event_ids]
        data = await self._request("POST", "/v1/activity_event_states/", json=body)
        return validate_rows(ActivityEventState, data)

    async def select_notifications(self, limit: int) -> list[AppNotification]:
        data = await self._request("GET", "/v1/notifications/", params={"limit": limit})
        return validate_rows(AppNotification, data)

    async def update_notifications(
        self, notification_ids: list[str], patch: dict[str, datetime | None]
    ) -> list[AppNotification]:
        body = {"ids": notification_ids, **_serialize_patch(patch)}
        data = await self._request("POST", "/v1/notifications/bulk_state", json=body)
        return validate_rows(AppNotification, data)

    async def select_rules(self) -> list[NotificationRule]:
        data = await self._request("GET", "/v1/notification_rules/")
        return validate_rows(NotificationRule, data)

    async def upsert_rule(
        self, rule_type: str, enabled: bool, config: dict[str, Any] | None
    ) -> NotificationRule:
        body: dict[str, Any] = {"enabled": enabled}
        if config is not None:
            body["config"] = config
        data = await self._request("PUT", f"/v1/notification_rules/{rule_type}", json=body)
        return validate_row(NotificationRule, data)

    async def stream_changes(
        self, table: str, filters: dict[str, str] | None = None
    ) -> AsyncIterator[ChangePayload]:
        """Yield change payloads from the SSE stream of ``table``.

        Comment lines and payloads that fail to parse are skipped.
        """
        client = await self._get_client()
        try:
            async with client.stream(
                "GET",
                f"/v1/realtime/{table}",
                params=filters or None,
                headers=self._headers(),
                # The feed idles between changes; only bound connect/write
                timeout=httpx.Timeout(self.timeout, read=None),
            ) as response:
                response.raise_for_status()
                async for line in response.aiter_lines():
                    if not line.startswith("data: "):
                        continue
                    try:
                        yield ChangePayload.model_validate(json.loads(line[6:]))
                    except (json.JSONDecodeError, ValidationError):
                        logger.warning("Skipping malformed change on %s: %.200s", table, line)
        except httpx.HTTPStatusError as e:
            raise BackendError(
                f"Subscribing to {table} failed", e.response.status_code
            ) from e
        except (httpx.RequestError, httpx.StreamError) as e:
            raise BackendError(f"Live connection to {table} failed: {e}") from e

    async def open_channel(self, name: str, bindings: list[ChannelBinding]) -> LiveChannel:
        channel = HttpLiveChannel(self, name, bindings)
        channel.start()
        return channel


class HttpLiveChannel(LiveChannel):
    """Merges one SSE stream per binding into a single message sequence."""

    def __init__(
        self, backend: HttpNotificationBackend, name: str, bindings: list[ChannelBinding]
    ) -> None:
        super().__init__(name, bindings)
        self.backend = backend
        self._queue: asyncio.Queue[ChangePayload | BackendError] = asyncio.Queue()
        self._tasks: list[asyncio.Task[None]] = []
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def start(self) -> None:
        for binding in self.bindings:
            task = asyncio.create_task(self._pump(binding), name=f"{self.name}:{binding.table}")
            self._tasks.append(task)

    async def _pump(self, binding: ChannelBinding) -> None:
        try:
            async for payload in self.backend.stream_changes(binding.table, binding.filter):
                if binding.accepts(payload):
                    await self._queue.put(payload)
        except BackendError as e:
            logger.warning("Channel %s lost %s: %s", self.name, binding.table, e)
            await self._queue.put(e)
            return
        except Exception as e:
            logger.exception("Channel %s pump for %s crashed", self.name, binding.table)
            await self._queue.put(BackendError(f"Live connection to {binding.table} failed: {e}"))
            return
        # A stream that ends normally means the server closed the connection
        await self._queue.put(BackendError(f"Live connection to {binding.table} closed"))

    async def messages(self) -> AsyncIterator[ChangePayload]:
        while not self._closed:
            item = await self._queue.get()
            if isinstance(item, BackendError):
                raise item
            yield item

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks.clear()
        logger.debug("Channel %s closed", self.name)
