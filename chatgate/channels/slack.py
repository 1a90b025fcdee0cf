"""Slack Web API client implementing the platform collaborator contract.

Only the lookups and outbound calls admission needs are implemented; event
delivery (Socket Mode / Events API) belongs to the caller.
"""

from __future__ import annotations

from collections import OrderedDict
from typing import Any

import httpx
from loguru import logger

from chatgate.channels.base import ChannelInfo, PlatformClient, ThreadStarter, UserInfo

SLACK_API_BASE = "https://slack.com/api/"


class SlackApiError(Exception):
    """Slack answered ``ok: false``."""

    def __init__(self, method: str, error: str) -> None:
        super().__init__(f"{method}: {error}")
        self.method = method
        self.error = error


class _LRUCache:
    def __init__(self, max_size: int = 500) -> None:
        self._store: OrderedDict[str, Any] = OrderedDict()
        self._max_size = max_size

    def get(self, key: str) -> Any:
        if key not in self._store:
            return None
        self._store.move_to_end(key)
        return self._store[key]

    def set(self, key: str, value: Any) -> None:
        self._store[key] = value
        self._store.move_to_end(key)
        while len(self._store) > self._max_size:
            self._store.popitem(last=False)


def _strip_target(to: str) -> str:
    for prefix in ("channel:", "user:"):
        if to.startswith(prefix):
            return to[len(prefix):]
    return to


class SlackWebClient(PlatformClient):
    """
    Async Slack Web API client.

    Channel and user lookups are cached per process. Pass ``http`` to share
    an ``httpx.AsyncClient`` (or inject a mock transport in tests).
    """

    def __init__(
        self,
        token: str | None,
        http: httpx.AsyncClient | None = None,
        base_url: str = SLACK_API_BASE,
        timeout: float = 10.0,
    ) -> None:
        self.token = token or ""
        self._http = http or httpx.AsyncClient(base_url=base_url, timeout=timeout)
        self._owns_http = http is None
        self._channels = _LRUCache()
        self._users = _LRUCache()

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    async def _call(self, method: str, *, params: dict[str, Any] | None = None,
                    json: dict[str, Any] | None = None) -> dict[str, Any]:
        headers = {"Authorization": f"Bearer {self.token}"}
        if json is not None:
            resp = await self._http.post(method, json=json, headers=headers)
        else:
            resp = await self._http.get(method, params=params, headers=headers)
        resp.raise_for_status()
        data = resp.json()
        if not data.get("ok"):
            raise SlackApiError(method, str(data.get("error", "unknown_error")))
        return data

    async def resolve_channel(self, channel_id: str) -> ChannelInfo:
        cached = self._channels.get(channel_id)
        if cached is not None:
            return cached
        data = await self._call("conversations.info", params={"channel": channel_id})
        channel = data.get("channel") or {}
        if channel.get("is_im"):
            ctype = "im"
        elif channel.get("is_mpim"):
            ctype = "mpim"
        elif channel.get("is_private"):
            ctype = "group"
        else:
            ctype = "channel"
        info = ChannelInfo(
            name=channel.get("name"),
            type=ctype,
            topic=(channel.get("topic") or {}).get("value"),
            purpose=(channel.get("purpose") or {}).get("value"),
        )
        self._channels.set(channel_id, info)
        return info

    async def resolve_user(self, user_id: str) -> UserInfo | None:
        cached = self._users.get(user_id)
        if cached is not None:
            return cached
        data = await self._call("users.info", params={"user": user_id})
        user = data.get("user") or {}
        profile = user.get("profile") or {}
        name = (
            profile.get("display_name")
            or profile.get("real_name")
            or user.get("real_name")
            or user.get("name")
        )
        info = UserInfo(name=name or None)
        self._users.set(user_id, info)
        return info

    async def resolve_thread_starter(self, channel_id: str, thread_ts: str) -> ThreadStarter | None:
        data = await self._call(
            "conversations.replies",
            params={"channel": channel_id, "ts": thread_ts, "limit": 1, "inclusive": "true"},
        )
        messages = data.get("messages") or []
        if not messages:
            return None
        first = messages[0]
        text = (first.get("text") or "").strip()
        if not text:
            return None
        return ThreadStarter(
            text=text,
            user_id=first.get("user") or first.get("bot_id"),
            ts=first.get("ts"),
        )

    async def send_message(self, to: str, text: str) -> None:
        await self._call("chat.postMessage", json={"channel": _strip_target(to), "text": text})
        logger.debug(f"Slack message sent to {to}")

    async def react(self, channel_id: str, message_ts: str, name: str) -> None:
        try:
            await self._call(
                "reactions.add",
                json={"channel": channel_id, "timestamp": message_ts, "name": name.strip(":")},
            )
        except SlackApiError as e:
            if e.error == "already_reacted":
                return
            raise
