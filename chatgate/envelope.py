"""Envelope formatting and assembly of the agent-facing message context."""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from loguru import logger

from chatgate.bus.events import MessageContext, ts_to_ms
from chatgate.history.window import HistoryEntry, build_history_context_from_window

if TYPE_CHECKING:
    from chatgate.channels.base import PlatformClient
    from chatgate.gating.state import AdmissionState
    from chatgate.history.window import HistoryWindow
    from chatgate.session.router import SessionRouting

_WHITESPACE_RE = re.compile(r"\s+")


def format_timestamp(timestamp_ms: int | None) -> str | None:
    if timestamp_ms is None:
        return None
    try:
        dt = datetime.fromtimestamp(timestamp_ms / 1000, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None
    return dt.strftime("%Y-%m-%dT%H:%MZ")


def format_agent_envelope(
    channel: str,
    body: str,
    from_: str | None = None,
    timestamp_ms: int | None = None,
) -> str:
    """``[Slack alice 2024-01-02T03:04Z] body``"""
    parts = [channel.strip() or "Channel"]
    if from_ and from_.strip():
        parts.append(from_.strip())
    ts = format_timestamp(timestamp_ms)
    if ts:
        parts.append(ts)
    return f"[{' '.join(parts)}] {body}"


def format_thread_starter_envelope(
    channel: str,
    author: str,
    body: str,
    timestamp_ms: int | None = None,
) -> str:
    return format_agent_envelope(channel, body, from_=author, timestamp_ms=timestamp_ms)


def preview_text(text: str, limit: int = 160) -> str:
    return _WHITESPACE_RE.sub(" ", text).strip()[:limit]


def build_channel_description(topic: str | None, purpose: str | None) -> str:
    """Topic and purpose, trimmed, deduplicated and newline-joined."""
    seen: list[str] = []
    for entry in (topic, purpose):
        cleaned = (entry or "").strip()
        if cleaned and cleaned not in seen:
            seen.append(cleaned)
    return "\n".join(seen)


def build_group_system_prompt(
    topic: str | None, purpose: str | None, system_prompt: str | None
) -> str | None:
    description = build_channel_description(topic, purpose)
    parts = [
        f"Channel description: {description}" if description else None,
        (system_prompt or "").strip() or None,
    ]
    parts = [p for p in parts if p]
    return "\n\n".join(parts) if parts else None


class EnvelopeBuilder:
    """Assembles :class:`MessageContext` for an admitted message."""

    channel_label = "Slack"

    def __init__(self, client: "PlatformClient", history: "HistoryWindow", history_limit: int) -> None:
        self.client = client
        self.history = history
        self.history_limit = history_limit

    async def build(self, state: "AdmissionState", routing: "SessionRouting") -> MessageContext:
        event = state.event
        channel_id = event.channel_id
        room_label = state.room_label
        sender_name = state.sender_name or "unknown"
        raw_body = state.raw_body
        timestamp = event.timestamp_ms

        text_with_id = f"{raw_body}\n[slack message id: {event.ts} channel: {channel_id}]"
        body = format_agent_envelope(
            self.channel_label, text_with_id, from_=sender_name, timestamp_ms=timestamp
        )

        if state.is_roomish and self.history_limit > 0:
            entry = HistoryEntry(
                sender=sender_name,
                body=raw_body,
                timestamp=timestamp,
                message_id=event.ts,
            )

            def format_entry(e: HistoryEntry) -> str:
                suffix = f" [id:{e.message_id} channel:{channel_id}]" if e.message_id else ""
                return format_agent_envelope(
                    self.channel_label,
                    f"{e.sender}: {e.body}{suffix}",
                    from_=room_label,
                    timestamp_ms=e.timestamp,
                )

            body = build_history_context_from_window(
                self.history,
                routing.history_key,
                self.history_limit,
                entry,
                body,
                format_entry,
            )

        if state.is_direct:
            from_ = f"slack:{event.user}"
            to = f"user:{event.user}"
        else:
            from_ = f"slack:channel:{channel_id}" if state.is_room else f"slack:group:{channel_id}"
            to = f"channel:{channel_id}"

        info = state.channel_info
        group_system_prompt = build_group_system_prompt(
            info.topic if info else None,
            info.purpose if info else None,
            state.channel_config.system_prompt if state.channel_config else None,
        )

        thread_starter_body, thread_label = None, None
        if routing.is_thread_reply and event.thread_ts:
            thread_starter_body, thread_label = await self._thread_context(state, event.thread_ts)

        media = state.media
        return MessageContext(
            body=body,
            raw_body=raw_body,
            command_body=raw_body,
            from_=from_,
            to=to,
            session_key=routing.session_key,
            account_id=routing.route.account_id,
            chat_type=state.chat_type,
            group_subject=room_label if state.is_roomish else None,
            group_system_prompt=group_system_prompt if state.is_roomish else None,
            sender_name=sender_name,
            sender_id=state.sender_id or "",
            message_id=event.ts,
            reply_to_id=event.thread_ts or event.ts,
            parent_session_key=routing.thread_keys.parent_session_key,
            thread_starter_body=thread_starter_body,
            thread_label=thread_label,
            timestamp=timestamp,
            was_mentioned=state.effective_was_mentioned if state.is_roomish else None,
            media_path=media.path if media else None,
            media_type=media.content_type if media else None,
            media_url=media.path if media else None,
            command_authorized=state.command_authorized,
            originating_to=to,
        )

    async def _thread_context(
        self, state: "AdmissionState", thread_ts: str
    ) -> tuple[str | None, str]:
        """Best-effort thread starter block and label."""
        channel_id = state.event.channel_id
        label = f"Slack thread {state.room_label}"
        try:
            starter = await self.client.resolve_thread_starter(channel_id, thread_ts)
        except Exception as e:
            logger.warning(f"slack thread starter fetch failed for {channel_id}/{thread_ts}: {e}")
            return None, label
        if not starter or not starter.text:
            return None, label

        starter_name = starter.user_id or "Unknown"
        if starter.user_id:
            try:
                user = await self.client.resolve_user(starter.user_id)
                if user and user.name:
                    starter_name = user.name
            except Exception as e:
                logger.debug(f"slack user lookup failed for {starter.user_id}: {e}")

        starter_with_id = (
            f"{starter.text}\n[slack message id: {starter.ts or thread_ts} channel: {channel_id}]"
        )
        starter_body = format_thread_starter_envelope(
            self.channel_label,
            starter_name,
            starter_with_id,
            timestamp_ms=ts_to_ms(starter.ts),
        )
        snippet = preview_text(starter.text, 80)
        if snippet:
            label = f"{label}: {snippet}"
        return starter_body, label
