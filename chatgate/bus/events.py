"""Event types flowing through the admission pipeline."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Literal

if TYPE_CHECKING:
    from chatgate.config.resolver import ResolvedChannelConfig
    from chatgate.session.router import Route

ChannelKind = Literal["direct", "room", "group"]


@dataclass(frozen=True)
class MediaRef:
    """A file attached to an inbound message."""

    id: str
    name: str | None = None
    mimetype: str | None = None
    url_private: str | None = None
    size: int | None = None


@dataclass(frozen=True)
class InboundMessageEvent:
    """
    A raw inbound message as delivered by the platform.

    Field names follow the Slack event payload so that events can be built
    straight from ``from_slack``.
    """

    channel_id: str
    text: str = ""
    ts: str | None = None  # message id, also the timestamp ("seconds.micros")
    user: str | None = None  # sender id
    bot_id: str | None = None
    username: str | None = None
    channel_type: str | None = None  # im / mpim / channel / group
    thread_ts: str | None = None
    parent_user_id: str | None = None
    files: tuple[MediaRef, ...] = ()

    @property
    def is_bot(self) -> bool:
        return bool(self.bot_id)

    @property
    def sender_id(self) -> str | None:
        """The user id, or the bot id for bot-authored messages."""
        if self.user:
            return self.user
        return self.bot_id if self.is_bot else None

    @property
    def timestamp_ms(self) -> int | None:
        return ts_to_ms(self.ts)

    @classmethod
    def from_slack(cls, payload: dict[str, Any]) -> "InboundMessageEvent":
        """Build an event from a Slack ``message`` / ``app_mention`` payload."""
        files = tuple(
            MediaRef(
                id=f.get("id", ""),
                name=f.get("name"),
                mimetype=f.get("mimetype"),
                url_private=f.get("url_private_download") or f.get("url_private"),
                size=f.get("size"),
            )
            for f in payload.get("files") or []
            if isinstance(f, dict)
        )
        return cls(
            channel_id=payload.get("channel", ""),
            text=payload.get("text") or "",
            ts=payload.get("ts"),
            user=payload.get("user"),
            bot_id=payload.get("bot_id"),
            username=payload.get("username"),
            channel_type=payload.get("channel_type"),
            thread_ts=payload.get("thread_ts"),
            parent_user_id=payload.get("parent_user_id"),
            files=files,
        )


def ts_to_ms(ts: str | None) -> int | None:
    """Convert a Slack ``ts`` string to epoch milliseconds."""
    if not ts:
        return None
    try:
        return round(float(ts) * 1000)
    except (ValueError, OverflowError):
        return None


# PascalCase payload keys consumed by the agent layer.
_PAYLOAD_KEYS: dict[str, str] = {
    "body": "Body",
    "raw_body": "RawBody",
    "command_body": "CommandBody",
    "from_": "From",
    "to": "To",
    "session_key": "SessionKey",
    "account_id": "AccountId",
    "chat_type": "ChatType",
    "group_subject": "GroupSubject",
    "group_system_prompt": "GroupSystemPrompt",
    "sender_name": "SenderName",
    "sender_id": "SenderId",
    "provider": "Provider",
    "surface": "Surface",
    "message_id": "MessageId",
    "reply_to_id": "ReplyToId",
    "parent_session_key": "ParentSessionKey",
    "thread_starter_body": "ThreadStarterBody",
    "thread_label": "ThreadLabel",
    "timestamp": "Timestamp",
    "was_mentioned": "WasMentioned",
    "media_path": "MediaPath",
    "media_type": "MediaType",
    "media_url": "MediaUrl",
    "command_authorized": "CommandAuthorized",
    "originating_channel": "OriginatingChannel",
    "originating_to": "OriginatingTo",
}


@dataclass
class MessageContext:
    """Canonical envelope handed to the agent layer."""

    body: str
    raw_body: str
    command_body: str
    from_: str
    to: str
    session_key: str
    account_id: str
    chat_type: ChannelKind
    sender_name: str
    sender_id: str
    command_authorized: bool
    provider: str = "slack"
    surface: str = "slack"
    group_subject: str | None = None
    group_system_prompt: str | None = None
    message_id: str | None = None
    reply_to_id: str | None = None
    parent_session_key: str | None = None
    thread_starter_body: str | None = None
    thread_label: str | None = None
    timestamp: int | None = None
    was_mentioned: bool | None = None
    media_path: str | None = None
    media_type: str | None = None
    media_url: str | None = None
    originating_channel: str | None = "slack"
    originating_to: str | None = None

    def to_payload(self) -> dict[str, Any]:
        """Return the PascalCase payload, omitting unset fields."""
        payload: dict[str, Any] = {}
        for attr, key in _PAYLOAD_KEYS.items():
            value = getattr(self, attr)
            if value is not None:
                payload[key] = value
        return payload


@dataclass
class PreparedMessage:
    """Result of a successful admission."""

    context: MessageContext
    reply_target: str
    route: "Route"
    channel_config: "ResolvedChannelConfig | None"
    is_direct_message: bool
    is_roomish: bool
    history_key: str
    preview: str
    ack_reaction_message_id: str | None = None
    ack_reaction_value: str = ""
    ack_reaction_task: asyncio.Task | None = field(default=None, repr=False)
