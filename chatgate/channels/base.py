"""Platform collaborator contract used by the admission pipeline."""

from __future__ import annotations

import abc
from dataclasses import dataclass

from chatgate.bus.events import ChannelKind, MediaRef


@dataclass(frozen=True)
class ChannelInfo:
    name: str | None = None
    type: str | None = None  # im / mpim / channel / group
    topic: str | None = None
    purpose: str | None = None


@dataclass(frozen=True)
class UserInfo:
    name: str | None = None


@dataclass(frozen=True)
class MediaInfo:
    placeholder: str
    path: str | None = None
    content_type: str | None = None


@dataclass(frozen=True)
class ThreadStarter:
    text: str
    user_id: str | None = None
    ts: str | None = None


class PlatformClient(abc.ABC):
    """
    Lookups and outbound actions the pipeline needs from the chat platform.

    Every method is a suspension point. Lookups may raise; the pipeline
    decides per call whether a failure drops the message or falls back.
    """

    @abc.abstractmethod
    async def resolve_channel(self, channel_id: str) -> ChannelInfo:
        ...

    @abc.abstractmethod
    async def resolve_user(self, user_id: str) -> UserInfo | None:
        ...

    @abc.abstractmethod
    async def resolve_thread_starter(self, channel_id: str, thread_ts: str) -> ThreadStarter | None:
        ...

    @abc.abstractmethod
    async def send_message(self, to: str, text: str) -> None:
        ...

    @abc.abstractmethod
    async def react(self, channel_id: str, message_ts: str, name: str) -> None:
        ...

    async def resolve_media(self, files: tuple[MediaRef, ...], max_bytes: int) -> MediaInfo | None:
        """Describe attached files. The default does not download anything."""
        usable = [f for f in files if f.size is None or f.size <= max_bytes]
        if not usable:
            return None
        first = usable[0]
        kind = media_kind(first.mimetype)
        suffix = f" ({len(usable)} files)" if len(usable) > 1 else ""
        return MediaInfo(
            placeholder=f"<media:{kind}>{suffix}",
            path=first.url_private,
            content_type=first.mimetype,
        )


def media_kind(mimetype: str | None) -> str:
    major = (mimetype or "").split("/", 1)[0].lower()
    if major in ("image", "audio", "video"):
        return major
    return "document" if major else "file"


# ---------------------------------------------------------------------------
# Channel classification
# ---------------------------------------------------------------------------

_SLACK_TYPES = ("im", "mpim", "channel", "group")


def normalize_slack_channel_type(channel_type: str | None, channel_id: str | None) -> str:
    """Return im / mpim / channel / group, inferring from the id prefix if needed."""
    normalized = (channel_type or "").strip().lower()
    if normalized in _SLACK_TYPES:
        return normalized
    prefix = (channel_id or "").strip()[:1].upper()
    if prefix == "D":
        return "im"
    if prefix == "G":
        return "group"
    return "channel"


def to_channel_kind(slack_type: str) -> ChannelKind:
    if slack_type == "im":
        return "direct"
    if slack_type == "mpim":
        return "group"
    return "room"
