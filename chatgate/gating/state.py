"""Per-message scratch state shared by the admission gates."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from chatgate.bus.events import ChannelKind, InboundMessageEvent
from chatgate.channels.base import to_channel_kind

if TYPE_CHECKING:
    from chatgate.channels.base import ChannelInfo, MediaInfo
    from chatgate.config.resolver import ResolvedChannelConfig, SlackAccountSettings
    from chatgate.pipeline import AdmissionContext
    from chatgate.session.router import Route


@dataclass
class AdmissionState:
    """
    Created once per inbound event and discarded when admission finishes.

    Gates fill the derived fields in order; a field is only read by gates
    that run after the one that sets it.
    """

    ctx: "AdmissionContext"
    event: InboundMessageEvent
    settings: "SlackAccountSettings"
    was_mentioned_override: bool | None = None

    # set by ChannelKindGate
    slack_type: str | None = None
    channel_info: "ChannelInfo | None" = None
    channel_config: "ResolvedChannelConfig | None" = None

    # set by SenderPresenceGate / DirectPolicyGate / RoomSenderGate
    sender_id: str | None = None
    sender_name: str | None = None
    allow_from: list[str] = field(default_factory=list)
    channel_user_authorized: bool = True
    command_authorized: bool = False

    # set by RouteStep
    route: "Route | None" = None
    mention_regexes: list[re.Pattern[str]] = field(default_factory=list)

    # set by MentionGateStep
    was_mentioned: bool = False
    implicit_mention: bool = False
    should_bypass_mention: bool = False
    require_mention: bool = False
    can_detect_mention: bool = False
    effective_was_mentioned: bool = False

    # set by BodyGate
    media: "MediaInfo | None" = None
    raw_body: str = ""

    @property
    def chat_type(self) -> ChannelKind:
        return to_channel_kind(self.slack_type or "channel")

    @property
    def is_direct(self) -> bool:
        return self.slack_type == "im"

    @property
    def is_group_dm(self) -> bool:
        return self.slack_type == "mpim"

    @property
    def is_room(self) -> bool:
        return self.slack_type in ("channel", "group")

    @property
    def is_roomish(self) -> bool:
        return self.is_room or self.is_group_dm

    @property
    def channel_name(self) -> str | None:
        return self.channel_info.name if self.channel_info else None

    @property
    def room_label(self) -> str:
        return f"#{self.channel_name}" if self.channel_name else f"#{self.event.channel_id}"
