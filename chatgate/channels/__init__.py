"""Chat platform collaborators."""

from chatgate.channels.base import (
    ChannelInfo,
    MediaInfo,
    PlatformClient,
    ThreadStarter,
    UserInfo,
    normalize_slack_channel_type,
    to_channel_kind,
)
from chatgate.channels.slack import SlackApiError, SlackWebClient

__all__ = [
    "ChannelInfo",
    "MediaInfo",
    "PlatformClient",
    "SlackApiError",
    "SlackWebClient",
    "ThreadStarter",
    "UserInfo",
    "normalize_slack_channel_type",
    "to_channel_kind",
]
