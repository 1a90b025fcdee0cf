"""Configuration schema using Pydantic."""

from typing import Literal

from pydantic import BaseModel, Field, field_validator

DmPolicy = Literal["disabled", "open", "allowlist", "pairing"]
GroupPolicy = Literal["open", "allowlist", "disabled"]
AckReactionScope = Literal["none", "all", "direct-only", "group-all", "group-mentions-only"]
HistoryScope = Literal["thread", "channel"]
DmScope = Literal["main", "per-peer"]

_ACK_SCOPE_ALIASES = {
    "direct": "direct-only",
    "group-mentions": "group-mentions-only",
    "off": "none",
}


def _normalize_ack_scope(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip().lower()
    return _ACK_SCOPE_ALIASES.get(value, value)


class GroupChatConfig(BaseModel):
    """Mention patterns and history settings for multi-party chats."""

    mention_patterns: list[str] = Field(default_factory=list)
    history_limit: int | None = None


class AgentIdentity(BaseModel):
    name: str = ""
    emoji: str = ""


class AgentConfig(BaseModel):
    """An agent that inbound messages can be routed to."""

    id: str
    name: str = ""
    default: bool = False
    identity: AgentIdentity = Field(default_factory=AgentIdentity)
    group_chat: GroupChatConfig | None = None


class PeerMatch(BaseModel):
    kind: Literal["dm", "channel", "group"]
    id: str


class BindingMatch(BaseModel):
    channel: str = "slack"
    account_id: str | None = None  # "*" matches every account
    team_id: str | None = None
    peer: PeerMatch | None = None


class Binding(BaseModel):
    """Route messages matching ``match`` to ``agent_id``."""

    agent_id: str
    match: BindingMatch = Field(default_factory=BindingMatch)


class ChannelConfig(BaseModel):
    """Per-room overrides, keyed by channel id, ``#name`` or ``*``."""

    enabled: bool = True
    allow: bool = True
    require_mention: bool | None = None
    allow_bots: bool | None = None
    users: list[str] = Field(default_factory=list)
    system_prompt: str | None = None


class DmConfig(BaseModel):
    """Direct-message access control."""

    enabled: bool | None = None
    policy: DmPolicy | None = None
    allow_from: list[str] | None = None
    group_enabled: bool | None = None  # multi-party DMs (mpim)
    group_channels: list[str] | None = None


class ThreadConfig(BaseModel):
    history_scope: HistoryScope | None = None
    inherit_parent: bool | None = None


class SlackAccountConfig(BaseModel):
    """
    Options that can be set per Slack account.

    ``None`` means "not set at this layer"; the resolver falls through to the
    next layer.
    """

    enabled: bool = True
    name: str | None = None
    bot_token: str | None = None
    allow_bots: bool | None = None
    require_mention: bool | None = None
    group_policy: GroupPolicy | None = None
    dm: DmConfig | None = None
    channels: dict[str, ChannelConfig] | None = None
    history_limit: int | None = None
    ack_reaction_scope: AckReactionScope | None = None
    thread: ThreadConfig | None = None
    media_max_mb: float | None = None

    @field_validator("ack_reaction_scope", mode="before")
    @classmethod
    def _ack_scope(cls, v: str | None) -> str | None:
        return _normalize_ack_scope(v)


class SlackConfig(SlackAccountConfig):
    """Slack channel configuration (provider layer plus named accounts)."""

    accounts: dict[str, SlackAccountConfig] = Field(default_factory=dict)


class ChannelsConfig(BaseModel):
    slack: SlackConfig = Field(default_factory=SlackConfig)


class MessagesConfig(BaseModel):
    """Global message handling defaults."""

    ack_reaction: str | None = None
    ack_reaction_scope: AckReactionScope = "group-mentions-only"
    group_chat: GroupChatConfig = Field(default_factory=GroupChatConfig)

    @field_validator("ack_reaction_scope", mode="before")
    @classmethod
    def _ack_scope(cls, v: str | None) -> str | None:
        return _normalize_ack_scope(v)


class CommandsConfig(BaseModel):
    text: bool = True  # handle "/command" text messages


class SessionConfig(BaseModel):
    dm_scope: DmScope = "main"


class Config(BaseModel):
    """Root configuration."""

    agents: list[AgentConfig] = Field(default_factory=list)
    bindings: list[Binding] = Field(default_factory=list)
    channels: ChannelsConfig = Field(default_factory=ChannelsConfig)
    messages: MessagesConfig = Field(default_factory=MessagesConfig)
    commands: CommandsConfig = Field(default_factory=CommandsConfig)
    session: SessionConfig = Field(default_factory=SessionConfig)

    def find_agent(self, agent_id: str) -> AgentConfig | None:
        wanted = agent_id.strip().lower()
        for agent in self.agents:
            if agent.id.strip().lower() == wanted:
                return agent
        return None
