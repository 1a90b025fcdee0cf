"""Layered configuration resolution.

Slack options can be set at several layers.  Each option resolves to the
first layer that sets it (i.e. is not ``None``), in this order:

1. room           – ``channels.slack.channels[<id|#name|*>]`` (room options only)
2. account        – ``channels.slack.accounts[<account_id>]``
3. provider       – ``channels.slack``
4. global         – ``messages`` / ``commands`` / agent identity
5. built-in default
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from chatgate.config.schema import ChannelConfig, Config, SlackAccountConfig

DEFAULT_ACCOUNT_ID = "default"
DEFAULT_HISTORY_LIMIT = 50
DEFAULT_MEDIA_MAX_MB = 20
DEFAULT_ACK_REACTION = "eyes"


def resolve_layered(option: str, *layers: Any, default: Any = None) -> Any:
    """Return ``option`` from the first layer that sets it.

    Layers may be ``None`` (skipped), mappings, or objects with attributes.
    """
    for layer in layers:
        if layer is None:
            continue
        if isinstance(layer, dict):
            value = layer.get(option)
        else:
            value = getattr(layer, option, None)
        if value is not None:
            return value
    return default


@dataclass(frozen=True)
class SlackAccountSettings:
    """One resolved value per account-level option."""

    account_id: str
    bot_token: str = ""
    allow_bots: bool = False
    dm_enabled: bool = True
    dm_policy: str = "pairing"
    allow_from: tuple[str, ...] = ()
    group_dm_enabled: bool = False
    group_dm_channels: tuple[str, ...] = ()
    group_policy: str = "open"
    channels: dict[str, ChannelConfig] = field(default_factory=dict)
    default_require_mention: bool = True
    history_limit: int = DEFAULT_HISTORY_LIMIT
    ack_reaction_scope: str = "group-mentions-only"
    thread_history_scope: str = "thread"
    thread_inherit_parent: bool = False
    media_max_bytes: int = DEFAULT_MEDIA_MAX_MB * 1024 * 1024
    text_commands: bool = True


def resolve_account_settings(
    config: Config,
    account_id: str | None = None,
) -> SlackAccountSettings:
    """Flatten provider, account and global layers for one Slack account."""
    account_id = (account_id or DEFAULT_ACCOUNT_ID).strip() or DEFAULT_ACCOUNT_ID
    slack = config.channels.slack
    account: SlackAccountConfig | None = slack.accounts.get(account_id)

    dm_layers = (account.dm if account else None, slack.dm)
    thread_layers = (account.thread if account else None, slack.thread)

    media_max_mb = resolve_layered("media_max_mb", account, slack, default=DEFAULT_MEDIA_MAX_MB)

    return SlackAccountSettings(
        account_id=account_id,
        bot_token=resolve_layered("bot_token", account, slack, default=""),
        allow_bots=resolve_layered("allow_bots", account, slack, default=False),
        dm_enabled=resolve_layered("enabled", *dm_layers, default=True),
        dm_policy=resolve_layered("policy", *dm_layers, default="pairing"),
        allow_from=tuple(resolve_layered("allow_from", *dm_layers, default=())),
        group_dm_enabled=resolve_layered("group_enabled", *dm_layers, default=False),
        group_dm_channels=tuple(resolve_layered("group_channels", *dm_layers, default=())),
        group_policy=resolve_layered("group_policy", account, slack, default="open"),
        channels=dict(resolve_layered("channels", account, slack, default={})),
        default_require_mention=resolve_layered("require_mention", account, slack, default=True),
        history_limit=resolve_layered(
            "history_limit",
            account,
            slack,
            config.messages.group_chat,
            default=DEFAULT_HISTORY_LIMIT,
        ),
        ack_reaction_scope=resolve_layered(
            "ack_reaction_scope", account, slack, config.messages, default="group-mentions-only"
        ),
        thread_history_scope=resolve_layered("history_scope", *thread_layers, default="thread"),
        thread_inherit_parent=resolve_layered("inherit_parent", *thread_layers, default=False),
        media_max_bytes=int(media_max_mb * 1024 * 1024),
        text_commands=config.commands.text,
    )


def resolve_ack_reaction(config: Config, agent_id: str) -> str:
    """Reaction used to acknowledge inbound messages; empty disables it."""
    configured = config.messages.ack_reaction
    if configured is not None:
        return configured.strip()
    agent = config.find_agent(agent_id)
    emoji = agent.identity.emoji.strip() if agent else ""
    return emoji or DEFAULT_ACK_REACTION


# ---------------------------------------------------------------------------
# Room-level resolution
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ResolvedChannelConfig:
    allowed: bool
    require_mention: bool
    matched: bool = False
    allow_bots: bool | None = None
    users: tuple[str, ...] = ()
    system_prompt: str | None = None


def _find_channel_entry(
    channel_id: str,
    channel_name: str | None,
    channels: dict[str, ChannelConfig],
) -> ChannelConfig | None:
    lowered = {key.strip().lower(): entry for key, entry in channels.items()}
    candidates = [channel_id.lower()]
    if channel_name:
        name = channel_name.strip().lstrip("#").lower()
        candidates += [f"#{name}", name]
    for key in candidates:
        if key in lowered:
            return lowered[key]
    return lowered.get("*")


def resolve_channel_config(
    channel_id: str,
    channel_name: str | None,
    channels: dict[str, ChannelConfig] | None,
    default_require_mention: bool,
) -> ResolvedChannelConfig:
    """Resolve room options by id, ``#name``, name, then ``*`` wildcard."""
    if not channels:
        return ResolvedChannelConfig(allowed=True, require_mention=default_require_mention)

    entry = _find_channel_entry(channel_id, channel_name, channels)
    if entry is None:
        return ResolvedChannelConfig(allowed=False, require_mention=default_require_mention)

    return ResolvedChannelConfig(
        allowed=entry.enabled and entry.allow,
        require_mention=resolve_layered(
            "require_mention", entry, default=default_require_mention
        ),
        matched=True,
        allow_bots=entry.allow_bots,
        users=tuple(entry.users),
        system_prompt=entry.system_prompt,
    )
