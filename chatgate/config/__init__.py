"""Configuration module for chatgate."""

from chatgate.config.loader import get_config_path, get_chatgate_home, load_config, save_config
from chatgate.config.resolver import (
    ResolvedChannelConfig,
    SlackAccountSettings,
    resolve_account_settings,
    resolve_channel_config,
    resolve_layered,
)
from chatgate.config.schema import ChannelConfig, Config, SlackConfig

__all__ = [
    "ChannelConfig",
    "Config",
    "SlackConfig",
    "ResolvedChannelConfig",
    "SlackAccountSettings",
    "get_config_path",
    "get_chatgate_home",
    "load_config",
    "save_config",
    "resolve_account_settings",
    "resolve_channel_config",
    "resolve_layered",
]
