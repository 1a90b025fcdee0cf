"""Tests for config loading and layered resolution."""

import json

from chatgate.config.loader import camel_to_snake, convert_keys, load_config, save_config
from chatgate.config.resolver import (
    resolve_account_settings,
    resolve_ack_reaction,
    resolve_channel_config,
    resolve_layered,
)
from chatgate.config.schema import ChannelConfig, Config


class TestLoader:
    def test_camel_keys_converted(self):
        assert camel_to_snake("allowFrom") == "allow_from"
        assert camel_to_snake("mediaMaxMb") == "media_max_mb"

    def test_channel_ids_preserved(self):
        data = convert_keys({"channels": {"C0ABCDEF": {"requireMention": False}, "#General": {}}})
        assert "C0ABCDEF" in data["channels"]
        assert "#General" in data["channels"]
        assert data["channels"]["C0ABCDEF"] == {"require_mention": False}

    def test_load_from_file(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(
            json.dumps(
                {
                    "channels": {
                        "slack": {
                            "botToken": "xoxb-1",
                            "dm": {"policy": "allowlist", "allowFrom": ["U1"]},
                            "channels": {"C0ABC": {"requireMention": False}},
                            "ackReactionScope": "group-mentions",
                        }
                    }
                }
            )
        )
        config = load_config(path)
        slack = config.channels.slack
        assert slack.bot_token == "xoxb-1"
        assert slack.dm.policy == "allowlist"
        assert slack.dm.allow_from == ["U1"]
        assert slack.channels["C0ABC"].require_mention is False
        assert slack.ack_reaction_scope == "group-mentions-only"

    def test_invalid_file_falls_back_to_defaults(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text("{not json")
        config = load_config(path)
        assert config == Config()

    def test_missing_file_defaults(self, tmp_path):
        assert load_config(tmp_path / "nope.json") == Config()

    def test_save_round_trip(self, tmp_path):
        path = tmp_path / "out" / "config.json"
        config = Config.model_validate(
            {"channels": {"slack": {"dm": {"allow_from": ["U1"]}, "channels": {"C0ABC": {}}}}}
        )
        save_config(config, path)
        raw = json.loads(path.read_text())
        assert raw["channels"]["slack"]["dm"]["allowFrom"] == ["U1"]
        assert "C0ABC" in raw["channels"]["slack"]["channels"]
        assert load_config(path) == config


class TestLayered:
    def test_first_set_layer_wins(self):
        assert resolve_layered("x", None, {"x": None}, {"x": 2}, {"x": 3}) == 2

    def test_false_is_a_value(self):
        assert resolve_layered("x", {"x": False}, {"x": True}, default=True) is False

    def test_default(self):
        assert resolve_layered("x", None, {}, default="d") == "d"


class TestAccountSettings:
    def test_defaults(self):
        s = resolve_account_settings(Config())
        assert s.account_id == "default"
        assert s.dm_policy == "pairing"
        assert s.allow_bots is False
        assert s.default_require_mention is True
        assert s.history_limit == 50
        assert s.ack_reaction_scope == "group-mentions-only"
        assert s.thread_history_scope == "thread"
        assert s.thread_inherit_parent is False
        assert s.media_max_bytes == 20 * 1024 * 1024
        assert s.text_commands is True

    def test_account_overrides_provider(self):
        config = Config.model_validate(
            {
                "channels": {
                    "slack": {
                        "allow_bots": False,
                        "dm": {"policy": "open", "allow_from": ["U1"]},
                        "accounts": {
                            "work": {"allow_bots": True, "dm": {"policy": "allowlist"}},
                        },
                    }
                }
            }
        )
        s = resolve_account_settings(config, "work")
        assert s.allow_bots is True
        assert s.dm_policy == "allowlist"
        # not set on the account dm block, falls through to the provider
        assert s.allow_from == ("U1",)

    def test_global_layers(self):
        config = Config.model_validate(
            {
                "messages": {"ack_reaction_scope": "all", "group_chat": {"history_limit": 7}},
                "commands": {"text": False},
            }
        )
        s = resolve_account_settings(config)
        assert s.ack_reaction_scope == "all"
        assert s.history_limit == 7
        assert s.text_commands is False

    def test_ack_reaction(self):
        assert resolve_ack_reaction(Config(), "main") == "eyes"
        config = Config.model_validate({"agents": [{"id": "main", "identity": {"emoji": "wave"}}]})
        assert resolve_ack_reaction(config, "main") == "wave"
        config = Config.model_validate({"messages": {"ack_reaction": ""}})
        assert resolve_ack_reaction(config, "main") == ""


class TestChannelConfig:
    def test_no_entries_allows(self):
        cfg = resolve_channel_config("C1", "general", {}, True)
        assert cfg.allowed and cfg.require_mention and not cfg.matched

    def test_match_by_name(self):
        channels = {"#General": ChannelConfig(require_mention=False, users=["U1"])}
        cfg = resolve_channel_config("C1", "general", channels, True)
        assert cfg.matched
        assert cfg.require_mention is False
        assert cfg.users == ("U1",)

    def test_id_beats_wildcard(self):
        channels = {
            "*": ChannelConfig(system_prompt="wild"),
            "C1": ChannelConfig(system_prompt="exact"),
        }
        assert resolve_channel_config("C1", None, channels, True).system_prompt == "exact"
        assert resolve_channel_config("C2", None, channels, True).system_prompt == "wild"

    def test_unmatched_not_allowed(self):
        cfg = resolve_channel_config("C9", "random", {"C1": ChannelConfig()}, True)
        assert cfg.allowed is False
        assert cfg.matched is False

    def test_disabled_entry(self):
        cfg = resolve_channel_config("C1", None, {"C1": ChannelConfig(enabled=False)}, True)
        assert cfg.allowed is False
