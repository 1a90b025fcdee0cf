"""Tests for control command detection."""

import pytest

from chatgate.config.resolver import SlackAccountSettings
from chatgate.gating.commands import (
    find_control_command,
    has_control_command,
    normalize_command_body,
    should_handle_text_commands,
)


@pytest.mark.parametrize(
    "text,key",
    [
        ("/status", "status"),
        ("  /STATUS  ", "status"),
        ("/id", "whoami"),
        ("/reset now please", "reset"),
        ("/think:high", "think"),
        ("/t low", "think"),
        ("<@U0BOT> /new", "new"),
        ("/model\ngpt-4", "model"),
        ("/reset\tnow", "reset"),
    ],
)
def test_recognized(text, key):
    assert find_control_command(text).key == key


@pytest.mark.parametrize(
    "text",
    ["status", "/unknown", "/status extra", "/status\tnow", "/help:me", "hello /status", ""],
)
def test_not_recognized(text):
    assert find_control_command(text) is None
    assert not has_control_command(text)


def test_normalize_strips_leading_mentions():
    assert normalize_command_body("<@U1> <@U2>  /stop ") == "/stop"


def test_text_commands_setting():
    assert should_handle_text_commands(SlackAccountSettings(account_id="default"))
    assert not should_handle_text_commands(
        SlackAccountSettings(account_id="default", text_commands=False)
    )
