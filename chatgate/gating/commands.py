"""Text control commands (``/status``, ``/reset`` ...)."""

from __future__ import annotations

import re
from dataclasses import dataclass

from chatgate.config.resolver import SlackAccountSettings


@dataclass(frozen=True)
class ControlCommand:
    key: str
    aliases: tuple[str, ...]
    accepts_args: bool = False


COMMANDS: tuple[ControlCommand, ...] = (
    ControlCommand("help", ("/help",)),
    ControlCommand("commands", ("/commands",)),
    ControlCommand("status", ("/status",)),
    ControlCommand("whoami", ("/whoami", "/id")),
    ControlCommand("stop", ("/stop",)),
    ControlCommand("restart", ("/restart",)),
    ControlCommand("reset", ("/reset",), accepts_args=True),
    ControlCommand("new", ("/new",), accepts_args=True),
    ControlCommand("compact", ("/compact",), accepts_args=True),
    ControlCommand("model", ("/model",), accepts_args=True),
    ControlCommand("think", ("/think", "/thinking", "/t"), accepts_args=True),
    ControlCommand("verbose", ("/verbose", "/v"), accepts_args=True),
    ControlCommand("activation", ("/activation",), accepts_args=True),
    ControlCommand("send", ("/send",), accepts_args=True),
)

_ALIASES: dict[str, ControlCommand] = {
    alias: cmd for cmd in COMMANDS for alias in cmd.aliases
}

_LEADING_MENTION_RE = re.compile(r"^(?:<@[^>]+>\s*)+")
_WHITESPACE_RE = re.compile(r"\s+")


def normalize_command_body(text: str) -> str:
    """Strip surrounding whitespace and any leading ``<@...>`` mentions."""
    return _LEADING_MENTION_RE.sub("", (text or "").strip()).strip()


def find_control_command(text: str) -> ControlCommand | None:
    body = normalize_command_body(text)
    if not body.startswith("/"):
        return None
    head, *tail = _WHITESPACE_RE.split(body, maxsplit=1)
    rest = tail[0] if tail else ""
    # "/think:high" is shorthand for "/think high"
    head, colon, inline = head.partition(":")
    cmd = _ALIASES.get(head.lower())
    if cmd is None:
        return None
    has_args = bool(rest.strip() or (colon and inline))
    if has_args and not cmd.accepts_args:
        return None
    return cmd


def has_control_command(text: str) -> bool:
    return find_control_command(text) is not None


def should_handle_text_commands(settings: SlackAccountSettings) -> bool:
    return settings.text_commands
