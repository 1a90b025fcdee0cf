"""Mention detection and the mention gate."""

from __future__ import annotations

import re
from dataclasses import dataclass

from loguru import logger

from chatgate.config.schema import Config

_ANY_MENTION_RE = re.compile(r"<@[^>]+>")


@dataclass(frozen=True)
class MentionGateResult:
    effective_was_mentioned: bool
    should_skip: bool


def resolve_mention_gating(
    require_mention: bool,
    can_detect_mention: bool,
    was_mentioned: bool,
    implicit_mention: bool = False,
    should_bypass_mention: bool = False,
) -> MentionGateResult:
    """Decide whether a message that may lack a mention should be skipped.

    When mention detection is impossible (no bot id, no patterns) the gate
    never skips.
    """
    effective = bool(was_mentioned or implicit_mention or should_bypass_mention)
    should_skip = bool(require_mention and can_detect_mention and not effective)
    return MentionGateResult(effective_was_mentioned=effective, should_skip=should_skip)


def build_mention_regexes(config: Config, agent_id: str | None = None) -> list[re.Pattern[str]]:
    """Compile mention patterns for an agent (falls back to the global list)."""
    patterns: list[str] = []
    agent = config.find_agent(agent_id) if agent_id else None
    if agent and agent.group_chat and agent.group_chat.mention_patterns:
        patterns = agent.group_chat.mention_patterns
    else:
        patterns = config.messages.group_chat.mention_patterns

    regexes: list[re.Pattern[str]] = []
    for pattern in patterns:
        try:
            regexes.append(re.compile(pattern, re.IGNORECASE))
        except re.error as e:
            logger.warning(f"Ignoring invalid mention pattern {pattern!r}: {e}")
    return regexes


def matches_mention_patterns(text: str, regexes: list[re.Pattern[str]]) -> bool:
    if not text or not regexes:
        return False
    cleaned = text.strip()
    return any(r.search(cleaned) for r in regexes)


def mentions_user(text: str, user_id: str | None) -> bool:
    """True when ``text`` contains an explicit ``<@user_id>`` token."""
    return bool(user_id and text and f"<@{user_id}>" in text)


def has_any_mention(text: str) -> bool:
    return bool(text and _ANY_MENTION_RE.search(text))
