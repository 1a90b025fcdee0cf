"""Allowlist matching for Slack user ids and names."""

from __future__ import annotations

import re
from collections.abc import Iterable
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from chatgate.config.resolver import SlackAccountSettings
    from chatgate.pairing.store import PairingStore

_PREFIX_RE = re.compile(r"^(?:slack:|user:)+", re.IGNORECASE)
_MENTION_RE = re.compile(r"^<@([^>|]+)(?:\|[^>]*)?>$")


def normalize_allow_entry(entry: str) -> str:
    """Lower-case an entry and strip ``slack:``/``user:``/``@``/``<@...>`` wrappers."""
    value = str(entry).strip()
    m = _MENTION_RE.match(value)
    if m:
        value = m.group(1)
    value = _PREFIX_RE.sub("", value)
    return value.lstrip("@").strip().lower()


def normalize_allow_list(entries: Iterable[str] | None) -> list[str]:
    return [e for e in (normalize_allow_entry(x) for x in entries or ()) if e]


def allow_list_matches(
    allow_list: Iterable[str],
    id: str | None = None,
    name: str | None = None,
) -> bool:
    """True when ``id`` or ``name`` is in the (normalized) list, or it holds ``*``."""
    entries = set(normalize_allow_list(allow_list))
    if not entries:
        return False
    if "*" in entries:
        return True
    if id and id.strip().lower() in entries:
        return True
    if name:
        lowered = name.strip().lower()
        if lowered in entries or f"slack:{lowered}" in entries:
            return True
    return False


def resolve_user_allowed(
    allow_list: Iterable[str] | None,
    user_id: str | None,
    user_name: str | None,
) -> bool:
    """Per-room user check. An empty list allows everyone."""
    entries = normalize_allow_list(allow_list)
    if not entries:
        return True
    return allow_list_matches(entries, id=user_id, name=user_name)


def is_sender_allow_listed(
    allow_list: Iterable[str],
    sender_id: str | None,
    sender_name: str | None,
) -> bool:
    """Command-level check against ``dm.allowFrom``. An empty list allows everyone."""
    entries = normalize_allow_list(allow_list)
    if not entries:
        return True
    return allow_list_matches(entries, id=sender_id, name=sender_name)


async def resolve_effective_allow_from(
    settings: "SlackAccountSettings",
    pairing_store: "PairingStore | None",
    channel: str = "slack",
) -> list[str]:
    """Configured ``dm.allowFrom`` plus senders approved through pairing."""
    combined = list(settings.allow_from)
    if pairing_store is not None:
        combined += await pairing_store.read_allow_from(channel)
    seen: set[str] = set()
    result: list[str] = []
    for entry in normalize_allow_list(combined):
        if entry not in seen:
            seen.add(entry)
            result.append(entry)
    return result
