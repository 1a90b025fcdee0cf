"""Bounded recent-message windows for room and group chats."""

from __future__ import annotations

import threading
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass

HISTORY_CONTEXT_MARKER = "[Chat messages since your last reply - for context]"
CURRENT_MESSAGE_MARKER = "[Current message - respond to this]"
MAX_HISTORY_KEYS = 1000


@dataclass(frozen=True)
class HistoryEntry:
    sender: str
    body: str
    timestamp: int | None = None  # epoch ms
    message_id: str | None = None


class HistoryWindow:
    """
    Shared store of per-key message windows.

    Keys are channel ids or thread session keys. Each window keeps at most
    ``limit`` entries (oldest evicted first). The number of keys is capped
    with least-recently-used eviction. ``append`` and ``get`` are atomic
    with respect to each other, so concurrent messages for the same key
    never observe a half-updated window.
    """

    def __init__(self, max_keys: int = MAX_HISTORY_KEYS) -> None:
        self._windows: OrderedDict[str, list[HistoryEntry]] = OrderedDict()
        self._max_keys = max_keys
        self._lock = threading.Lock()

    def append(self, key: str, entry: HistoryEntry, limit: int) -> list[HistoryEntry]:
        """Append ``entry`` and return a snapshot of the window after eviction."""
        if limit <= 0:
            return []
        with self._lock:
            window = self._windows.pop(key, [])
            window.append(entry)
            while len(window) > limit:
                window.pop(0)
            self._windows[key] = window
            while len(self._windows) > self._max_keys:
                self._windows.popitem(last=False)
            return list(window)

    def get(self, key: str) -> list[HistoryEntry]:
        with self._lock:
            return list(self._windows.get(key, []))

    def clear(self, key: str) -> None:
        with self._lock:
            self._windows.pop(key, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._windows)


def build_history_context(history_text: str, current_message: str, line_break: str = "\n") -> str:
    if not history_text.strip():
        return current_message
    return line_break.join(
        [HISTORY_CONTEXT_MARKER, history_text, "", CURRENT_MESSAGE_MARKER, current_message]
    )


def build_history_context_from_entries(
    entries: list[HistoryEntry],
    current_message: str,
    format_entry: Callable[[HistoryEntry], str],
    exclude_last: bool = True,
    line_break: str = "\n",
) -> str:
    shown = entries[:-1] if exclude_last else entries
    if not shown:
        return current_message
    history_text = line_break.join(format_entry(e) for e in shown)
    return build_history_context(history_text, current_message, line_break)


def build_history_context_from_window(
    window: HistoryWindow,
    history_key: str,
    limit: int,
    entry: HistoryEntry | None,
    current_message: str,
    format_entry: Callable[[HistoryEntry], str],
) -> str:
    """
    Record ``entry`` and prepend the window's earlier entries to ``current_message``.

    A limit of zero disables history: nothing is recorded and the message is
    returned unchanged.
    """
    if limit <= 0:
        return current_message
    if entry is not None:
        entries = window.append(history_key, entry, limit)
        exclude_last = True
    else:
        entries = window.get(history_key)
        exclude_last = False
    return build_history_context_from_entries(
        entries, current_message, format_entry, exclude_last=exclude_last
    )
