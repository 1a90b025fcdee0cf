"""Recent-message history for multi-party chats."""

from chatgate.history.window import (
    CURRENT_MESSAGE_MARKER,
    HISTORY_CONTEXT_MARKER,
    HistoryEntry,
    HistoryWindow,
    build_history_context,
    build_history_context_from_window,
)

__all__ = [
    "CURRENT_MESSAGE_MARKER",
    "HISTORY_CONTEXT_MARKER",
    "HistoryEntry",
    "HistoryWindow",
    "build_history_context",
    "build_history_context_from_window",
]
