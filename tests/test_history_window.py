"""Tests for history windows and history context formatting."""

from chatgate.history.window import (
    CURRENT_MESSAGE_MARKER,
    HISTORY_CONTEXT_MARKER,
    HistoryEntry,
    HistoryWindow,
    build_history_context,
    build_history_context_from_entries,
    build_history_context_from_window,
)


def entry(body, sender="alice"):
    return HistoryEntry(sender=sender, body=body)


def fmt(e):
    return f"{e.sender}: {e.body}"


class TestHistoryWindow:
    def test_limit_evicts_oldest(self):
        window = HistoryWindow()
        for i in range(5):
            snapshot = window.append("C1", entry(str(i)), limit=3)
        assert [e.body for e in snapshot] == ["2", "3", "4"]
        assert [e.body for e in window.get("C1")] == ["2", "3", "4"]

    def test_zero_limit_records_nothing(self):
        window = HistoryWindow()
        assert window.append("C1", entry("x"), limit=0) == []
        assert len(window) == 0

    def test_key_cap_is_lru(self):
        window = HistoryWindow(max_keys=2)
        window.append("a", entry("1"), limit=5)
        window.append("b", entry("1"), limit=5)
        window.append("a", entry("2"), limit=5)
        window.append("c", entry("1"), limit=5)
        assert len(window) == 2
        assert window.get("b") == []
        assert len(window.get("a")) == 2

    def test_snapshot_is_a_copy(self):
        window = HistoryWindow()
        snapshot = window.append("C1", entry("x"), limit=5)
        snapshot.clear()
        assert len(window.get("C1")) == 1

    def test_clear(self):
        window = HistoryWindow()
        window.append("C1", entry("x"), limit=5)
        window.clear("C1")
        assert window.get("C1") == []


class TestHistoryContext:
    def test_empty_history_returns_current(self):
        assert build_history_context("  ", "now") == "now"

    def test_markers(self):
        text = build_history_context("alice: earlier", "now")
        assert text == "\n".join(
            [HISTORY_CONTEXT_MARKER, "alice: earlier", "", CURRENT_MESSAGE_MARKER, "now"]
        )

    def test_entries_exclude_last(self):
        entries = [entry("one"), entry("two")]
        text = build_history_context_from_entries(entries, "now", fmt)
        assert "alice: one" in text
        assert "alice: two" not in text

    def test_single_entry_is_just_current(self):
        assert build_history_context_from_entries([entry("only")], "now", fmt) == "now"

    def test_from_window(self):
        window = HistoryWindow()
        build_history_context_from_window(window, "C1", 10, entry("one"), "m1", fmt)
        text = build_history_context_from_window(window, "C1", 10, entry("two"), "m2", fmt)
        assert text.startswith(HISTORY_CONTEXT_MARKER)
        assert text.endswith("m2")
        assert "alice: one" in text

    def test_from_window_without_entry_shows_everything(self):
        window = HistoryWindow()
        window.append("C1", entry("one"), limit=10)
        text = build_history_context_from_window(window, "C1", 10, None, "now", fmt)
        assert "alice: one" in text

    def test_from_window_disabled(self):
        window = HistoryWindow()
        assert build_history_context_from_window(window, "C1", 0, entry("x"), "now", fmt) == "now"
        assert len(window) == 0
