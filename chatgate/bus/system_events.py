"""In-memory queue of human-readable system events, keyed by session."""

import threading
from collections import OrderedDict
from dataclasses import dataclass

MAX_EVENTS_PER_SESSION = 20


@dataclass(frozen=True)
class SystemEvent:
    text: str
    context_key: str | None = None


class SystemEventQueue:
    """
    Bounded per-session queue of system events.

    The agent layer drains the queue for a session before its next turn so it
    can see what arrived in between (e.g. "Slack DM from alice: hi").
    Consecutive duplicate texts are dropped, and the number of tracked
    sessions is capped with least-recently-used eviction.
    """

    def __init__(self, max_sessions: int = 1000, max_events: int = MAX_EVENTS_PER_SESSION) -> None:
        self._queues: OrderedDict[str, list[SystemEvent]] = OrderedDict()
        self._max_sessions = max_sessions
        self._max_events = max_events
        self._lock = threading.Lock()

    def enqueue(self, text: str, session_key: str, context_key: str | None = None) -> bool:
        """Add an event. Returns False when skipped as a duplicate."""
        cleaned = text.strip()
        if not cleaned or not session_key:
            return False
        with self._lock:
            queue = self._queues.get(session_key)
            if queue is None:
                queue = []
                self._queues[session_key] = queue
            else:
                self._queues.move_to_end(session_key)
            if queue and queue[-1].text == cleaned:
                return False
            queue.append(SystemEvent(text=cleaned, context_key=context_key))
            while len(queue) > self._max_events:
                queue.pop(0)
            while len(self._queues) > self._max_sessions:
                self._queues.popitem(last=False)
        return True

    def peek(self, session_key: str) -> list[SystemEvent]:
        with self._lock:
            return list(self._queues.get(session_key, []))

    def drain(self, session_key: str) -> list[SystemEvent]:
        """Remove and return all events for a session."""
        with self._lock:
            return self._queues.pop(session_key, [])

    def has_events(self, session_key: str) -> bool:
        with self._lock:
            return bool(self._queues.get(session_key))
