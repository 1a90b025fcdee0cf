"""Session keys and agent routing."""

from chatgate.session.router import (
    Peer,
    Route,
    SessionRouter,
    SessionRouting,
    ThreadKeys,
    build_agent_session_key,
    is_thread_reply,
    resolve_agent_route,
    resolve_thread_session_keys,
)

__all__ = [
    "Peer",
    "Route",
    "SessionRouter",
    "SessionRouting",
    "ThreadKeys",
    "build_agent_session_key",
    "is_thread_reply",
    "resolve_agent_route",
    "resolve_thread_session_keys",
]
