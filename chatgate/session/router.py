"""Agent routes, session keys and thread keys."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from chatgate.bus.events import InboundMessageEvent
from chatgate.config.schema import Binding, Config

DEFAULT_AGENT_ID = "main"
PeerKind = Literal["dm", "channel", "group"]


@dataclass(frozen=True)
class Peer:
    kind: PeerKind
    id: str


@dataclass(frozen=True)
class Route:
    agent_id: str
    channel: str
    account_id: str
    session_key: str
    main_session_key: str
    matched_by: str = "default"  # peer / team / account / channel / default


@dataclass(frozen=True)
class ThreadKeys:
    session_key: str
    parent_session_key: str | None = None


@dataclass(frozen=True)
class SessionRouting:
    """Everything the pipeline needs to key one message."""

    route: Route
    thread_keys: ThreadKeys
    is_thread_reply: bool
    history_key: str

    @property
    def session_key(self) -> str:
        return self.thread_keys.session_key


def _norm(value: str | None) -> str:
    return (value or "").strip().lower()


def resolve_default_agent_id(config: Config) -> str:
    for agent in config.agents:
        if agent.default:
            return _norm(agent.id) or DEFAULT_AGENT_ID
    if config.agents:
        return _norm(config.agents[0].id) or DEFAULT_AGENT_ID
    return DEFAULT_AGENT_ID


def build_main_session_key(agent_id: str) -> str:
    return f"agent:{_norm(agent_id)}:main"


def build_agent_session_key(
    agent_id: str,
    channel: str,
    peer: Peer,
    dm_scope: str = "main",
) -> str:
    """Stable session key for a peer.

    Direct messages share the agent's main session unless ``dm_scope`` is
    ``per-peer``.
    """
    agent = _norm(agent_id)
    if peer.kind == "dm":
        if dm_scope == "per-peer":
            return f"agent:{agent}:{_norm(channel)}:dm:{_norm(peer.id)}"
        return build_main_session_key(agent)
    return f"agent:{agent}:{_norm(channel)}:{peer.kind}:{_norm(peer.id)}"


def _binding_account_matches(binding: Binding, account_id: str) -> bool:
    wanted = binding.match.account_id
    if wanted is None:
        return account_id == "default"
    return wanted.strip() == "*" or _norm(wanted) == _norm(account_id)


def resolve_agent_route(
    config: Config,
    channel: str,
    account_id: str,
    peer: Peer,
    team_id: str | None = None,
) -> Route:
    """
    Pick the agent for a message.

    Bindings are considered in this order: exact peer, team, account
    (non-wildcard), channel (wildcard account), then the default agent.
    """
    candidates = [
        b
        for b in config.bindings
        if _norm(b.match.channel) == _norm(channel) and _binding_account_matches(b, account_id)
    ]

    def choose(agent_id: str, matched_by: str) -> Route:
        agent = _norm(agent_id) or DEFAULT_AGENT_ID
        if config.agents and config.find_agent(agent) is None:
            agent = resolve_default_agent_id(config)
        return Route(
            agent_id=agent,
            channel=_norm(channel),
            account_id=account_id,
            session_key=build_agent_session_key(agent, channel, peer, config.session.dm_scope),
            main_session_key=build_main_session_key(agent),
            matched_by=matched_by,
        )

    for b in candidates:
        p = b.match.peer
        if p and p.kind == peer.kind and _norm(p.id) == _norm(peer.id):
            return choose(b.agent_id, "peer")

    if team_id:
        for b in candidates:
            if b.match.peer is None and b.match.team_id and _norm(b.match.team_id) == _norm(team_id):
                return choose(b.agent_id, "team")

    for b in candidates:
        m = b.match
        if m.peer is None and not m.team_id and m.account_id and m.account_id.strip() != "*":
            return choose(b.agent_id, "account")

    for b in candidates:
        m = b.match
        if m.peer is None and not m.team_id and (m.account_id or "").strip() == "*":
            return choose(b.agent_id, "channel")

    return choose(resolve_default_agent_id(config), "default")


def resolve_thread_session_keys(
    base_session_key: str,
    thread_id: str | None = None,
    parent_session_key: str | None = None,
) -> ThreadKeys:
    thread_id = (thread_id or "").strip()
    if not thread_id:
        return ThreadKeys(session_key=base_session_key)
    return ThreadKeys(
        session_key=f"{base_session_key}:thread:{thread_id.lower()}",
        parent_session_key=parent_session_key,
    )


def is_thread_reply(event: InboundMessageEvent) -> bool:
    if not event.thread_ts:
        return False
    return event.thread_ts != event.ts or bool(event.parent_user_id)


class SessionRouter:
    """Derives route, session key, thread keys and history key for a message."""

    def __init__(
        self,
        config: Config,
        account_id: str,
        team_id: str | None = None,
        history_scope: str = "thread",
        inherit_parent: bool = False,
        channel: str = "slack",
    ) -> None:
        self.config = config
        self.account_id = account_id
        self.team_id = team_id
        self.history_scope = history_scope
        self.inherit_parent = inherit_parent
        self.channel = channel

    def resolve_route(self, event: InboundMessageEvent, is_direct: bool, is_room: bool) -> Route:
        if is_direct:
            peer = Peer(kind="dm", id=event.user or "unknown")
        else:
            peer = Peer(kind="channel" if is_room else "group", id=event.channel_id)
        return resolve_agent_route(
            self.config,
            channel=self.channel,
            account_id=self.account_id,
            peer=peer,
            team_id=self.team_id,
        )

    def resolve(self, event: InboundMessageEvent, route: Route) -> SessionRouting:
        base = route.session_key
        thread_reply = is_thread_reply(event)
        thread_keys = resolve_thread_session_keys(
            base,
            thread_id=event.thread_ts if thread_reply else None,
            parent_session_key=base if thread_reply and self.inherit_parent else None,
        )
        if thread_reply and self.history_scope == "thread":
            history_key = thread_keys.session_key
        else:
            history_key = event.channel_id
        return SessionRouting(
            route=route,
            thread_keys=thread_keys,
            is_thread_reply=thread_reply,
            history_key=history_key,
        )
