"""Admission pipeline: raw Slack message event in, prepared message (or nothing) out."""

from __future__ import annotations

from dataclasses import dataclass, field

from loguru import logger

from chatgate.access.policy import AccessPolicyEvaluator
from chatgate.ack import AckPolicy
from chatgate.bus.events import InboundMessageEvent, PreparedMessage
from chatgate.bus.system_events import SystemEventQueue
from chatgate.channels.base import PlatformClient
from chatgate.config.resolver import (
    SlackAccountSettings,
    resolve_account_settings,
    resolve_ack_reaction,
)
from chatgate.config.schema import Config
from chatgate.envelope import EnvelopeBuilder, preview_text
from chatgate.gating.base import GateChain
from chatgate.gating.gates import (
    BodyGate,
    BotAllowanceGate,
    ChannelAllowedGate,
    ChannelKindGate,
    DirectPolicyGate,
    MentionGateStep,
    RoomSenderGate,
    RouteStep,
    SelfMessageGate,
    SenderPresenceGate,
)
from chatgate.gating.state import AdmissionState
from chatgate.history.window import HistoryWindow
from chatgate.pairing.store import InMemoryPairingStore, PairingStore
from chatgate.session.router import SessionRouter
from chatgate.utils.tasks import TaskSupervisor


@dataclass
class AdmissionContext:
    """Long-lived collaborators shared by every message of one Slack account."""

    config: Config
    settings: SlackAccountSettings
    client: PlatformClient
    bot_user_id: str | None = None
    bot_id: str | None = None
    team_id: str | None = None
    pairing_store: PairingStore | None = field(default_factory=InMemoryPairingStore)
    history: HistoryWindow = field(default_factory=HistoryWindow)
    system_events: SystemEventQueue = field(default_factory=SystemEventQueue)
    supervisor: TaskSupervisor = field(default_factory=TaskSupervisor)

    @classmethod
    def from_config(
        cls,
        config: Config,
        client: PlatformClient,
        account_id: str | None = None,
        **kwargs,
    ) -> "AdmissionContext":
        return cls(
            config=config,
            settings=resolve_account_settings(config, account_id),
            client=client,
            **kwargs,
        )


class AdmissionPipeline:
    """
    Decides whether an inbound message reaches the agent layer.

    Gates run in a fixed order and the first drop ends admission:

    1. self-message      – the bot's own messages
    2. channel-kind      – direct / room / group, classified once
    3. bot-allowance     – bot messages need allowBots
    4. sender-presence   – dms need a user id; every message needs a sender
    5. channel-allowed   – group policy and room allowlist
    6. direct-policy     – disabled / open / allowlist / pairing
    7. route             – agent route (never drops)
    8. room-sender       – per-room user allowlist
    9. mention           – mention requirement for rooms
    10. body             – text or media placeholder

    Admitted messages get session keys, history, an envelope, an optional
    acknowledgment reaction and a system event. Drops return ``None`` and are
    logged, never raised.
    """

    def __init__(self, ctx: AdmissionContext) -> None:
        self.ctx = ctx

    def _chain(self, settings: SlackAccountSettings) -> tuple[GateChain, SessionRouter]:
        ctx = self.ctx
        evaluator = AccessPolicyEvaluator(
            settings=settings,
            client=ctx.client,
            pairing_store=ctx.pairing_store,
            supervisor=ctx.supervisor,
        )
        router = SessionRouter(
            ctx.config,
            account_id=settings.account_id,
            team_id=ctx.team_id,
            history_scope=settings.thread_history_scope,
            inherit_parent=settings.thread_inherit_parent,
        )
        chain = GateChain(
            [
                SelfMessageGate(),
                ChannelKindGate(),
                BotAllowanceGate(),
                SenderPresenceGate(),
                ChannelAllowedGate(),
                DirectPolicyGate(evaluator),
                RouteStep(router),
                RoomSenderGate(),
                MentionGateStep(),
                BodyGate(),
            ]
        )
        return chain, router

    async def admit(
        self,
        event: InboundMessageEvent,
        account: SlackAccountSettings | None = None,
        *,
        was_mentioned: bool | None = None,
    ) -> PreparedMessage | None:
        """
        Run admission for one event.

        Args:
            event: The inbound message.
            account: Resolved account settings; defaults to the context's.
            was_mentioned: Set by ``app_mention`` events, which are mentions
                by definition.

        Returns:
            The prepared message, or None if the message was dropped.
        """
        ctx = self.ctx
        settings = account or ctx.settings
        state = AdmissionState(
            ctx=ctx,
            event=event,
            settings=settings,
            was_mentioned_override=was_mentioned,
        )

        chain, router = self._chain(settings)
        result = await chain.run(state)
        if result.dropped:
            return None

        try:
            return await self._prepare(state, router)
        except Exception as e:
            logger.error(f"Error preparing slack message {event.ts} in {event.channel_id}: {e}")
            return None

    async def _prepare(self, state: AdmissionState, router: SessionRouter) -> PreparedMessage | None:
        """Envelope, ack and system event for a message that passed every gate."""
        ctx, event, settings = self.ctx, state.event, state.settings
        route = state.route
        if route is None:
            logger.error(f"slack: no route resolved for message {event.ts}")
            return None
        routing = router.resolve(event, route)

        builder = EnvelopeBuilder(ctx.client, ctx.history, settings.history_limit)
        context = await builder.build(state, routing)
        reply_target = context.to
        if not reply_target:
            logger.debug(f"slack: drop message {event.ts} (empty reply target)")
            return None

        ack_value = resolve_ack_reaction(ctx.config, route.agent_id)
        ack = AckPolicy(ctx.client, ctx.supervisor, settings.ack_reaction_scope, ack_value)
        ack_task = ack.schedule(
            event.channel_id,
            event.ts,
            is_direct=state.is_direct,
            is_room=state.is_room,
            is_roomish=state.is_roomish,
            require_mention=state.require_mention,
            can_detect_mention=state.can_detect_mention,
            effective_was_mentioned=state.effective_was_mentioned,
        )

        preview = preview_text(state.raw_body)
        if state.is_direct:
            inbound_label = f"Slack DM from {state.sender_name}"
        else:
            inbound_label = f"Slack message in {state.room_label} from {state.sender_name}"
        ctx.system_events.enqueue(
            f"{inbound_label}: {preview}",
            session_key=routing.session_key,
            context_key=f"slack:message:{event.channel_id}:{event.ts or 'unknown'}",
        )

        logger.debug(
            f"slack inbound: channel={event.channel_id} from={context.from_} preview=\"{preview}\""
        )
        return PreparedMessage(
            context=context,
            reply_target=reply_target,
            route=route,
            channel_config=state.channel_config,
            is_direct_message=state.is_direct,
            is_roomish=state.is_roomish,
            history_key=routing.history_key,
            preview=preview,
            ack_reaction_message_id=event.ts,
            ack_reaction_value=ack_value,
            ack_reaction_task=ack_task,
        )
