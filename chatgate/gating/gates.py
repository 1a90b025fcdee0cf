"""The admission gates, in the order the pipeline runs them."""

from __future__ import annotations

from typing import TYPE_CHECKING

from loguru import logger

from chatgate.access.allowlist import allow_list_matches, resolve_effective_allow_from
from chatgate.access.policy import AccessPolicyEvaluator
from chatgate.channels.base import ChannelInfo, normalize_slack_channel_type
from chatgate.config.resolver import resolve_channel_config
from chatgate.gating.base import CONTINUE, Gate, GateDecision
from chatgate.gating.commands import has_control_command, should_handle_text_commands
from chatgate.gating.mention import (
    build_mention_regexes,
    has_any_mention,
    matches_mention_patterns,
    mentions_user,
    resolve_mention_gating,
)

if TYPE_CHECKING:
    from chatgate.gating.state import AdmissionState
    from chatgate.session.router import SessionRouter


class SelfMessageGate(Gate):
    """Never process the bot's own messages."""

    name = "self-message"

    async def check(self, state: "AdmissionState") -> GateDecision:
        ctx, event = state.ctx, state.event
        if ctx.bot_user_id and event.user == ctx.bot_user_id:
            return GateDecision.dropped("own message")
        if ctx.bot_id and event.bot_id == ctx.bot_id:
            return GateDecision.dropped("own bot message")
        return CONTINUE


class ChannelKindGate(Gate):
    """Classifies the channel once and loads room config for rooms."""

    name = "channel-kind"

    async def check(self, state: "AdmissionState") -> GateDecision:
        event = state.event
        slack_type = event.channel_type
        if not slack_type or slack_type != "im":
            try:
                state.channel_info = await state.ctx.client.resolve_channel(event.channel_id)
            except Exception as e:
                if not slack_type:
                    return GateDecision.dropped(f"cannot classify channel: {e}")
                logger.warning(f"slack channel lookup failed for {event.channel_id}: {e}")
                state.channel_info = ChannelInfo()
            slack_type = slack_type or state.channel_info.type

        state.slack_type = normalize_slack_channel_type(slack_type, event.channel_id)
        if state.is_room:
            state.channel_config = resolve_channel_config(
                event.channel_id,
                state.channel_name,
                state.settings.channels,
                state.settings.default_require_mention,
            )
        return CONTINUE


class BotAllowanceGate(Gate):
    name = "bot-allowance"

    async def check(self, state: "AdmissionState") -> GateDecision:
        if not state.event.is_bot:
            return CONTINUE
        room_allow = state.channel_config.allow_bots if state.channel_config else None
        allow_bots = room_allow if room_allow is not None else state.settings.allow_bots
        if not allow_bots:
            return GateDecision.dropped(f"bot message {state.event.bot_id} (allowBots=false)")
        return CONTINUE


class SenderPresenceGate(Gate):
    name = "sender-presence"

    async def check(self, state: "AdmissionState") -> GateDecision:
        event = state.event
        if state.is_direct and not event.user:
            return GateDecision.dropped("dm message missing user id")
        if not event.sender_id:
            return GateDecision.dropped("missing sender id")
        state.sender_id = event.sender_id
        return CONTINUE


class ChannelAllowedGate(Gate):
    """Group policy, room allowlist and multi-party dm settings."""

    name = "channel-allowed"

    async def check(self, state: "AdmissionState") -> GateDecision:
        if self.is_channel_allowed(state):
            return CONTINUE
        return GateDecision.dropped("channel not allowed")

    @staticmethod
    def is_channel_allowed(state: "AdmissionState") -> bool:
        settings = state.settings
        if state.is_direct:
            return True
        if state.is_group_dm:
            if not settings.group_dm_enabled:
                return False
            if not settings.group_dm_channels:
                return True
            return allow_list_matches(
                settings.group_dm_channels,
                id=state.event.channel_id,
                name=state.channel_name,
            )

        if settings.group_policy == "disabled":
            return False
        cfg = state.channel_config
        allowlist_configured = bool(settings.channels)
        if settings.group_policy == "allowlist":
            return allowlist_configured and cfg is not None and cfg.matched and cfg.allowed
        # open: unlisted rooms pass, listed rooms must not be disabled
        return cfg is None or not cfg.matched or cfg.allowed


class DirectPolicyGate(Gate):
    """Loads the effective allowlist and applies the dm policy."""

    name = "direct-policy"

    def __init__(self, evaluator: AccessPolicyEvaluator) -> None:
        self.evaluator = evaluator

    async def check(self, state: "AdmissionState") -> GateDecision:
        state.allow_from = await resolve_effective_allow_from(
            state.settings, state.ctx.pairing_store
        )
        if not state.is_direct:
            return CONTINUE
        decision = await self.evaluator.evaluate_direct(state.event, state.allow_from)
        if decision.allowed:
            return CONTINUE
        return GateDecision.dropped(decision.reason or "dm not allowed")


class RouteStep(Gate):
    """Resolves the agent route; never drops."""

    name = "route"

    def __init__(self, router: "SessionRouter") -> None:
        self.router = router

    async def check(self, state: "AdmissionState") -> GateDecision:
        state.route = self.router.resolve_route(state.event, state.is_direct, state.is_room)
        state.mention_regexes = build_mention_regexes(state.ctx.config, state.route.agent_id)
        return CONTINUE


class RoomSenderGate(Gate):
    """Resolves the sender name and applies the per-room user allowlist."""

    name = "room-sender"

    async def check(self, state: "AdmissionState") -> GateDecision:
        event = state.event
        resolved_name: str | None = None
        if event.user:
            try:
                user = await state.ctx.client.resolve_user(event.user)
                resolved_name = user.name if user else None
            except Exception as e:
                logger.debug(f"slack user lookup failed for {event.user}: {e}")
        state.sender_name = (
            resolved_name
            or (event.username or "").strip()
            or event.user
            or event.bot_id
            or "unknown"
        )

        sender_id = state.sender_id or ""
        if state.is_room:
            users = state.channel_config.users if state.channel_config else ()
            state.channel_user_authorized = AccessPolicyEvaluator.room_user_authorized(
                users, sender_id, state.sender_name
            )
        else:
            state.channel_user_authorized = True

        state.command_authorized = AccessPolicyEvaluator.command_authorized(
            state.allow_from, sender_id, state.sender_name, state.channel_user_authorized
        )
        if state.is_room and not state.channel_user_authorized:
            return GateDecision.dropped(f"sender {sender_id} not in channel users")
        return CONTINUE


class MentionGateStep(Gate):
    """Applies the mention requirement for rooms, with implicit and command bypasses."""

    name = "mention"

    async def check(self, state: "AdmissionState") -> GateDecision:
        ctx, event = state.ctx, state.event
        text = event.text or ""

        if state.was_mentioned_override is not None:
            state.was_mentioned = state.was_mentioned_override
        else:
            state.was_mentioned = not state.is_direct and (
                mentions_user(text, ctx.bot_user_id)
                or matches_mention_patterns(text, state.mention_regexes)
            )
        state.implicit_mention = bool(
            not state.is_direct
            and ctx.bot_user_id
            and event.thread_ts
            and event.parent_user_id == ctx.bot_user_id
        )

        state.require_mention = bool(
            state.is_room and state.channel_config and state.channel_config.require_mention
        )
        state.should_bypass_mention = bool(
            should_handle_text_commands(state.settings)
            and state.is_room
            and state.require_mention
            and not state.was_mentioned
            and not has_any_mention(text)
            and state.command_authorized
            and has_control_command(text)
        )
        state.can_detect_mention = bool(ctx.bot_user_id) or len(state.mention_regexes) > 0

        result = resolve_mention_gating(
            require_mention=state.require_mention,
            can_detect_mention=state.can_detect_mention,
            was_mentioned=state.was_mentioned,
            implicit_mention=state.implicit_mention,
            should_bypass_mention=state.should_bypass_mention,
        )
        state.effective_was_mentioned = result.effective_was_mentioned
        if state.is_room and state.require_mention and result.should_skip:
            logger.info(f"skipping room message in {event.channel_id} (reason=no-mention)")
            return GateDecision.dropped("no-mention")
        return CONTINUE


class BodyGate(Gate):
    """Text, or a media placeholder; drop when both are empty."""

    name = "body"

    async def check(self, state: "AdmissionState") -> GateDecision:
        event = state.event
        if event.files:
            try:
                state.media = await state.ctx.client.resolve_media(
                    event.files, state.settings.media_max_bytes
                )
            except Exception as e:
                logger.warning(f"slack media resolve failed for {event.ts}: {e}")
                state.media = None
        placeholder = state.media.placeholder if state.media else ""
        state.raw_body = (event.text or "").strip() or placeholder or ""
        if not state.raw_body:
            return GateDecision.dropped("empty body")
        return CONTINUE
