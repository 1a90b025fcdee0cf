"""Direct-message access policy and room sender authorization."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

from loguru import logger

from chatgate.access.allowlist import (
    allow_list_matches,
    is_sender_allow_listed,
    resolve_user_allowed,
)
from chatgate.pairing.messages import build_pairing_reply

if TYPE_CHECKING:
    from chatgate.bus.events import InboundMessageEvent
    from chatgate.channels.base import PlatformClient
    from chatgate.config.resolver import SlackAccountSettings
    from chatgate.pairing.store import PairingStore
    from chatgate.utils.tasks import TaskSupervisor

DirectOutcome = Literal["allow", "drop", "pairing"]


@dataclass(frozen=True)
class DirectDecision:
    outcome: DirectOutcome
    reason: str | None = None
    pairing_code: str | None = None

    @property
    def allowed(self) -> bool:
        return self.outcome == "allow"


class AccessPolicyEvaluator:
    """
    Applies the account's dm policy and the per-room user allowlists.

    Policies, in order:

    * ``disabled`` (or dms turned off) – always drop.
    * ``open`` – every sender passes.
    * sender in the allowlist – passes.
    * ``pairing`` – issue a pairing code once per sender, reply once, drop.
    * anything else (``allowlist``) – drop without a reply.
    """

    def __init__(
        self,
        settings: "SlackAccountSettings",
        client: "PlatformClient",
        pairing_store: "PairingStore | None",
        supervisor: "TaskSupervisor",
        channel: str = "slack",
    ) -> None:
        self.settings = settings
        self.client = client
        self.pairing_store = pairing_store
        self.supervisor = supervisor
        self.channel = channel

    async def evaluate_direct(
        self, event: "InboundMessageEvent", allow_from: list[str]
    ) -> DirectDecision:
        user_id = event.user
        if not user_id:
            return DirectDecision("drop", "missing user id")
        if not self.settings.dm_enabled or self.settings.dm_policy == "disabled":
            return DirectDecision("drop", "dms disabled")
        if self.settings.dm_policy == "open":
            return DirectDecision("allow")
        if allow_list_matches(allow_from, id=user_id):
            return DirectDecision("allow")

        if self.settings.dm_policy == "pairing":
            code = await self._request_pairing(event, user_id)
            return DirectDecision("pairing", "sender not paired", pairing_code=code)

        logger.debug(
            f"Blocked unauthorized slack sender {user_id} (dmPolicy={self.settings.dm_policy})"
        )
        return DirectDecision("drop", f"not allowlisted (dmPolicy={self.settings.dm_policy})")

    async def _request_pairing(self, event: "InboundMessageEvent", user_id: str) -> str | None:
        if self.pairing_store is None:
            logger.warning("dmPolicy=pairing but no pairing store is configured")
            return None

        sender_name: str | None = None
        try:
            user = await self.client.resolve_user(user_id)
            sender_name = user.name if user else None
        except Exception as e:
            logger.debug(f"slack user lookup failed for {user_id}: {e}")

        result = await self.pairing_store.upsert_request(
            self.channel, user_id, meta={"name": sender_name}
        )
        if not result.created:
            return result.code

        logger.info(f"slack pairing request sender={user_id} name={sender_name or 'unknown'}")
        reply = build_pairing_reply(
            channel=self.channel,
            id_line=f"Your Slack user id: {user_id}",
            code=result.code,
        )
        self.supervisor.spawn(
            self.client.send_message(event.channel_id, reply),
            label=f"slack pairing reply for {user_id}",
        )
        return result.code

    @staticmethod
    def room_user_authorized(
        users: tuple[str, ...] | list[str] | None,
        sender_id: str,
        sender_name: str | None,
    ) -> bool:
        return resolve_user_allowed(users, sender_id, sender_name)

    @staticmethod
    def command_authorized(
        allow_from: list[str],
        sender_id: str,
        sender_name: str | None,
        channel_user_authorized: bool,
    ) -> bool:
        """Whether the sender may run control commands, independent of forwarding."""
        return (
            is_sender_allow_listed(allow_from, sender_id, sender_name)
            and channel_user_authorized
        )
