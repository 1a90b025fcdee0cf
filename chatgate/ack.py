"""Acknowledgment reactions for admitted messages."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from loguru import logger

if TYPE_CHECKING:
    from chatgate.channels.base import PlatformClient
    from chatgate.utils.tasks import TaskSupervisor


def should_ack_reaction(
    scope: str,
    reaction: str,
    *,
    is_direct: bool,
    is_room: bool,
    is_roomish: bool,
    require_mention: bool,
    can_detect_mention: bool,
    effective_was_mentioned: bool,
) -> bool:
    """
    Scopes:

    * ``none`` – never.
    * ``all`` – every admitted message.
    * ``direct-only`` – direct messages.
    * ``group-all`` – rooms and multi-party dms.
    * ``group-mentions-only`` – rooms that require a mention, can detect one,
      and were mentioned.
    """
    if not reaction:
        return False
    if scope == "all":
        return True
    if scope == "direct-only":
        return is_direct
    if scope == "group-all":
        return is_roomish
    if scope == "group-mentions-only":
        return is_room and require_mention and can_detect_mention and effective_was_mentioned
    return False


class AckPolicy:
    """Schedules the acknowledgment reaction without blocking admission."""

    def __init__(
        self,
        client: "PlatformClient",
        supervisor: "TaskSupervisor",
        scope: str,
        reaction: str,
    ) -> None:
        self.client = client
        self.supervisor = supervisor
        self.scope = scope
        self.reaction = reaction

    def schedule(
        self,
        channel_id: str,
        message_ts: str | None,
        *,
        is_direct: bool,
        is_room: bool,
        is_roomish: bool,
        require_mention: bool,
        can_detect_mention: bool,
        effective_was_mentioned: bool,
    ) -> asyncio.Task | None:
        eligible = should_ack_reaction(
            self.scope,
            self.reaction,
            is_direct=is_direct,
            is_room=is_room,
            is_roomish=is_roomish,
            require_mention=require_mention,
            can_detect_mention=can_detect_mention,
            effective_was_mentioned=effective_was_mentioned,
        )
        if not eligible or not message_ts:
            return None
        logger.debug(f"Adding {self.reaction} reaction to message {message_ts}")
        return self.supervisor.spawn(
            self.client.react(channel_id, message_ts, self.reaction),
            label=f"slack react in channel {channel_id}",
        )
