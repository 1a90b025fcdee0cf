"""Inbound event types and the system-event queue."""

from chatgate.bus.events import (
    ChannelKind,
    InboundMessageEvent,
    MediaRef,
    MessageContext,
    PreparedMessage,
)
from chatgate.bus.system_events import SystemEvent, SystemEventQueue

__all__ = [
    "ChannelKind",
    "InboundMessageEvent",
    "MediaRef",
    "MessageContext",
    "PreparedMessage",
    "SystemEvent",
    "SystemEventQueue",
]
