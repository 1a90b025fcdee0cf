"""Base classes for ordered admission gates.

Architecture
------------
GateChain
  └── Gate (ordered)
        ├── SelfMessageGate      – drop the bot's own messages
        ├── ChannelKindGate      – classify direct / room / group (once)
        ├── BotAllowanceGate     – bot-authored messages vs allowBots
        ├── SenderPresenceGate   – a sender id is required
        ├── ChannelAllowedGate   – group policy / channel allowlist
        ├── DirectPolicyGate     – dm policy, pairing
        ├── RouteStep            – agent route and session key
        ├── RoomSenderGate       – per-room user allowlist
        ├── MentionGateStep      – mention requirement and bypasses
        └── BodyGate             – text or media placeholder

Every gate returns either :data:`CONTINUE` or ``GateDecision.dropped(reason)``.
The chain stops at the first drop; later gates never run.
"""

from __future__ import annotations

import abc
from dataclasses import dataclass
from typing import TYPE_CHECKING

from loguru import logger

if TYPE_CHECKING:
    from chatgate.gating.state import AdmissionState


@dataclass(frozen=True)
class GateDecision:
    drop: bool = False
    reason: str | None = None

    @classmethod
    def dropped(cls, reason: str) -> "GateDecision":
        return cls(drop=True, reason=reason)


CONTINUE = GateDecision()


@dataclass(frozen=True)
class ChainResult:
    decision: GateDecision
    gate: str | None = None  # name of the gate that dropped

    @property
    def dropped(self) -> bool:
        return self.decision.drop


class Gate(abc.ABC):
    """A single named admission check.

    Gates may record derived values on the state (sender name, route, ...)
    for the gates that follow.
    """

    name: str = "gate"

    @abc.abstractmethod
    async def check(self, state: "AdmissionState") -> GateDecision:
        """Return :data:`CONTINUE` or a drop decision."""
        ...


class GateChain:
    """Runs gates in order and stops at the first drop."""

    def __init__(self, gates: list[Gate] | None = None) -> None:
        self._gates: list[Gate] = list(gates or [])

    def add_gate(self, gate: Gate) -> None:
        """Append a gate to the chain."""
        self._gates.append(gate)

    @property
    def names(self) -> list[str]:
        return [g.name for g in self._gates]

    async def run(self, state: "AdmissionState") -> ChainResult:
        for gate in self._gates:
            try:
                decision = await gate.check(state)
            except Exception as e:
                # a failing gate drops the message
                logger.error(f"{gate.name} gate failed for channel {state.event.channel_id}: {e}")
                return ChainResult(GateDecision.dropped(f"error: {e}"), gate.name)
            if decision.drop:
                logger.debug(
                    f"slack: drop message {state.event.ts or 'unknown'} "
                    f"at {gate.name} ({decision.reason})"
                )
                return ChainResult(decision, gate.name)
        return ChainResult(CONTINUE)
