"""Admission gates and the mention gate."""

from chatgate.gating.base import CONTINUE, ChainResult, Gate, GateChain, GateDecision
from chatgate.gating.commands import has_control_command
from chatgate.gating.mention import MentionGateResult, resolve_mention_gating

__all__ = [
    "CONTINUE",
    "ChainResult",
    "Gate",
    "GateChain",
    "GateDecision",
    "MentionGateResult",
    "has_control_command",
    "resolve_mention_gating",
]
