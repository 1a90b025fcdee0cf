"""Sender access control."""

from chatgate.access.allowlist import (
    allow_list_matches,
    is_sender_allow_listed,
    normalize_allow_entry,
    resolve_effective_allow_from,
    resolve_user_allowed,
)
from chatgate.access.policy import AccessPolicyEvaluator, DirectDecision

__all__ = [
    "AccessPolicyEvaluator",
    "DirectDecision",
    "allow_list_matches",
    "is_sender_allow_listed",
    "normalize_allow_entry",
    "resolve_effective_allow_from",
    "resolve_user_allowed",
]
