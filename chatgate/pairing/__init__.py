"""Pairing flow for unknown direct-message senders."""

from chatgate.pairing.messages import build_pairing_reply
from chatgate.pairing.store import (
    InMemoryPairingStore,
    PairingRequest,
    PairingStore,
    PairingUpsertResult,
)

__all__ = [
    "InMemoryPairingStore",
    "PairingRequest",
    "PairingStore",
    "PairingUpsertResult",
    "build_pairing_reply",
]
