"""Pairing requests for unknown direct-message senders."""

from __future__ import annotations

import abc
import asyncio
import secrets
import time
from dataclasses import dataclass, field
from typing import Any

PAIRING_CODE_LENGTH = 8
# No 0/O or 1/I, codes are read aloud and retyped.
PAIRING_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"


@dataclass
class PairingRequest:
    channel: str
    id: str
    code: str
    created_at: float = field(default_factory=time.time)
    last_seen_at: float = field(default_factory=time.time)
    meta: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class PairingUpsertResult:
    code: str
    created: bool


class PairingStore(abc.ABC):
    """
    Storage contract for pairing requests.

    ``upsert_request`` must be atomic per ``(channel, sender_id)``: concurrent
    calls for the same sender return the same code and exactly one of them
    reports ``created=True``.
    """

    @abc.abstractmethod
    async def upsert_request(
        self, channel: str, sender_id: str, meta: dict[str, Any] | None = None
    ) -> PairingUpsertResult:
        ...

    @abc.abstractmethod
    async def approve(self, channel: str, code: str) -> str | None:
        """Approve a pending code. Returns the sender id, or None if unknown."""
        ...

    @abc.abstractmethod
    async def read_allow_from(self, channel: str) -> list[str]:
        """Sender ids approved through pairing."""
        ...

    @abc.abstractmethod
    async def list_requests(self, channel: str) -> list[PairingRequest]:
        ...


def generate_pairing_code(existing: set[str] | None = None) -> str:
    existing = existing or set()
    while True:
        code = "".join(secrets.choice(PAIRING_CODE_ALPHABET) for _ in range(PAIRING_CODE_LENGTH))
        if code not in existing:
            return code


class InMemoryPairingStore(PairingStore):
    """Process-local pairing store guarded by an ``asyncio.Lock``."""

    def __init__(self) -> None:
        self._requests: dict[tuple[str, str], PairingRequest] = {}
        self._allow_from: dict[str, list[str]] = {}
        self._lock = asyncio.Lock()

    async def upsert_request(
        self, channel: str, sender_id: str, meta: dict[str, Any] | None = None
    ) -> PairingUpsertResult:
        key = (channel, sender_id)
        async with self._lock:
            existing = self._requests.get(key)
            if existing is not None:
                existing.last_seen_at = time.time()
                if meta:
                    existing.meta.update({k: v for k, v in meta.items() if v is not None})
                return PairingUpsertResult(code=existing.code, created=False)

            codes = {r.code for r in self._requests.values()}
            request = PairingRequest(
                channel=channel,
                id=sender_id,
                code=generate_pairing_code(codes),
                meta={k: v for k, v in (meta or {}).items() if v is not None},
            )
            self._requests[key] = request
            return PairingUpsertResult(code=request.code, created=True)

    async def approve(self, channel: str, code: str) -> str | None:
        wanted = code.strip().upper()
        async with self._lock:
            for key, request in self._requests.items():
                if request.channel == channel and request.code == wanted:
                    del self._requests[key]
                    allowed = self._allow_from.setdefault(channel, [])
                    if request.id not in allowed:
                        allowed.append(request.id)
                    return request.id
        return None

    async def read_allow_from(self, channel: str) -> list[str]:
        async with self._lock:
            return list(self._allow_from.get(channel, []))

    async def list_requests(self, channel: str) -> list[PairingRequest]:
        async with self._lock:
            return [r for r in self._requests.values() if r.channel == channel]
