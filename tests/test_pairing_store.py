"""Tests for the in-memory pairing store."""

import asyncio

import pytest

from chatgate.pairing.messages import build_pairing_reply
from chatgate.pairing.store import (
    PAIRING_CODE_ALPHABET,
    PAIRING_CODE_LENGTH,
    InMemoryPairingStore,
    generate_pairing_code,
)


def test_code_shape():
    code = generate_pairing_code()
    assert len(code) == PAIRING_CODE_LENGTH
    assert set(code) <= set(PAIRING_CODE_ALPHABET)


@pytest.mark.asyncio
async def test_concurrent_upserts_create_once():
    store = InMemoryPairingStore()
    results = await asyncio.gather(*(store.upsert_request("slack", "U1") for _ in range(10)))

    assert sum(r.created for r in results) == 1
    assert len({r.code for r in results}) == 1
    assert len(await store.list_requests("slack")) == 1


@pytest.mark.asyncio
async def test_senders_get_distinct_codes():
    store = InMemoryPairingStore()
    a = await store.upsert_request("slack", "U1")
    b = await store.upsert_request("slack", "U2")
    assert a.created and b.created
    assert a.code != b.code


@pytest.mark.asyncio
async def test_meta_is_merged():
    store = InMemoryPairingStore()
    await store.upsert_request("slack", "U1", meta={"name": None})
    await store.upsert_request("slack", "U1", meta={"name": "alice"})
    [request] = await store.list_requests("slack")
    assert request.meta == {"name": "alice"}


@pytest.mark.asyncio
async def test_approve_moves_sender_to_allow_from():
    store = InMemoryPairingStore()
    result = await store.upsert_request("slack", "U1")

    assert await store.approve("slack", result.code.lower()) == "U1"
    assert await store.read_allow_from("slack") == ["U1"]
    assert await store.list_requests("slack") == []
    assert await store.read_allow_from("discord") == []


@pytest.mark.asyncio
async def test_approve_unknown_code():
    store = InMemoryPairingStore()
    await store.upsert_request("slack", "U1")
    assert await store.approve("slack", "NOPE2345") is None
    assert await store.read_allow_from("slack") == []


def test_pairing_reply():
    reply = build_pairing_reply("slack", "Your Slack user id: U1", "ABCD2345")
    lines = reply.splitlines()
    assert lines[0] == "chatgate: access not configured."
    assert "Your Slack user id: U1" in lines
    assert "Pairing code: ABCD2345" in lines
    assert lines[-1] == "chatgate pairing approve slack <code>"
