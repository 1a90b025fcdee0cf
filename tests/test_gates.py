"""Tests for the gate chain and individual gates."""

import pytest

from fakes import BOT_USER_ID, dm_event, make_config, make_pipeline, room_event
from chatgate.access.policy import AccessPolicyEvaluator
from chatgate.gating.base import CONTINUE, Gate, GateChain, GateDecision
from chatgate.gating.gates import (
    ChannelAllowedGate,
    ChannelKindGate,
    DirectPolicyGate,
    SelfMessageGate,
)
from chatgate.gating.state import AdmissionState


class RecordingGate(Gate):
    def __init__(self, name, decision=CONTINUE, calls=None):
        self.name = name
        self.decision = decision
        self.calls = calls if calls is not None else []

    async def check(self, state):
        self.calls.append(self.name)
        return self.decision


class RaisingGate(Gate):
    name = "raising"

    async def check(self, state):
        raise RuntimeError("boom")


def make_state(event=None, config=None, **kwargs):
    _, ctx, _ = make_pipeline(config, **kwargs)
    event = event or room_event("hi")
    return AdmissionState(ctx=ctx, event=event, settings=ctx.settings)


@pytest.mark.asyncio
async def test_chain_stops_at_first_drop():
    calls = []
    chain = GateChain(
        [
            RecordingGate("a", calls=calls),
            RecordingGate("b", GateDecision.dropped("nope"), calls=calls),
            RecordingGate("c", calls=calls),
        ]
    )
    result = await chain.run(make_state())
    assert result.dropped
    assert result.gate == "b"
    assert result.decision.reason == "nope"
    assert calls == ["a", "b"]


@pytest.mark.asyncio
async def test_chain_passes():
    chain = GateChain()
    chain.add_gate(RecordingGate("a"))
    result = await chain.run(make_state())
    assert not result.dropped
    assert chain.names == ["a"]


@pytest.mark.asyncio
async def test_raising_gate_drops():
    calls = []
    chain = GateChain([RaisingGate(), RecordingGate("after", calls=calls)])
    result = await chain.run(make_state())
    assert result.dropped
    assert result.gate == "raising"
    assert result.decision.reason == "error: boom"
    assert calls == []


@pytest.mark.asyncio
async def test_self_message_gate():
    state = make_state(room_event("hi", user=BOT_USER_ID))
    assert (await SelfMessageGate().check(state)).drop
    state = make_state(room_event("hi"))
    assert not (await SelfMessageGate().check(state)).drop


@pytest.mark.asyncio
async def test_channel_kind_skips_lookup_for_dm():
    state = make_state(dm_event())
    assert not (await ChannelKindGate().check(state)).drop
    assert state.is_direct
    assert state.chat_type == "direct"
    assert state.channel_config is None
    assert state.ctx.client.channel_lookups == 0


@pytest.mark.asyncio
async def test_channel_kind_infers_from_id():
    state = make_state(room_event("hi", channel_id="D9", channel_type="unknown"))
    assert not (await ChannelKindGate().check(state)).drop
    assert state.is_direct


@pytest.mark.asyncio
async def test_channel_kind_loads_room_config():
    config = make_config(channels={"slack": {"channels": {"#general": {"require_mention": False}}}})
    state = make_state(room_event("hi"), config)
    await ChannelKindGate().check(state)
    assert state.is_room
    assert state.room_label == "#general"
    assert state.channel_config.matched
    assert state.channel_config.require_mention is False


@pytest.mark.asyncio
async def test_private_channel_is_room():
    state = make_state(room_event("hi", channel_id="G5", channel_type="group"))
    await ChannelKindGate().check(state)
    assert state.is_room and state.is_roomish
    assert state.chat_type == "room"


@pytest.mark.asyncio
async def test_group_dm_channel_allowlist():
    config = make_config(channels={"slack": {"dm": {"group_enabled": True, "group_channels": ["G1"]}}})
    allowed = make_state(room_event("hi", channel_id="G1", channel_type="mpim"), config)
    denied = make_state(room_event("hi", channel_id="G2", channel_type="mpim"), config)
    for state in (allowed, denied):
        await ChannelKindGate().check(state)
    assert ChannelAllowedGate.is_channel_allowed(allowed)
    assert not ChannelAllowedGate.is_channel_allowed(denied)


@pytest.mark.asyncio
async def test_direct_policy_drops_unpaired_sender():
    state = make_state(dm_event("hi"))
    ctx = state.ctx
    await ChannelKindGate().check(state)
    gate = DirectPolicyGate(
        AccessPolicyEvaluator(state.settings, ctx.client, ctx.pairing_store, ctx.supervisor)
    )
    decision = await gate.check(state)
    await ctx.supervisor.join()

    assert decision.drop
    assert decision.reason == "sender not paired"
    assert len(await ctx.pairing_store.list_requests("slack")) == 1
