"""Tests for inbound events and the task supervisor."""

import asyncio

import pytest

from chatgate.bus.events import InboundMessageEvent, MessageContext, ts_to_ms
from chatgate.channels.base import normalize_slack_channel_type, to_channel_kind
from chatgate.utils.tasks import TaskSupervisor


def test_from_slack():
    event = InboundMessageEvent.from_slack(
        {
            "type": "message",
            "channel": "C1",
            "channel_type": "channel",
            "user": "U1",
            "text": "hi",
            "ts": "1700000000.000100",
            "thread_ts": "1699999999.000100",
            "files": [
                {"id": "F1", "mimetype": "image/png", "url_private": "https://a", "size": 10},
                "junk",
            ],
        }
    )
    assert event.channel_id == "C1"
    assert event.thread_ts == "1699999999.000100"
    assert len(event.files) == 1
    assert event.files[0].url_private == "https://a"
    assert event.timestamp_ms == 1700000000000


def test_sender_id():
    assert InboundMessageEvent(channel_id="C1", user="U1", bot_id="B1").sender_id == "U1"
    assert InboundMessageEvent(channel_id="C1", bot_id="B1").sender_id == "B1"
    assert InboundMessageEvent(channel_id="C1").sender_id is None


def test_ts_to_ms():
    assert ts_to_ms("1.5") == 1500
    assert ts_to_ms(None) is None
    assert ts_to_ms("not-a-ts") is None


def test_ts_to_ms_non_finite():
    assert ts_to_ms("inf") is None
    assert ts_to_ms("-inf") is None
    assert ts_to_ms("nan") is None


def test_channel_classification():
    assert normalize_slack_channel_type("MPIM", "C1") == "mpim"
    assert normalize_slack_channel_type(None, "D1") == "im"
    assert normalize_slack_channel_type(None, "G1") == "group"
    assert normalize_slack_channel_type(None, "C1") == "channel"
    assert [to_channel_kind(t) for t in ("im", "mpim", "channel", "group")] == [
        "direct",
        "group",
        "room",
        "room",
    ]


def test_payload_omits_unset_fields():
    ctx = MessageContext(
        body="b",
        raw_body="r",
        command_body="r",
        from_="slack:U1",
        to="user:U1",
        session_key="agent:main:main",
        account_id="default",
        chat_type="direct",
        sender_name="alice",
        sender_id="U1",
        command_authorized=False,
    )
    payload = ctx.to_payload()
    assert payload["Body"] == "b"
    assert payload["CommandAuthorized"] is False
    assert payload["OriginatingChannel"] == "slack"
    assert "WasMentioned" not in payload
    assert "MediaPath" not in payload


@pytest.mark.asyncio
async def test_supervisor_records_failures():
    supervisor = TaskSupervisor()

    async def ok():
        await asyncio.sleep(0)

    async def fail():
        raise ValueError("nope")

    supervisor.spawn(ok(), label="ok")
    supervisor.spawn(fail(), label="fail")
    await supervisor.join()

    assert supervisor.pending == 0
    assert [f.label for f in supervisor.failures] == ["fail"]
    assert isinstance(supervisor.failures[0].error, ValueError)
