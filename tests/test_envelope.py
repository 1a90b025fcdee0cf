"""Tests for envelope formatting helpers."""

from chatgate.envelope import (
    build_channel_description,
    build_group_system_prompt,
    format_agent_envelope,
    format_timestamp,
    preview_text,
)

TS_MS = 1700000000000


def test_format_timestamp():
    assert format_timestamp(TS_MS) == "2023-11-14T22:13Z"
    assert format_timestamp(None) is None


def test_format_timestamp_out_of_range():
    assert format_timestamp(10**20) is None
    assert format_agent_envelope("Slack", "hi", from_="alice", timestamp_ms=10**20) == (
        "[Slack alice] hi"
    )


def test_envelope_full():
    assert format_agent_envelope("Slack", "hi", from_="alice", timestamp_ms=TS_MS) == (
        "[Slack alice 2023-11-14T22:13Z] hi"
    )


def test_envelope_minimal():
    assert format_agent_envelope("Slack", "hi") == "[Slack] hi"
    assert format_agent_envelope("", "hi", from_="  ") == "[Channel] hi"


def test_preview_collapses_whitespace():
    assert preview_text("  a\n\n b\tc  ") == "a b c"
    assert preview_text("x" * 500) == "x" * 160
    assert preview_text("abcdef", 3) == "abc"


def test_channel_description():
    assert build_channel_description(" Deploys ", "Deploys") == "Deploys"
    assert build_channel_description("Topic", "Purpose") == "Topic\nPurpose"
    assert build_channel_description(None, "  ") == ""


def test_group_system_prompt():
    assert build_group_system_prompt(None, None, None) is None
    assert build_group_system_prompt(None, None, " Be brief. ") == "Be brief."
    assert build_group_system_prompt("Ops", None, None) == "Channel description: Ops"
    assert build_group_system_prompt("Ops", "Pager", "Be brief.") == (
        "Channel description: Ops\nPager\n\nBe brief."
    )
