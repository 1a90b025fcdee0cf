"""Shared fixtures for admission tests."""

import pytest

from fakes import FakePlatform
from chatgate.channels.base import ChannelInfo, UserInfo


@pytest.fixture
def platform() -> FakePlatform:
    return FakePlatform(
        channels={"C1": ChannelInfo(name="general", type="channel")},
        users={"U1": UserInfo(name="alice")},
    )
