from __future__ import annotations

import logging

import pytest

from roombot.core.config import Settings
from roombot_testkit import FakeClock, make_settings


@pytest.fixture(autouse=True)
def _debug_logging(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.DEBUG, logger="roombot")


@pytest.fixture()
def settings() -> Settings:
    return make_settings()


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()
