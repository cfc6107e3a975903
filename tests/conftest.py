"""Shared test fixtures."""

from __future__ import annotations

import pytest

from freeswitch_exporter.core.config import Settings
from tests.fakes import TWO_GATEWAYS_XML, FakeEventSocket


@pytest.fixture
def settings() -> Settings:
    return Settings(expose_process_metrics=False, esl_password="s3cret")


@pytest.fixture
def fake_socket() -> FakeEventSocket:
    return FakeEventSocket([TWO_GATEWAYS_XML])
