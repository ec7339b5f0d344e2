"""Shared fixtures for the NetPulse test suite."""

from __future__ import annotations

import pytest

from netpulse.models.settings import MonitorSettings
from netpulse.models.target import Target
from netpulse.services.target_registry import TargetRegistry

# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def fresh_target() -> Target:
    return Target(id="t1", ip="10.0.0.1", label="10.0.0.1")


@pytest.fixture
def monitor_settings() -> MonitorSettings:
    return MonitorSettings(interval=2.0, warning_threshold=150, timeframe=120)


@pytest.fixture
def registry() -> TargetRegistry:
    return TargetRegistry()
