"""Shared pytest fixtures."""

from __future__ import annotations

import logging

import pytest

from buck.settings import RefactorSettings


@pytest.fixture
def settings() -> RefactorSettings:
    """Default settings without the settle delay.

    Returns
    -------
    RefactorSettings
        Settings for fast trials.
    """
    return RefactorSettings(settle_delay_s=0.0)


@pytest.fixture(autouse=True)
def _capture_info_logs(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.INFO)
