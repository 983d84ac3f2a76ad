"""Shared fixtures for the typemath test suite."""

from __future__ import annotations

import pytest


@pytest.fixture(autouse=True)
def _reset_event_sink():
    """Keep the module-level event sink from leaking between tests."""
    from typemath.logging.events import set_log_dir

    set_log_dir(None)
    yield
    set_log_dir(None)
