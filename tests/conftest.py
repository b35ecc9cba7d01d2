"""Pytest configuration for all tests."""

import pytest
import structlog

from hookman.core.config import get_settings


@pytest.fixture(autouse=True)
def _reset_configuration():
    """Give every test fresh settings and default structlog configuration.

    CLI tests configure logging against the runner's temporary streams, so
    the configuration must not leak into later tests.
    """
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
    structlog.reset_defaults()
