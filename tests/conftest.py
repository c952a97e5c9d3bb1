"""Shared pytest configuration."""

import pytest

from grantpilot_scraper.__main__ import setup_logging


@pytest.fixture(autouse=True, scope="session")
def configure_logging():
    """Send structlog output to stderr so CLI stdout stays parseable."""
    setup_logging("WARNING")
