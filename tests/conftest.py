"""
Pytest configuration for surreal-testsuite tests.

Loads the ``model_suite`` plugin under test, and ``pytester`` for running
inline test sessions against it.
"""

import logging

import pytest

pytest_plugins = ["pytester", "surreal_testsuite.testing.plugin"]


@pytest.fixture(autouse=True)
def debug_logging(caplog: pytest.LogCaptureFixture) -> None:
    """Capture the testsuite's debug logs so failures show mock activity."""
    caplog.set_level(logging.DEBUG, logger="surreal_testsuite")
