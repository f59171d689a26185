"""Pytest configuration for tests.

Tests import from the installed crosswire package; helpers shared between
test modules live in fakes.py next to them.
"""

import logging

import pytest


def pytest_addoption(parser):
    """Add gated perf test option."""
    parser.addoption(
        "--run-perf",
        action="store_true",
        default=False,
        help="Run performance sentinel benchmarks (gated)."
    )


def pytest_collection_modifyitems(config, items):
    """Skip perf-marked tests unless --run-perf is set."""
    if config.getoption("--run-perf"):
        return
    skip_perf = pytest.mark.skip(reason="perf tests gated; pass --run-perf")
    for item in items:
        if "perf" in item.keywords:
            item.add_marker(skip_perf)


@pytest.fixture
def debug_logs(caplog):
    """Capture crosswire debug logs."""
    caplog.set_level(logging.DEBUG, logger="crosswire")
    return caplog
