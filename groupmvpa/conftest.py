# Author: Christian Brodbeck <christianbrodbeck@nyu.edu>
"""Pytest configuration

Skipping slow tests: https://docs.pytest.org/en/latest/example/simple.html#control-skipping-of-tests-according-to-command-line-option
"""
import pytest


def pytest_addoption(parser):
    parser.addoption("--runslow", action="store_true", default=False, help="run slow tests")


def pytest_configure(config):
    config.addinivalue_line("markers", "slow: mark test as slow to run")


def pytest_collection_modifyitems(config, items):
    if not config.getoption("--runslow"):
        skip_slow = pytest.mark.skip(reason="slow test (set --runslow to run)")
        for item in items:
            if "slow" in item.keywords:
                item.add_marker(skip_slow)
