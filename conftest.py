"""Configures pytest further: switches for the slow and extreme key-size tests."""
import pytest


def pytest_addoption(parser):
    parser.addoption("--skip-slow", action="store_true", default=False, help="skip slower key generation tests")
    parser.addoption("--run-extreme", action="store_true", default=False, help="run very large key size tests")


def pytest_collection_modifyitems(config, items):
    markers = {}
    if config.getoption("--skip-slow"):
        markers["slow"] = pytest.mark.skip(reason="Slow test: needs no --skip-slow option")
    if not config.getoption("--run-extreme"):
        markers["extreme"] = pytest.mark.skip(reason="Extreme test: needs --run-extreme option")
    for item in items:
        for keyword, marker in markers.items():
            if keyword in item.keywords:
                item.add_marker(marker)
