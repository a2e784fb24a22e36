import os
from pathlib import Path

import pytest


def pytest_addoption(parser):
    parser.addoption(
        "--env",
        action="store",
        default="test",
        help="Config environment to run tests on",
    )


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their directory location."""
    for item in items:
        test_path = str(Path(item.fspath))

        if "/domain/" in test_path:
            item.add_marker(pytest.mark.domain)
        elif "/application/" in test_path:
            item.add_marker(pytest.mark.application)
        elif "/integration/" in test_path:
            item.add_marker(pytest.mark.integration)
            if not any(m.name == "fast" for m in item.iter_markers()):
                item.add_marker(pytest.mark.slow)


@pytest.fixture(scope="session")
def _streetmarket_domain(request):
    """Initialize the streetmarket domain once per session."""
    os.environ["PROTEAN_ENV"] = request.config.option.env

    from streetmarket.domain import streetmarket

    streetmarket.init()
    return streetmarket


@pytest.fixture(autouse=True)
def run_around_tests(_streetmarket_domain):
    """Push domain context before each test, cleanup after."""
    ctx = _streetmarket_domain.domain_context()
    ctx.push()

    yield

    from protean import current_domain

    for _, provider in current_domain.providers.items():
        provider._data_reset()

    for _, broker in current_domain.brokers.items():
        broker._data_reset()

    current_domain.event_store.store._data_reset()
    ctx.pop()


@pytest.fixture()
def clock():
    from streetmarket.scheduling.clock import ManualClock

    return ManualClock()


@pytest.fixture()
def presenter():
    from streetmarket.notifications.recording_presenter import RecordingPresenter

    return RecordingPresenter()


@pytest.fixture()
def store():
    from streetmarket.persistence.store import MemoryStore

    return MemoryStore()


@pytest.fixture()
def marketplace(store, presenter, clock):
    """A started marketplace on a manual clock with default settings."""
    from streetmarket.config import MarketSettings
    from streetmarket.marketplace import Marketplace

    market = Marketplace(store=store, presenter=presenter, clock=clock, settings=MarketSettings())
    market.start()

    yield market

    market.shutdown()
