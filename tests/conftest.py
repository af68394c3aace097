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


def pytest_sessionstart(session):
    """Pytest hook to run before collecting tests."""
    os.environ["PROTEAN_ENV"] = session.config.option.env


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their directory location."""
    for item in items:
        test_path = Path(item.fspath)

        if "/domain/" in str(test_path):
            item.add_marker(pytest.mark.domain)
        elif "/application/" in str(test_path):
            item.add_marker(pytest.mark.application)
        elif "/integration/" in str(test_path) or "/bdd/" in str(test_path):
            item.add_marker(pytest.mark.integration)
            if not any(m.name == "fast" for m in item.iter_markers()):
                item.add_marker(pytest.mark.slow)


@pytest.fixture(autouse=True)
def reset_adapters():
    """Drop every adapter singleton so no test sees another's fakes."""
    yield

    from fulfillment.carrier import reset_carrier
    from fulfillment.pickup import reset_pickup
    from inventory.catalog import reset_catalog
    from notifications.channel import reset_email_channel
    from ordering.config import reset_settings
    from payments.credit import reset_credit_service
    from payments.gateway import reset_gateway

    reset_catalog()
    reset_carrier()
    reset_pickup()
    reset_gateway()
    reset_credit_service()
    reset_email_channel()
    reset_settings()
