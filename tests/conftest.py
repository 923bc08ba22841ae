import pytest
from _pytest.config import Config
from _pytest.nodes import Item


def pytest_configure(config: Config) -> None:
    """Registers the markers added by path.

    Args:
        config: The pytest configuration.
    """
    config.addinivalue_line("markers", "unit: fast tests without external services")
    config.addinivalue_line("markers", "sqlite: tests running against a temporary SQLite database")


def pytest_collection_modifyitems(items: list[Item]) -> None:
    """Dynamically adds markers to tests based on their file path and fixtures.

    Args:
        items: A list of test items collected by pytest.
    """
    for item in items:
        if "units" in item.path.parts:
            item.add_marker(pytest.mark.unit)
        if "engine" in getattr(item, "fixturenames", ()):
            item.add_marker(pytest.mark.sqlite)
