"""Shared test fixtures for unit tests."""

import logging

import pytest

from mudblazor_index.core.config import clear_config_cache
from mudblazor_index.utils.rich_logging import PACKAGE_LOGGER
from tests.unit.mud_fixtures import build_source_tree


@pytest.fixture
def source_root(tmp_path):
    return build_source_tree(tmp_path / "mudblazor")


@pytest.fixture(autouse=True)
def _reset_state():
    clear_config_cache()
    yield
    clear_config_cache()
    # setup_logging() detaches the package logger; undo it between tests
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in package_logger.handlers[:]:
        handler.close()
        package_logger.removeHandler(handler)
    package_logger.propagate = True
    package_logger.setLevel(logging.NOTSET)
