from __future__ import annotations

import logging

import pytest

from gltfgraph.reporting import SilentReporter, set_reporter, set_verbosity


@pytest.fixture(autouse=True)
def _reset_reporting():
    """Each test starts silent; CLI tests install their own reporter."""
    set_reporter(SilentReporter())
    set_verbosity(0)
    yield
    set_reporter(SilentReporter())
    set_verbosity(0)
    logger = logging.getLogger("gltfgraph")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
