import logging

import pytest

from timetravel import metrics
from timetravel.doc import MemoryDocument

from .helpers import make_branching_doc, make_linear_doc


@pytest.fixture
def linear_doc() -> MemoryDocument:
    return make_linear_doc()


@pytest.fixture
def branching_doc() -> MemoryDocument:
    return make_branching_doc()


@pytest.fixture(autouse=True)
def reset_root_logging():
    """CLI tests install handlers bound to CliRunner streams; drop them."""
    yield
    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)


@pytest.fixture
def fresh_metrics():
    metrics.reset_metrics()
    yield
    metrics.reset_metrics()
