import io
import json
import logging

import pytest

from gcplog.logging_config import build_registry
from gcplog.models.schemas import TRACE, Severity


def read_entries(stream: io.StringIO) -> list[dict]:
    """Parse every JSON line written to *stream* so far."""
    return [json.loads(line) for line in stream.getvalue().splitlines() if line]


@pytest.fixture
def stream():
    return io.StringIO()


@pytest.fixture
def registry(stream):
    return build_registry("test-project", Severity.INFO, stream=stream)


@pytest.fixture
def log(registry):
    """A dedicated logger wired to the test registry, open down to TRACE."""
    logger = logging.getLogger("tests.gcplog")
    handler = registry.handler()
    logger.addHandler(handler)
    logger.setLevel(TRACE)
    logger.propagate = False
    yield logger
    logger.removeHandler(handler)
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def root_handler(registry):
    """Attach the test registry to the root logger at INFO."""
    root = logging.getLogger()
    saved_level = root.level
    handler = registry.handler()
    root.addHandler(handler)
    root.setLevel(logging.INFO)
    yield handler
    root.removeHandler(handler)
    root.setLevel(saved_level)
