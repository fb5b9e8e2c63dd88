import io
import json
import logging

import pytest

from zg_inference.logging_config import NOISY_LOGGERS, setup_logging


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def test_json_lines_for_stdlib_loggers(restore_root_logger):
    stream = io.StringIO()
    setup_logging("INFO", stream=stream)

    logging.getLogger("zg_inference.wallet").warning("Could not fetch wallet balance")

    record = json.loads(stream.getvalue().strip().splitlines()[-1])
    assert record["event"] == "Could not fetch wallet balance"
    assert record["level"] == "warning"
    assert record["logger"] == "zg_inference.wallet"


def test_noisy_loggers_are_quieted(restore_root_logger):
    setup_logging("DEBUG", json_logs=False, stream=io.StringIO())

    for name in NOISY_LOGGERS:
        assert logging.getLogger(name).level == logging.WARNING
