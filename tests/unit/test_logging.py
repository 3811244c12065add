"""
Unit Tests for Logging Helpers
"""

import pytest
from loguru import logger as loguru_logger

from civicdesk.utils.logging import get_logger, redact


@pytest.mark.unit
class TestRedact:
    def test_keeps_prefix_only(self):
        assert redact("4/0AbCdEfGhIjK") == "4/0A..."

    def test_empty_values(self):
        assert redact(None) == "<empty>"
        assert redact("") == "<empty>"

    def test_custom_prefix_length(self):
        assert redact("abcdefgh", keep=2) == "ab..."


@pytest.mark.unit
def test_get_logger_binds_name():
    records = []
    handler_id = loguru_logger.add(lambda message: records.append(message.record), level="INFO")
    try:
        get_logger("civicdesk.tests").info("bound logger works")
    finally:
        loguru_logger.remove(handler_id)

    assert records[-1]["extra"]["name"] == "civicdesk.tests"
    assert records[-1]["message"] == "bound logger works"
