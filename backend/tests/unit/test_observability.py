"""Unit tests for structured logging and correlation IDs"""

import json
import logging

import pytest

from observability.correlation import correlation_scope, get_correlation_id
from observability.logging_config import CorrelationIDFilter, JSONFormatter, configure_logging


def make_record(message="Matched merchant", **extra):
    record = logging.LogRecord(
        name="matching.tiered_matcher",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg=message,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestCorrelationScope:
    """Test correlation ID propagation"""

    def test_scope_sets_and_resets(self):
        assert get_correlation_id() == "no-correlation-id"

        with correlation_scope() as correlation_id:
            assert get_correlation_id() == correlation_id

        assert get_correlation_id() == "no-correlation-id"

    def test_nested_scope_reuses_outer_id(self):
        with correlation_scope("batch-42") as outer:
            with correlation_scope() as inner:
                assert inner == outer == "batch-42"


class TestJSONFormatter:
    """Test JSON log output"""

    def test_includes_correlation_id_and_extras(self):
        record = make_record(merchant_id="abc", match_method="fuzzy", similarity=0.9)

        with correlation_scope("req-1"):
            CorrelationIDFilter().filter(record)
        payload = json.loads(JSONFormatter().format(record))

        assert payload["correlation_id"] == "req-1"
        assert payload["message"] == "Matched merchant"
        assert payload["merchant_id"] == "abc"
        assert payload["match_method"] == "fuzzy"
        assert payload["similarity"] == 0.9
        assert payload["level"] == "INFO"

    def test_omits_absent_extras(self):
        payload = json.loads(JSONFormatter().format(make_record()))

        assert "merchant_id" not in payload
        assert payload["correlation_id"] == "no-correlation-id"


class TestConfigureLogging:
    """Test root logger configuration"""

    @pytest.fixture
    def restore_root_logger(self):
        root = logging.getLogger()
        handlers, level = list(root.handlers), root.level
        yield root
        root.handlers[:] = handlers
        root.setLevel(level)

    def test_installs_json_handler(self, restore_root_logger):
        configure_logging("DEBUG", json_format=True)

        assert restore_root_logger.level == logging.DEBUG
        assert len(restore_root_logger.handlers) == 1
        handler = restore_root_logger.handlers[0]
        assert isinstance(handler.formatter, JSONFormatter)
        assert any(isinstance(f, CorrelationIDFilter) for f in handler.filters)
        assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING

    def test_plain_format(self, restore_root_logger):
        configure_logging("warning", json_format=False)

        handler = restore_root_logger.handlers[0]
        assert restore_root_logger.level == logging.WARNING
        assert not isinstance(handler.formatter, JSONFormatter)
