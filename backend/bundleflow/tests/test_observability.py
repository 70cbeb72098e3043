"""
Tests for logging setup, correlation tracking and conflict retries.
"""

import pytest
import structlog

from bundleflow.core.observability import (
    CorrelationIdProcessor,
    VERSION_CONFLICTS,
    get_correlation_id,
    get_logger,
    set_actor_id,
    set_correlation_id,
    setup_structured_logging,
)
from bundleflow.core.retry_mechanisms import RetryConfig, retry_on_conflict
from bundleflow.domain.shared.exceptions import ConcurrencyError, ValidationError


class TestCorrelationTracking:
    def test_generated_correlation_id(self):
        correlation_id = set_correlation_id()

        assert correlation_id
        assert get_correlation_id() == correlation_id

    def test_processor_adds_context(self):
        set_correlation_id("req-42")
        set_actor_id("SUP-1")

        event = CorrelationIdProcessor()(None, "info", {"event": "assigned"})

        assert event["correlation_id"] == "req-42"
        assert event["actor_id"] == "SUP-1"

    def test_structured_logging_setup(self):
        setup_structured_logging()

        assert structlog.is_configured()
        get_logger(__name__).info("logging configured", component="test")


class TestRetryOnConflict:
    def test_retries_until_success(self):
        calls = []

        def flaky():
            calls.append(1)
            if len(calls) < 3:
                raise ConcurrencyError("ProductionBundle", "b-1", 1, 2)
            return "ok"

        before = VERSION_CONFLICTS.labels(operation="test")._value.get()

        result = retry_on_conflict(
            flaky, operation="test", config=RetryConfig(max_attempts=3)
        )

        assert result == "ok"
        assert len(calls) == 3
        assert VERSION_CONFLICTS.labels(operation="test")._value.get() == before + 2

    def test_last_conflict_reraised(self):
        def always_conflicts():
            raise ConcurrencyError("ProductionBundle", "b-1", 1, 2)

        with pytest.raises(ConcurrencyError):
            retry_on_conflict(
                always_conflicts, operation="test", config=RetryConfig(max_attempts=2)
            )

    def test_other_errors_not_retried(self):
        calls = []

        def invalid():
            calls.append(1)
            raise ValidationError("pieces", -1, "must be positive")

        with pytest.raises(ValidationError):
            retry_on_conflict(invalid, operation="test")

        assert len(calls) == 1
