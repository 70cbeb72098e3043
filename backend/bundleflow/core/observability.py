"""
Observability Infrastructure

Structured logging with correlation tracking and Prometheus counters for the
production engine.
"""

import contextvars
import logging
import sys
import uuid
from typing import Any

import structlog
from prometheus_client import Counter

from .config import settings

# Context variables for correlation tracking
correlation_id_var: contextvars.ContextVar[str] = contextvars.ContextVar(
    "correlation_id", default=""
)
actor_id_var: contextvars.ContextVar[str] = contextvars.ContextVar("actor_id", default="")

# Prometheus metrics
ASSIGNMENT_REQUESTS = Counter(
    "bundleflow_assignment_requests_total",
    "Assignment requests by outcome",
    ["outcome"],
)

VERSION_CONFLICTS = Counter(
    "bundleflow_version_conflicts_total",
    "Optimistic concurrency conflicts on bundle writes",
    ["operation"],
)

OPERATION_TRANSITIONS = Counter(
    "bundleflow_operation_transitions_total",
    "Operation status transitions",
    ["to_status"],
)

COMPLAINTS = Counter(
    "bundleflow_parts_complaints_total",
    "Parts complaints by lifecycle step",
    ["status"],
)

EARNINGS_PIECES = Counter(
    "bundleflow_earned_pieces_total", "Pieces paid through completed operations"
)


class CorrelationIdProcessor:
    """Structlog processor to add correlation ID to all log entries."""

    def __call__(
        self, logger: Any, name: str, event_dict: dict[str, Any]
    ) -> dict[str, Any]:
        correlation_id = correlation_id_var.get("")
        actor_id = actor_id_var.get("")

        if correlation_id:
            event_dict["correlation_id"] = correlation_id
        if actor_id:
            event_dict["actor_id"] = actor_id

        return event_dict


def setup_structured_logging() -> None:
    """Configure structured logging with JSON or console output."""

    log_level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    processors = [
        structlog.contextvars.merge_contextvars,
        CorrelationIdProcessor(),
        structlog.processors.TimeStamper(fmt="ISO"),
        structlog.processors.add_log_level,
        structlog.stdlib.add_logger_name,
    ]

    if settings.LOG_FORMAT == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(
            structlog.dev.ConsoleRenderer(colors=settings.ENVIRONMENT == "local")
        )

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=log_level,
    )


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)


def set_correlation_id(correlation_id: str | None = None) -> str:
    """Set correlation ID for request tracking."""
    if correlation_id is None:
        correlation_id = str(uuid.uuid4())

    correlation_id_var.set(correlation_id)
    return correlation_id


def set_actor_id(actor_id: str) -> None:
    """Set the supervisor/operator id on whose behalf the engine is called."""
    actor_id_var.set(actor_id)


def get_correlation_id() -> str:
    """Get current correlation ID."""
    return correlation_id_var.get("")
