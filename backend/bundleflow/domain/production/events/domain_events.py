"""
Domain Events

Events raised by bundle aggregates and published after a successful write.
Notification and analytics layers subscribe to them through the event bus.
"""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from ...shared.base import DomainEvent


class BundlesCreated(DomainEvent):
    """Raised once per create_bundles call."""

    lot_id: str
    color: str
    bundle_ids: list[UUID]
    total_pieces: int


class BundleStatusChanged(DomainEvent):
    """Raised when a bundle changes status."""

    bundle_id: UUID
    bundle_number: str
    old_status: str
    new_status: str
    reason: str | None = None


class OperationReady(DomainEvent):
    """Raised when all prerequisites of an operation completed."""

    bundle_id: UUID
    operation_id: UUID
    operation_name: str
    machine_type: str


class OperationAssigned(DomainEvent):
    """Raised when an operator wins an operation's assignment slot."""

    bundle_id: UUID
    operation_id: UUID
    assignment_id: UUID
    operator_id: str
    assigned_pieces: int
    compatibility_score: int


class OperationAssignmentReleased(DomainEvent):
    """Raised when an assignment is handed back before work started."""

    bundle_id: UUID
    operation_id: UUID
    operator_id: str
    reason: str | None = None


class OperationStarted(DomainEvent):
    """Raised when the operator starts sewing."""

    bundle_id: UUID
    operation_id: UUID
    operator_id: str
    started_at: datetime


class OperationCompleted(DomainEvent):
    """Raised when an operation completes; carries the earned amount."""

    bundle_id: UUID
    operation_id: UUID
    operator_id: str
    completed_pieces: int
    amount: Decimal
    quality_grade: str | None = None


class OperationQualityFailed(DomainEvent):
    """Raised when an in-progress operation fails quality."""

    bundle_id: UUID
    operation_id: UUID
    operator_id: str | None
    reason: str


class OperationRequeued(DomainEvent):
    """Raised when a failed operation is replaced by a fresh instance."""

    bundle_id: UUID
    failed_operation_id: UUID
    new_operation_id: UUID


class ComplaintRaised(DomainEvent):
    """Raised when an operator reports damaged or missing parts."""

    complaint_id: UUID
    bundle_id: UUID
    operation_id: UUID
    reported_by: str
    issue_type: str
    damaged_parts: list[str]
    frozen_operation_ids: list[UUID]


class ComplaintResolved(DomainEvent):
    """Raised when a complaint is resolved or rejected."""

    complaint_id: UUID
    bundle_id: UUID
    operation_id: UUID
    outcome: str
    released_operation_ids: list[UUID]
