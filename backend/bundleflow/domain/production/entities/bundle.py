"""Production bundle aggregate and the operations it owns."""

from collections import deque
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import Field

from ...shared.base import AggregateRoot, Entity
from ...shared.exceptions import EntityNotFoundError
from ..value_objects.enums import (
    BundleStatus,
    OperationStatus,
    QualityGrade,
    SkillLevel,
)
from .assignment import WorkAssignment
from .complaint import PartsComplaint

WHOLE_GARMENT = "garment"


class BundleOperation(Entity):
    """
    One sewing step on one bundle.

    Dependencies only ever reference sibling operations of the same bundle.
    Status changes go through the LifecycleStateMachine; nothing else should
    write ``status`` directly.
    """

    bundle_id: UUID
    sequence: int = Field(ge=1)
    name: str
    machine_type: str
    required_skill: SkillLevel = SkillLevel.BEGINNER
    price_per_piece: Decimal = Field(ge=0)
    estimated_minutes: float = Field(default=0.0, ge=0)
    dependencies: set[UUID] = Field(default_factory=set)
    status: OperationStatus = OperationStatus.WAITING
    is_optional: bool = False

    # Assignment slot
    active_assignment: WorkAssignment | None = None
    assignment_history: list[WorkAssignment] = Field(default_factory=list)
    assigned_operator_id: str | None = None
    assigned_pieces: int = Field(default=0, ge=0)

    # Execution
    started_at: datetime | None = None
    completed_at: datetime | None = None
    completed_pieces: int = Field(default=0, ge=0)
    quality_grade: QualityGrade | None = None
    failure_reason: str | None = None

    # Complaint freezing
    frozen_by: set[UUID] = Field(default_factory=set)
    resume_status: OperationStatus | None = None

    # Re-queue lineage
    rework_of: UUID | None = None
    superseded_by: UUID | None = None

    version: int = Field(default=0, ge=0)

    @property
    def is_frozen(self) -> bool:
        return bool(self.frozen_by)

    @property
    def is_settled(self) -> bool:
        """Completed, skipped, or failed and replaced by a re-queued instance."""
        if self.status in {OperationStatus.COMPLETED, OperationStatus.SKIPPED}:
            return True
        return (
            self.status == OperationStatus.QUALITY_FAILED
            and self.superseded_by is not None
        )

    def bump_version(self) -> None:
        self.version += 1
        self.mark_updated()


class ProductionBundle(AggregateRoot):
    """
    A production unit: one color, one size, one part (or the whole garment).

    The bundle is the consistency and concurrency boundary. Every write to
    a bundle or to anything it owns is a compare-and-set on ``version``.
    """

    bundle_number: str
    lot_id: str
    color: str
    size: str
    part_ref: str = WHOLE_GARMENT
    quantity: int = Field(ge=1)
    sequence: int = Field(default=1, ge=1)
    template_id: str | None = None
    status: BundleStatus = BundleStatus.DRAFT
    resume_status: BundleStatus | None = None
    operations: list[BundleOperation] = Field(default_factory=list)
    complaints: list[PartsComplaint] = Field(default_factory=list)
    version: int = Field(default=0, ge=0)

    @property
    def operation_ids(self) -> list[UUID]:
        return [op.id for op in self.operations]

    @property
    def is_settled(self) -> bool:
        return bool(self.operations) and all(op.is_settled for op in self.operations)

    def get_operation(self, operation_id: UUID) -> BundleOperation:
        """
        Get an operation of this bundle.

        Raises:
            EntityNotFoundError: If the operation is not part of the bundle
        """
        for op in self.operations:
            if op.id == operation_id:
                return op
        raise EntityNotFoundError("BundleOperation", operation_id)

    def get_complaint(self, complaint_id: UUID) -> PartsComplaint:
        """
        Raises:
            EntityNotFoundError: If the complaint was not raised on this bundle
        """
        for complaint in self.complaints:
            if complaint.id == complaint_id:
                return complaint
        raise EntityNotFoundError("PartsComplaint", complaint_id)

    def has_operation(self, operation_id: UUID) -> bool:
        return any(op.id == operation_id for op in self.operations)

    def dependents_of(self, operation_id: UUID) -> list[BundleOperation]:
        """Operations that list ``operation_id`` as a direct dependency."""
        return [op for op in self.operations if operation_id in op.dependencies]

    def transitive_dependents(self, operation_id: UUID) -> list[BundleOperation]:
        """All operations reachable downstream of ``operation_id``, in BFS order."""
        seen: set[UUID] = {operation_id}
        ordered: list[BundleOperation] = []
        queue = deque([operation_id])
        while queue:
            current = queue.popleft()
            for dependent in self.dependents_of(current):
                if dependent.id not in seen:
                    seen.add(dependent.id)
                    ordered.append(dependent)
                    queue.append(dependent.id)
        return ordered

    def status_counts(self) -> dict[OperationStatus, int]:
        counts = {status: 0 for status in OperationStatus}
        for op in self.operations:
            counts[op.status] += 1
        return counts
