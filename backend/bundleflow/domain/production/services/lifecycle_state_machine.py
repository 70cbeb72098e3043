"""
LifecycleStateMachine Domain Service

Owns every status change of bundles and their operations. All methods mutate
the bundle passed in (a private copy read from the repository) and record
domain events on it; persisting the result is the caller's job.
"""

from uuid import UUID

from ....core.observability import OPERATION_TRANSITIONS, get_logger
from ...shared.base import DomainService, utcnow
from ...shared.exceptions import (
    AlreadyAssignedError,
    AlreadyCompletedError,
    CapacityExceededError,
    ComplaintBlockingError,
    IllegalTransitionError,
    ValidationError,
)
from ..entities.assignment import WorkAssignment
from ..entities.bundle import BundleOperation, ProductionBundle
from ..entities.earnings import EarningsRecord
from ..events.domain_events import (
    BundleStatusChanged,
    OperationAssigned,
    OperationAssignmentReleased,
    OperationCompleted,
    OperationQualityFailed,
    OperationReady,
    OperationRequeued,
    OperationStarted,
)
from ..value_objects.enums import (
    AssignmentStatus,
    BundleStatus,
    OperationStatus,
    QualityGrade,
)
from .earnings_calculator import EarningsCalculator

_SATISFIED = {OperationStatus.COMPLETED, OperationStatus.SKIPPED}


class LifecycleStateMachine(DomainService):
    """
    Bundle and operation lifecycle.

    Operation: waiting -> ready -> assigned -> in_progress -> completed, with
    in_progress -> quality_failed, assigned -> ready on release, optional
    operations skippable from waiting or ready, and any live status frozen
    while a parts complaint is open.
    """

    def __init__(self, earnings_calculator: EarningsCalculator | None = None) -> None:
        self.earnings_calculator = earnings_calculator or EarningsCalculator()
        self.logger = get_logger(__name__)

    # Bundle lifecycle

    def change_bundle_status(
        self,
        bundle: ProductionBundle,
        target: BundleStatus,
        reason: str | None = None,
    ) -> None:
        """
        Raises:
            IllegalTransitionError: If the bundle lifecycle forbids the change
        """
        if not bundle.status.can_transition_to(target):
            raise IllegalTransitionError(
                "ProductionBundle", bundle.id, bundle.status.value, target.value, reason
            )
        old_status = bundle.status
        bundle.status = target
        bundle.mark_updated()
        bundle.add_domain_event(
            BundleStatusChanged(
                aggregate_id=bundle.id,
                bundle_id=bundle.id,
                bundle_number=bundle.bundle_number,
                old_status=old_status.value,
                new_status=target.value,
                reason=reason,
            )
        )
        self.logger.debug(
            "Bundle status changed",
            bundle_number=bundle.bundle_number,
            old_status=old_status.value,
            new_status=target.value,
        )

    def release_to_floor(self, bundle: ProductionBundle) -> None:
        """Advance a freshly created bundle through cutting to ready."""
        if bundle.status == BundleStatus.DRAFT:
            self.change_bundle_status(bundle, BundleStatus.CUTTING)
        if bundle.status == BundleStatus.CUTTING:
            self.change_bundle_status(bundle, BundleStatus.READY)

    def hold(self, bundle: ProductionBundle, reason: str | None = None) -> None:
        previous = bundle.status
        self.change_bundle_status(bundle, BundleStatus.ON_HOLD, reason)
        bundle.resume_status = previous

    def resume(self, bundle: ProductionBundle) -> None:
        """
        Return a held bundle to the status it had before the hold.

        Raises:
            IllegalTransitionError: If the bundle is not on hold
        """
        if bundle.status != BundleStatus.ON_HOLD or bundle.resume_status is None:
            raise IllegalTransitionError(
                "ProductionBundle",
                bundle.id,
                bundle.status.value,
                "resume",
                "bundle is not on hold",
            )
        target = bundle.resume_status
        self.change_bundle_status(bundle, target, "resumed")
        bundle.resume_status = None
        self.refresh_bundle_status(bundle)

    def cancel(self, bundle: ProductionBundle, reason: str | None = None) -> None:
        self.change_bundle_status(bundle, BundleStatus.CANCELLED, reason)

    def refresh_bundle_status(self, bundle: ProductionBundle) -> None:
        """Complete an active bundle once every operation is settled."""
        if not bundle.is_settled:
            return
        if bundle.status == BundleStatus.READY:
            self.change_bundle_status(
                bundle, BundleStatus.IN_PROGRESS, "all operations settled"
            )
        if bundle.status == BundleStatus.IN_PROGRESS:
            self.change_bundle_status(
                bundle, BundleStatus.COMPLETED, "all operations settled"
            )

    def _note_work_started(self, bundle: ProductionBundle) -> None:
        if bundle.status == BundleStatus.READY:
            self.change_bundle_status(bundle, BundleStatus.IN_PROGRESS)
        elif (
            bundle.status == BundleStatus.ON_HOLD
            and bundle.resume_status == BundleStatus.READY
        ):
            bundle.resume_status = BundleStatus.IN_PROGRESS

    # Operation lifecycle

    def _transition(
        self, operation: BundleOperation, target: OperationStatus, reason: str | None = None
    ) -> None:
        if not operation.status.can_transition_to(target):
            raise IllegalTransitionError(
                "BundleOperation",
                operation.id,
                operation.status.value,
                target.value,
                reason,
            )
        operation.status = target
        operation.bump_version()
        OPERATION_TRANSITIONS.labels(to_status=target.value).inc()

    @staticmethod
    def _ensure_not_frozen(operation: BundleOperation) -> None:
        if operation.is_frozen:
            raise ComplaintBlockingError(
                operation.id, sorted(operation.frozen_by, key=str)
            )

    def ensure_assignable(
        self, bundle: ProductionBundle, operation: BundleOperation
    ) -> None:
        """
        Raises:
            ComplaintBlockingError: If a complaint freezes the operation
            AlreadyAssignedError: If another assignment holds the slot
            IllegalTransitionError: If the operation or bundle is not assignable
        """
        self._ensure_not_frozen(operation)

        if operation.active_assignment is not None or operation.status.holds_assignment:
            raise AlreadyAssignedError(operation.id, operation.assigned_operator_id)
        if not bundle.status.accepts_assignments:
            raise IllegalTransitionError(
                "BundleOperation",
                operation.id,
                operation.status.value,
                OperationStatus.ASSIGNED.value,
                f"bundle is {bundle.status.value}",
            )
        if operation.status != OperationStatus.READY:
            raise IllegalTransitionError(
                "BundleOperation",
                operation.id,
                operation.status.value,
                OperationStatus.ASSIGNED.value,
                "operation is not ready",
            )

    def assign(
        self,
        bundle: ProductionBundle,
        operation_id: UUID,
        operator_id: str,
        *,
        pieces: int | None = None,
        compatibility_score: int = 0,
    ) -> WorkAssignment:
        """
        Give the operation's assignment slot to ``operator_id``.

        Raises:
            ComplaintBlockingError: If a complaint freezes the operation
            AlreadyAssignedError: If another assignment holds the slot
            IllegalTransitionError: If the operation or bundle is not assignable
            ValidationError: If ``pieces`` is outside 1..bundle quantity
        """
        operation = bundle.get_operation(operation_id)
        self.ensure_assignable(bundle, operation)

        assigned_pieces = bundle.quantity if pieces is None else pieces
        if not 1 <= assigned_pieces <= bundle.quantity:
            raise ValidationError(
                "assigned_pieces",
                assigned_pieces,
                f"must be between 1 and the bundle quantity {bundle.quantity}",
            )

        assignment = WorkAssignment(
            operation_id=operation.id,
            bundle_id=bundle.id,
            operator_id=operator_id,
            assigned_pieces=assigned_pieces,
            version_token=operation.version,
            compatibility_score=compatibility_score,
        )
        self._transition(operation, OperationStatus.ASSIGNED)
        operation.active_assignment = assignment
        operation.assigned_operator_id = operator_id
        operation.assigned_pieces = assigned_pieces

        bundle.add_domain_event(
            OperationAssigned(
                aggregate_id=bundle.id,
                bundle_id=bundle.id,
                operation_id=operation.id,
                assignment_id=assignment.id,
                operator_id=operator_id,
                assigned_pieces=assigned_pieces,
                compatibility_score=compatibility_score,
            )
        )
        return assignment

    def _close_assignment(
        self, operation: BundleOperation, status: AssignmentStatus
    ) -> None:
        assignment = operation.active_assignment
        if assignment is None:
            return
        closed = assignment.model_copy()
        closed.close(status)
        operation.assignment_history = [*operation.assignment_history, closed]
        operation.active_assignment = None

    def release(
        self, bundle: ProductionBundle, operation_id: UUID, reason: str | None = None
    ) -> None:
        """Hand an assigned (not yet started) operation back to the ready pool."""
        operation = bundle.get_operation(operation_id)
        self._ensure_not_frozen(operation)
        if operation.status != OperationStatus.ASSIGNED:
            raise IllegalTransitionError(
                "BundleOperation",
                operation.id,
                operation.status.value,
                OperationStatus.READY.value,
                "only assigned operations can be released",
            )
        operator_id = operation.assigned_operator_id or ""
        self._transition(operation, OperationStatus.READY)
        self._close_assignment(operation, AssignmentStatus.RELEASED)
        operation.assigned_operator_id = None
        operation.assigned_pieces = 0
        bundle.add_domain_event(
            OperationAssignmentReleased(
                aggregate_id=bundle.id,
                bundle_id=bundle.id,
                operation_id=operation.id,
                operator_id=operator_id,
                reason=reason,
            )
        )

    def start(
        self, bundle: ProductionBundle, operation_id: UUID, operator_id: str
    ) -> bool:
        """
        Start sewing. Returns False when the same operator already started it.

        Raises:
            ComplaintBlockingError: If a complaint freezes the operation
            IllegalTransitionError: If the operation is not assigned to
                ``operator_id``
        """
        operation = bundle.get_operation(operation_id)
        self._ensure_not_frozen(operation)

        if operation.status == OperationStatus.IN_PROGRESS:
            if operation.assigned_operator_id == operator_id:
                return False
            raise IllegalTransitionError(
                "BundleOperation",
                operation.id,
                operation.status.value,
                OperationStatus.IN_PROGRESS.value,
                f"already started by operator {operation.assigned_operator_id}",
            )
        if operation.status != OperationStatus.ASSIGNED:
            raise IllegalTransitionError(
                "BundleOperation",
                operation.id,
                operation.status.value,
                OperationStatus.IN_PROGRESS.value,
            )
        if operation.assigned_operator_id != operator_id:
            raise IllegalTransitionError(
                "BundleOperation",
                operation.id,
                operation.status.value,
                OperationStatus.IN_PROGRESS.value,
                f"assigned to operator {operation.assigned_operator_id}",
            )

        self._transition(operation, OperationStatus.IN_PROGRESS)
        operation.started_at = utcnow()
        self._note_work_started(bundle)
        bundle.add_domain_event(
            OperationStarted(
                aggregate_id=bundle.id,
                bundle_id=bundle.id,
                operation_id=operation.id,
                operator_id=operator_id,
                started_at=operation.started_at,
            )
        )
        return True

    def complete(
        self,
        bundle: ProductionBundle,
        operation_id: UUID,
        completed_pieces: int,
        quality_grade: QualityGrade | None = None,
    ) -> EarningsRecord:
        """
        Complete an in-progress operation and price the work.

        Raises:
            ComplaintBlockingError: If a complaint freezes the operation
            AlreadyCompletedError: If the operation is already completed
            IllegalTransitionError: If the operation is not in progress or
                ``completed_pieces`` is not positive
            CapacityExceededError: If more pieces are reported than assigned
        """
        operation = bundle.get_operation(operation_id)
        self._ensure_not_frozen(operation)

        if operation.status == OperationStatus.COMPLETED:
            raise AlreadyCompletedError(operation.id)
        if operation.status != OperationStatus.IN_PROGRESS:
            raise IllegalTransitionError(
                "BundleOperation",
                operation.id,
                operation.status.value,
                OperationStatus.COMPLETED.value,
            )
        if completed_pieces <= 0:
            raise IllegalTransitionError(
                "BundleOperation",
                operation.id,
                operation.status.value,
                OperationStatus.COMPLETED.value,
                "completed pieces must be positive",
            )
        if completed_pieces > operation.assigned_pieces:
            raise CapacityExceededError(
                operation.id, completed_pieces, operation.assigned_pieces
            )

        self._transition(operation, OperationStatus.COMPLETED)
        operation.completed_pieces = completed_pieces
        operation.quality_grade = quality_grade
        operation.completed_at = utcnow()
        self._close_assignment(operation, AssignmentStatus.COMPLETED)

        record = self.earnings_calculator.calculate(operation)
        bundle.add_domain_event(
            OperationCompleted(
                aggregate_id=bundle.id,
                bundle_id=bundle.id,
                operation_id=operation.id,
                operator_id=record.operator_id,
                completed_pieces=completed_pieces,
                amount=record.amount,
                quality_grade=quality_grade.value if quality_grade else None,
            )
        )

        self.cascade_ready(bundle, operation.id)
        self.refresh_bundle_status(bundle)
        return record

    def fail(self, bundle: ProductionBundle, operation_id: UUID, reason: str) -> None:
        """Mark an in-progress operation as failed quality inspection."""
        operation = bundle.get_operation(operation_id)
        self._ensure_not_frozen(operation)
        self._transition(operation, OperationStatus.QUALITY_FAILED, reason)
        operation.failure_reason = reason
        self._close_assignment(operation, AssignmentStatus.FAILED)
        bundle.add_domain_event(
            OperationQualityFailed(
                aggregate_id=bundle.id,
                bundle_id=bundle.id,
                operation_id=operation.id,
                operator_id=operation.assigned_operator_id,
                reason=reason,
            )
        )

    def requeue(self, bundle: ProductionBundle, operation_id: UUID) -> BundleOperation:
        """
        Replace a quality-failed operation with a fresh instance.

        Dependents of the failed operation are retargeted to the new one.

        Raises:
            IllegalTransitionError: If the operation has not failed or was
                already re-queued
        """
        failed = bundle.get_operation(operation_id)
        if failed.status != OperationStatus.QUALITY_FAILED or failed.superseded_by:
            raise IllegalTransitionError(
                "BundleOperation",
                failed.id,
                failed.status.value,
                OperationStatus.WAITING.value,
                "only un-requeued quality failures can be re-queued",
            )

        rework = BundleOperation(
            bundle_id=bundle.id,
            sequence=failed.sequence,
            name=failed.name,
            machine_type=failed.machine_type,
            required_skill=failed.required_skill,
            price_per_piece=failed.price_per_piece,
            estimated_minutes=failed.estimated_minutes,
            dependencies=set(failed.dependencies),
            is_optional=failed.is_optional,
            rework_of=failed.id,
        )
        for dependent in bundle.dependents_of(failed.id):
            dependent.dependencies = (dependent.dependencies - {failed.id}) | {rework.id}
            dependent.bump_version()
        failed.superseded_by = rework.id
        failed.bump_version()
        bundle.operations = [*bundle.operations, rework]

        bundle.add_domain_event(
            OperationRequeued(
                aggregate_id=bundle.id,
                bundle_id=bundle.id,
                failed_operation_id=failed.id,
                new_operation_id=rework.id,
            )
        )
        self.promote_if_ready(bundle, rework)
        return rework

    def skip(self, bundle: ProductionBundle, operation_id: UUID) -> None:
        """
        Raises:
            IllegalTransitionError: If the operation is not optional
        """
        operation = bundle.get_operation(operation_id)
        self._ensure_not_frozen(operation)
        if not operation.is_optional:
            raise IllegalTransitionError(
                "BundleOperation",
                operation.id,
                operation.status.value,
                OperationStatus.SKIPPED.value,
                "operation is not optional",
            )
        self._transition(operation, OperationStatus.SKIPPED)
        self.cascade_ready(bundle, operation.id)
        self.refresh_bundle_status(bundle)

    # Readiness

    @staticmethod
    def on_dependency_cycle(bundle: ProductionBundle, operation: BundleOperation) -> bool:
        """Whether ``operation`` can reach itself through its dependencies."""
        by_id = {op.id: op for op in bundle.operations}
        stack = list(operation.dependencies)
        seen: set[UUID] = set()
        while stack:
            current = stack.pop()
            if current == operation.id:
                return True
            if current in seen or current not in by_id:
                continue
            seen.add(current)
            stack.extend(by_id[current].dependencies)
        return False

    def dependencies_satisfied(
        self, bundle: ProductionBundle, operation: BundleOperation
    ) -> bool:
        for dependency_id in operation.dependencies:
            if not bundle.has_operation(dependency_id):
                return False
            if bundle.get_operation(dependency_id).status not in _SATISFIED:
                return False
        return True

    def promote_if_ready(
        self, bundle: ProductionBundle, operation: BundleOperation
    ) -> bool:
        """Move a waiting operation to ready once every dependency is satisfied."""
        if operation.status != OperationStatus.WAITING or operation.is_frozen:
            return False
        if not self.dependencies_satisfied(bundle, operation):
            return False
        if self.on_dependency_cycle(bundle, operation):
            self.logger.error(
                "Refusing to ready operation on a dependency cycle",
                bundle_number=bundle.bundle_number,
                operation_id=str(operation.id),
            )
            return False

        self._transition(operation, OperationStatus.READY)
        bundle.add_domain_event(
            OperationReady(
                aggregate_id=bundle.id,
                bundle_id=bundle.id,
                operation_id=operation.id,
                operation_name=operation.name,
                machine_type=operation.machine_type,
            )
        )
        return True

    def cascade_ready(self, bundle: ProductionBundle, operation_id: UUID) -> list[UUID]:
        """Promote direct dependents of a settled operation. Returns promoted ids."""
        return [
            dependent.id
            for dependent in bundle.dependents_of(operation_id)
            if self.promote_if_ready(bundle, dependent)
        ]

    # Complaint freezing

    def freeze(
        self, bundle: ProductionBundle, operation_id: UUID, complaint_id: UUID
    ) -> bool:
        """
        Freeze an operation on behalf of a complaint.

        Returns False for operations that already finished.
        """
        operation = bundle.get_operation(operation_id)
        if operation.status.is_terminal:
            return False
        if operation.status != OperationStatus.FROZEN:
            resume_status = operation.status
            self._transition(operation, OperationStatus.FROZEN)
            operation.resume_status = resume_status
        else:
            operation.bump_version()
        operation.frozen_by = operation.frozen_by | {complaint_id}
        return True

    def unfreeze(
        self, bundle: ProductionBundle, operation_id: UUID, complaint_id: UUID
    ) -> bool:
        """
        Drop one complaint's hold on an operation.

        Returns True when the operation actually left the frozen state, which
        only happens once no other complaint still freezes it.
        """
        operation = bundle.get_operation(operation_id)
        if complaint_id not in operation.frozen_by:
            return False
        operation.frozen_by = operation.frozen_by - {complaint_id}
        if operation.frozen_by or operation.status != OperationStatus.FROZEN:
            operation.bump_version()
            return False

        target = operation.resume_status or OperationStatus.WAITING
        operation.resume_status = None
        self._transition(operation, target, "complaint resolved")
        if target == OperationStatus.WAITING:
            self.promote_if_ready(bundle, operation)
        return True
