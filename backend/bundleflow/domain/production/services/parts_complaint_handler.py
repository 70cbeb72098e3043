"""
PartsComplaintHandler Domain Service

Operators report damaged or missing parts on an operation. The operation and
everything downstream of it freeze until a supervisor resolves or rejects the
complaint. An operation frozen by several complaints thaws only when the last
of them closes.
"""

from uuid import UUID

from ....core.observability import COMPLAINTS, get_logger
from ...shared.base import DomainService
from ...shared.exceptions import BusinessRuleError, IllegalTransitionError
from ..entities.bundle import ProductionBundle
from ..entities.complaint import PartsComplaint
from ..events.domain_events import ComplaintRaised, ComplaintResolved
from ..value_objects.enums import ComplaintIssueType, ComplaintOutcome, OperationStatus
from .lifecycle_state_machine import LifecycleStateMachine


class PartsComplaintHandler(DomainService):
    def __init__(self, state_machine: LifecycleStateMachine) -> None:
        self.state_machine = state_machine
        self.logger = get_logger(__name__)

    def report(
        self,
        bundle: ProductionBundle,
        operation_id: UUID,
        reported_by: str,
        damaged_parts: list[str],
        description: str = "",
        issue_type: ComplaintIssueType = ComplaintIssueType.DAMAGED,
    ) -> PartsComplaint:
        """
        Open a complaint on the bundle and freeze the operation and its
        transitive dependents.

        Dependents that already finished are left alone.

        Raises:
            EntityNotFoundError: If the operation is not part of the bundle
            IllegalTransitionError: If the operation itself already finished
        """
        operation = bundle.get_operation(operation_id)
        if operation.status.is_terminal:
            raise IllegalTransitionError(
                "BundleOperation",
                operation.id,
                operation.status.value,
                OperationStatus.FROZEN.value,
                "operation already finished",
            )

        complaint = PartsComplaint(
            bundle_id=bundle.id,
            operation_id=operation.id,
            reported_by=reported_by,
            issue_type=issue_type,
            damaged_parts=damaged_parts,
            description=description,
        )
        frozen = [
            target.id
            for target in [operation, *bundle.transitive_dependents(operation.id)]
            if self.state_machine.freeze(bundle, target.id, complaint.id)
        ]
        complaint.frozen_operation_ids = frozen
        bundle.complaints.append(complaint)

        bundle.add_domain_event(
            ComplaintRaised(
                aggregate_id=bundle.id,
                complaint_id=complaint.id,
                bundle_id=bundle.id,
                operation_id=operation.id,
                reported_by=reported_by,
                issue_type=issue_type.value,
                damaged_parts=complaint.damaged_parts,
                frozen_operation_ids=frozen,
            )
        )
        COMPLAINTS.labels(status=complaint.status.value).inc()
        self.logger.info(
            "Parts complaint reported",
            complaint_id=str(complaint.id),
            bundle_number=bundle.bundle_number,
            frozen=len(frozen),
        )
        return complaint

    def acknowledge(
        self, complaint: PartsComplaint, supervisor_id: str, notes: str | None = None
    ) -> None:
        complaint.acknowledge(supervisor_id, notes)
        COMPLAINTS.labels(status=complaint.status.value).inc()

    def start_replacement(self, complaint: PartsComplaint) -> None:
        complaint.start_replacement()
        COMPLAINTS.labels(status=complaint.status.value).inc()

    def resolve(
        self,
        bundle: ProductionBundle,
        complaint: PartsComplaint,
        outcome: ComplaintOutcome,
    ) -> list[UUID]:
        """
        Close the complaint and thaw what it froze.

        Returns:
            Ids of operations that left the frozen state
        """
        if complaint.bundle_id != bundle.id:
            raise BusinessRuleError(
                f"Complaint {complaint.id} belongs to bundle {complaint.bundle_id}",
                {"complaint_id": str(complaint.id), "bundle_id": str(bundle.id)},
            )
        complaint.resolve(outcome)
        return self._release(bundle, complaint)

    def reject(self, bundle: ProductionBundle, complaint: PartsComplaint) -> list[UUID]:
        return self.resolve(bundle, complaint, ComplaintOutcome.REJECTED)

    def _release(self, bundle: ProductionBundle, complaint: PartsComplaint) -> list[UUID]:
        released = [
            operation_id
            for operation_id in complaint.frozen_operation_ids
            if bundle.has_operation(operation_id)
            and self.state_machine.unfreeze(bundle, operation_id, complaint.id)
        ]
        bundle.add_domain_event(
            ComplaintResolved(
                aggregate_id=bundle.id,
                complaint_id=complaint.id,
                bundle_id=bundle.id,
                operation_id=complaint.operation_id,
                outcome=complaint.resolution.value if complaint.resolution else "",
                released_operation_ids=released,
            )
        )
        COMPLAINTS.labels(status=complaint.status.value).inc()
        self.logger.info(
            "Parts complaint closed",
            complaint_id=str(complaint.id),
            outcome=complaint.resolution.value if complaint.resolution else None,
            released=len(released),
        )
        return released
