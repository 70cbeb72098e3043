"""
Unit tests for parts complaints and the freezing they cause.
"""

import pytest

from bundleflow.domain.production.events import ComplaintRaised, ComplaintResolved
from bundleflow.domain.production.services import PartsComplaintHandler
from bundleflow.domain.production.value_objects import (
    ComplaintIssueType,
    ComplaintOutcome,
    ComplaintStatus,
    OperationStatus,
)
from bundleflow.domain.shared.exceptions import (
    BusinessRuleError,
    ComplaintBlockingError,
    IllegalTransitionError,
)

from .fixtures import BundleFactory


@pytest.fixture
def handler(state_machine):
    return PartsComplaintHandler(state_machine)


def op(bundle, name):
    return BundleFactory.operation(bundle, name)


def start(state_machine, bundle, name, operator_id="OP-1"):
    operation = op(bundle, name)
    state_machine.assign(bundle, operation.id, operator_id)
    state_machine.start(bundle, operation.id, operator_id)
    return operation


def complete(state_machine, bundle, name):
    operation = start(state_machine, bundle, name)
    state_machine.complete(bundle, operation.id, bundle.quantity)


class TestReport:
    """Test complaint creation and freezing."""

    def test_report_freezes_operation_and_dependents(self, handler, state_machine, bundle):
        complete(state_machine, bundle, "shoulder_join")
        sleeve = start(state_machine, bundle, "sleeve_attach")

        complaint = handler.report(
            bundle,
            sleeve.id,
            "OP-1",
            [" left sleeve ", ""],
            "torn fabric",
            ComplaintIssueType.DAMAGED,
        )

        assert complaint.status == ComplaintStatus.REPORTED
        assert complaint.damaged_parts == ["left sleeve"]
        assert bundle.get_complaint(complaint.id) is complaint
        frozen_names = {
            o.name for o in bundle.operations if o.id in complaint.frozen_operation_ids
        }
        assert frozen_names == {"sleeve_attach", "side_seam", "hem", "care_label"}
        assert sleeve.status == OperationStatus.FROZEN
        assert sleeve.resume_status == OperationStatus.IN_PROGRESS
        assert op(bundle, "hem").resume_status == OperationStatus.WAITING
        assert op(bundle, "neck_rib").status == OperationStatus.READY
        [event] = [e for e in bundle.get_domain_events() if isinstance(e, ComplaintRaised)]
        assert event.complaint_id == complaint.id
        assert set(event.frozen_operation_ids) == set(complaint.frozen_operation_ids)

    def test_completed_dependents_not_frozen(self, handler, state_machine, bundle):
        complete(state_machine, bundle, "shoulder_join")
        shoulder = op(bundle, "shoulder_join")
        complete(state_machine, bundle, "neck_rib")

        neck = op(bundle, "neck_rib")
        sleeve = op(bundle, "sleeve_attach")
        complaint = handler.report(bundle, sleeve.id, "OP-1", ["sleeve"])

        assert neck.status == OperationStatus.COMPLETED
        assert neck.id not in complaint.frozen_operation_ids
        assert shoulder.id not in complaint.frozen_operation_ids

    def test_report_on_finished_operation_rejected(self, handler, state_machine, bundle):
        complete(state_machine, bundle, "shoulder_join")

        with pytest.raises(IllegalTransitionError):
            handler.report(bundle, op(bundle, "shoulder_join").id, "OP-1", ["front"])


class TestBlocking:
    """Frozen operations refuse every lifecycle transition."""

    def test_frozen_operation_blocks_complete(self, handler, state_machine, bundle):
        shoulder = start(state_machine, bundle, "shoulder_join")
        complaint = handler.report(bundle, shoulder.id, "OP-1", ["front"])

        with pytest.raises(ComplaintBlockingError) as exc_info:
            state_machine.complete(bundle, shoulder.id, bundle.quantity)

        assert exc_info.value.complaint_ids == [complaint.id]

    def test_frozen_operation_blocks_assign_and_start(self, handler, state_machine, bundle):
        shoulder = op(bundle, "shoulder_join")
        handler.report(bundle, shoulder.id, "OP-1", ["front"])

        with pytest.raises(ComplaintBlockingError):
            state_machine.assign(bundle, shoulder.id, "OP-1")
        with pytest.raises(ComplaintBlockingError):
            state_machine.start(bundle, shoulder.id, "OP-1")

    def test_frozen_dependent_not_readied_by_cascade(self, handler, state_machine, bundle):
        complete(state_machine, bundle, "shoulder_join")
        complete(state_machine, bundle, "sleeve_attach")
        neck = start(state_machine, bundle, "neck_rib")
        side = op(bundle, "side_seam")
        handler.report(bundle, side.id, "OP-2", ["back panel"])

        state_machine.complete(bundle, neck.id, bundle.quantity)

        assert op(bundle, "hem").status == OperationStatus.FROZEN


class TestResolve:
    """Test resolution, rejection and multi-complaint unfreezing."""

    def test_resolve_restores_previous_status(self, handler, state_machine, bundle):
        shoulder = start(state_machine, bundle, "shoulder_join")
        complaint = handler.report(bundle, shoulder.id, "OP-1", ["front"])
        handler.acknowledge(complaint, "SUP-1", "replacing from spare roll")
        handler.start_replacement(complaint)

        released = handler.resolve(bundle, complaint, ComplaintOutcome.PARTS_REPLACED)

        assert shoulder.status == OperationStatus.IN_PROGRESS
        assert shoulder.frozen_by == set()
        assert op(bundle, "neck_rib").status == OperationStatus.WAITING
        assert set(released) == set(complaint.frozen_operation_ids)
        assert complaint.status == ComplaintStatus.RESOLVED
        assert complaint.replaced_parts == ["front"]
        assert complaint.acknowledged_by == "SUP-1"
        [event] = [
            e for e in bundle.get_domain_events() if isinstance(e, ComplaintResolved)
        ]
        assert event.outcome == ComplaintOutcome.PARTS_REPLACED.value

        state_machine.complete(bundle, shoulder.id, bundle.quantity)
        assert op(bundle, "neck_rib").status == OperationStatus.READY

    def test_waiting_operation_readied_when_dependencies_finished_meanwhile(
        self, handler, state_machine, bundle
    ):
        complete(state_machine, bundle, "shoulder_join")
        complete(state_machine, bundle, "sleeve_attach")
        side = op(bundle, "side_seam")
        hem = op(bundle, "hem")
        complaint = handler.report(bundle, side.id, "OP-2", ["back panel"])
        handler.acknowledge(complaint, "SUP-1")
        neck = start(state_machine, bundle, "neck_rib")
        state_machine.complete(bundle, neck.id, bundle.quantity)

        handler.resolve(bundle, complaint, ComplaintOutcome.APPROVED_AS_IS)

        assert side.status == OperationStatus.READY
        assert hem.status == OperationStatus.WAITING

    def test_operation_stays_frozen_until_last_complaint_closes(
        self, handler, state_machine, bundle
    ):
        complete(state_machine, bundle, "shoulder_join")
        sleeve = op(bundle, "sleeve_attach")
        hem = op(bundle, "hem")
        neck = op(bundle, "neck_rib")
        first = handler.report(bundle, sleeve.id, "OP-1", ["sleeve"])
        second = handler.report(bundle, neck.id, "OP-2", ["rib"])

        assert hem.frozen_by == {first.id, second.id}

        released = handler.reject(bundle, first)

        assert sleeve.status == OperationStatus.READY
        assert hem.id not in released
        assert hem.status == OperationStatus.FROZEN
        assert hem.frozen_by == {second.id}

        handler.acknowledge(second, "SUP-1")
        handler.resolve(bundle, second, ComplaintOutcome.APPROVED_AS_IS)

        assert hem.status == OperationStatus.WAITING
        assert neck.status == OperationStatus.READY

    def test_parts_replaced_requires_replacement_started(self, handler, bundle):
        complaint = handler.report(bundle, op(bundle, "shoulder_join").id, "OP-1", ["front"])
        handler.acknowledge(complaint, "SUP-1")

        with pytest.raises(IllegalTransitionError):
            handler.resolve(bundle, complaint, ComplaintOutcome.PARTS_REPLACED)

        assert complaint.status == ComplaintStatus.ACKNOWLEDGED
        assert op(bundle, "shoulder_join").is_frozen

    def test_resolve_requires_acknowledgement(self, handler, bundle):
        complaint = handler.report(bundle, op(bundle, "shoulder_join").id, "OP-1", ["front"])

        with pytest.raises(IllegalTransitionError):
            handler.resolve(bundle, complaint, ComplaintOutcome.APPROVED_AS_IS)

    def test_rejected_complaint_cannot_be_reopened(self, handler, bundle):
        complaint = handler.report(bundle, op(bundle, "shoulder_join").id, "OP-1", ["front"])
        handler.reject(bundle, complaint)

        assert complaint.status == ComplaintStatus.REJECTED
        assert complaint.resolution == ComplaintOutcome.REJECTED
        with pytest.raises(IllegalTransitionError):
            handler.acknowledge(complaint, "SUP-1")

    def test_complaint_for_other_bundle_rejected(self, handler, bundle):
        complaint = handler.report(bundle, op(bundle, "shoulder_join").id, "OP-1", ["front"])
        other = BundleFactory.create_bundle()

        with pytest.raises(Exception) as exc_info:
            handler.reject(other, complaint)

        assert "belongs to bundle" in str(exc_info.value)
