"""
Production engine application service.

Coordinates the bundle production use cases: cutting allocation, bundle
creation, operator assignment, operation progress, parts complaints and
earnings. Every bundle write follows the same cycle: read a private copy,
mutate it through the domain services, compare-and-set against the version
read, then publish the events the aggregate collected.
"""

from collections.abc import Callable, Sequence
from decimal import Decimal
from typing import TypeVar
from uuid import UUID

from ...core.config import Settings, settings
from ...core.observability import ASSIGNMENT_REQUESTS, EARNINGS_PIECES, get_logger
from ...core.retry_mechanisms import RetryConfig, retry_on_conflict
from ...domain.production.entities.assignment import WorkAssignment
from ...domain.production.entities.bundle import BundleOperation, ProductionBundle
from ...domain.production.entities.complaint import PartsComplaint
from ...domain.production.entities.earnings import (
    EarningsRecord,
    OperatorEarningsSummary,
)
from ...domain.production.entities.operator import OperatorProfile
from ...domain.production.events.domain_events import BundlesCreated
from ...domain.production.repositories import (
    BundleRepository,
    ComplaintRepository,
    EarningsLedger,
    OperatorRegistry,
    TemplateLibrary,
)
from ...domain.production.services import (
    AssignmentMatcher,
    AssignmentPolicy,
    BundleChunker,
    BundleValue,
    CompatibilityScoringPolicy,
    EarningsCalculator,
    LifecycleStateMachine,
    NoCompatibleOperator,
    OperationGraphBuilder,
    PartsComplaintHandler,
    RatioAllocator,
)
from ...domain.production.value_objects.cutting import (
    ColorBatch,
    FabricRoll,
    SizeAllocation,
    SizeRatio,
)
from ...domain.production.value_objects.enums import (
    BundleStatus,
    ComplaintIssueType,
    ComplaintOutcome,
    QualityGrade,
)
from ...domain.production.value_objects.template import GarmentTemplate
from ...domain.shared.base import ValueObject
from ...domain.shared.exceptions import (
    AlreadyAssignedError,
    ConcurrencyError,
    ValidationError,
)
from ...infrastructure.events.event_bus import EventBusInterface, InMemoryEventBus
from ...infrastructure.events.event_publisher import DomainEventPublisher

T = TypeVar("T")


class BundleProgress(ValueObject):
    """Read model summarising where a bundle stands."""

    bundle_id: UUID
    bundle_number: str
    status: BundleStatus
    total_operations: int
    settled_operations: int
    frozen_operations: int
    status_counts: dict[str, int]
    completion_percent: float
    piece_value: Decimal
    earned: Decimal


class ProductionEngine:
    """
    Application service for the bundle production lifecycle.

    Collaborators are injected as repository interfaces; the engine itself
    keeps no state besides its domain services.
    """

    def __init__(
        self,
        bundles: BundleRepository,
        operators: OperatorRegistry,
        complaints: ComplaintRepository,
        ledger: EarningsLedger,
        templates: TemplateLibrary | None = None,
        *,
        event_bus: EventBusInterface | None = None,
        policy: AssignmentPolicy | None = None,
        config: Settings | None = None,
    ) -> None:
        self._bundles = bundles
        self._operators = operators
        self._complaints = complaints
        self._ledger = ledger
        self._templates = templates
        self._config = config or settings

        self._publisher = DomainEventPublisher(event_bus or InMemoryEventBus())
        self._earnings = EarningsCalculator()
        self._graph_builder = OperationGraphBuilder()
        self._state_machine = LifecycleStateMachine(self._earnings)
        self._complaint_handler = PartsComplaintHandler(self._state_machine)
        self._matcher = AssignmentMatcher(
            policy
            or CompatibilityScoringPolicy(
                self._config.DEFAULT_OPERATOR_CAPACITY,
                self._config.ASSIGNMENT_REQUIRE_MACHINE_MATCH,
            )
        )
        self.logger = get_logger(__name__)

    @property
    def event_bus(self) -> EventBusInterface:
        return self._publisher.event_bus

    # Write cycle

    def _write(
        self,
        operation: str,
        load: Callable[[], ProductionBundle],
        mutate: Callable[[ProductionBundle], T],
        after_commit: Callable[[T], None] | None = None,
    ) -> tuple[ProductionBundle, T]:
        def attempt() -> tuple[ProductionBundle, T]:
            bundle = load()
            expected_version = bundle.version
            result = mutate(bundle)
            self._bundles.compare_and_set(bundle, expected_version)
            return bundle, result

        bundle, result = retry_on_conflict(
            attempt,
            operation=operation,
            config=RetryConfig(max_attempts=self._config.WRITE_MAX_RETRIES),
        )
        if after_commit is not None:
            after_commit(result)
        self._publisher.publish_events(bundle)
        return bundle, result

    def _write_operation(
        self,
        operation: str,
        operation_id: UUID,
        mutate: Callable[[ProductionBundle], T],
    ) -> tuple[ProductionBundle, T]:
        return self._write(
            operation, lambda: self._bundles.get_by_operation(operation_id), mutate
        )

    def _write_bundle(
        self,
        operation: str,
        bundle_id: UUID,
        mutate: Callable[[ProductionBundle], T],
    ) -> ProductionBundle:
        bundle, _ = self._write(operation, lambda: self._bundles.get(bundle_id), mutate)
        return bundle

    # Cutting

    def allocate_sizes(
        self,
        ratio: SizeRatio | str,
        total_layers: int,
        sizes: list[str] | None = None,
    ) -> list[SizeAllocation]:
        """
        Allocate layers to sizes; ``ratio`` may be a SizeRatio or ratio text.

        Raises:
            InvalidRatioError: If the ratio or layer count is unusable
        """
        if isinstance(ratio, str):
            ratio = SizeRatio.parse(ratio, sizes)
        return RatioAllocator.allocate(ratio, total_layers)

    def allocate_rolls(
        self, rolls: Sequence[FabricRoll], ratio: SizeRatio | str, sizes: list[str] | None = None
    ) -> list[ColorBatch]:
        if isinstance(ratio, str):
            ratio = SizeRatio.parse(ratio, sizes)
        return RatioAllocator.allocate_rolls(rolls, ratio)

    def _resolve_template(self, template: GarmentTemplate | str) -> GarmentTemplate:
        if isinstance(template, GarmentTemplate):
            return template
        if self._templates is None:
            raise ValidationError(
                "template", template, "no template library configured for lookups"
            )
        return self._templates.get(template)

    def create_bundles(
        self,
        allocations: Sequence[SizeAllocation],
        template: GarmentTemplate | str,
        *,
        lot_id: str,
        color: str,
        max_bundle_size: int | None = None,
        release: bool = True,
    ) -> list[ProductionBundle]:
        """
        Chunk allocations into bundles and instantiate the template on each.

        With ``release`` the bundles go straight to READY; otherwise they stay
        in DRAFT.

        Raises:
            TemplateGraphError: If the template's operation graph is invalid
            ValidationError: If the bundle size is not positive
        """
        template = self._resolve_template(template)
        self._graph_builder.validate_template(template)

        chunker = BundleChunker(max_bundle_size or self._config.MAX_BUNDLE_SIZE)
        bundles = chunker.create_bundles(
            allocations,
            lot_id=lot_id,
            color=color,
            parts=template.parts,
            template_id=template.id,
        )
        for bundle in bundles:
            self._graph_builder.build(bundle, template)
            if release:
                self._state_machine.release_to_floor(bundle)

        if not bundles:
            self.logger.info("No bundles to create", lot_id=lot_id, color=color)
            return []

        bundles[0].add_domain_event(
            BundlesCreated(
                aggregate_id=bundles[0].id,
                lot_id=lot_id,
                color=color,
                bundle_ids=[b.id for b in bundles],
                total_pieces=sum(b.quantity for b in bundles),
            )
        )
        self._bundles.add_all(bundles)
        for bundle in bundles:
            self._publisher.publish_events(bundle)

        self.logger.info(
            "Bundles created",
            lot_id=lot_id,
            color=color,
            template_id=template.id,
            bundles=len(bundles),
            pieces=sum(b.quantity for b in bundles),
        )
        return bundles

    # Assignment

    def request_assignment(
        self,
        operation_id: UUID,
        operators: Sequence[OperatorProfile] | None = None,
        *,
        min_score: int | None = None,
        expected_version: int | None = None,
        pieces: int | None = None,
    ) -> WorkAssignment | NoCompatibleOperator:
        """
        Match the best operator to a ready operation and take its slot.

        ``operators`` defaults to the registry snapshot. ``expected_version``
        is the operation version the caller last saw; a mismatch is refused.

        Returns:
            The new assignment, or NoCompatibleOperator when nobody reaches
            ``min_score``

        Raises:
            AlreadyAssignedError: If the slot is taken, the caller's version is
                stale, or conflicts persisted beyond the retry bound
            ComplaintBlockingError: If a complaint freezes the operation
            IllegalTransitionError: If the operation or bundle is not assignable
        """
        threshold = self._config.ASSIGNMENT_MIN_SCORE if min_score is None else min_score

        def attempt() -> tuple[ProductionBundle, WorkAssignment | NoCompatibleOperator]:
            bundle = self._bundles.get_by_operation(operation_id)
            read_version = bundle.version
            operation = bundle.get_operation(operation_id)
            if expected_version is not None and operation.version != expected_version:
                raise AlreadyAssignedError(
                    operation.id, operation.assigned_operator_id, reason="stale_version"
                )
            self._state_machine.ensure_assignable(bundle, operation)

            candidates = (
                list(operators) if operators is not None else self._operators.snapshot()
            )
            match = self._matcher.select(bundle, operation, candidates, threshold)
            if isinstance(match, NoCompatibleOperator):
                return bundle, match

            assignment = self._state_machine.assign(
                bundle,
                operation_id,
                match.operator.id,
                pieces=pieces,
                compatibility_score=match.score,
            )
            self._bundles.compare_and_set(bundle, read_version)
            return bundle, assignment

        try:
            bundle, result = retry_on_conflict(
                attempt,
                operation="assign",
                config=RetryConfig(max_attempts=self._config.ASSIGNMENT_MAX_RETRIES),
            )
        except ConcurrencyError as e:
            ASSIGNMENT_REQUESTS.labels(outcome="conflict").inc()
            raise AlreadyAssignedError(operation_id, reason="version_conflict") from e
        except AlreadyAssignedError:
            ASSIGNMENT_REQUESTS.labels(outcome="already_assigned").inc()
            raise

        if isinstance(result, NoCompatibleOperator):
            ASSIGNMENT_REQUESTS.labels(outcome="no_operator").inc()
            self.logger.info(
                "No compatible operator",
                operation_id=str(operation_id),
                min_score=threshold,
                best_score=result.best_score,
                reason=result.reason,
            )
            return result

        ASSIGNMENT_REQUESTS.labels(outcome="assigned").inc()
        self._publisher.publish_events(bundle)
        self.logger.info(
            "Operation assigned",
            operation_id=str(operation_id),
            operator_id=result.operator_id,
            score=result.compatibility_score,
            pieces=result.assigned_pieces,
        )
        return result

    def release_assignment(
        self, operation_id: UUID, reason: str | None = None
    ) -> BundleOperation:
        bundle, _ = self._write_operation(
            "release",
            operation_id,
            lambda b: self._state_machine.release(b, operation_id, reason),
        )
        return bundle.get_operation(operation_id)

    # Progress

    def start_operation(self, operation_id: UUID, operator_id: str) -> BundleOperation:
        """
        Start an assigned operation. Repeating the start is a no-op.

        Raises:
            ComplaintBlockingError: If a complaint freezes the operation
            IllegalTransitionError: If the operation is not assigned to the operator
        """

        def attempt() -> ProductionBundle:
            bundle = self._bundles.get_by_operation(operation_id)
            read_version = bundle.version
            if self._state_machine.start(bundle, operation_id, operator_id):
                self._bundles.compare_and_set(bundle, read_version)
            return bundle

        bundle = retry_on_conflict(
            attempt,
            operation="start",
            config=RetryConfig(max_attempts=self._config.WRITE_MAX_RETRIES),
        )
        self._publisher.publish_events(bundle)
        return bundle.get_operation(operation_id)

    def complete_operation(
        self,
        operation_id: UUID,
        completed_pieces: int,
        quality_grade: QualityGrade | None = None,
    ) -> EarningsRecord:
        """
        Complete an in-progress operation and record the operator's earnings.

        Raises:
            AlreadyCompletedError: On a second completion
            CapacityExceededError: If more pieces are reported than assigned
            ComplaintBlockingError: If a complaint freezes the operation
            IllegalTransitionError: If the operation is not in progress
        """
        _, record = self._write(
            "complete",
            lambda: self._bundles.get_by_operation(operation_id),
            lambda b: self._state_machine.complete(
                b, operation_id, completed_pieces, quality_grade
            ),
            after_commit=self._ledger.record,
        )
        EARNINGS_PIECES.inc(record.completed_pieces)
        self.logger.info(
            "Operation completed",
            operation_id=str(operation_id),
            operator_id=record.operator_id,
            pieces=record.completed_pieces,
            amount=str(record.amount),
        )
        return record

    def fail_operation(self, operation_id: UUID, reason: str) -> BundleOperation:
        bundle, _ = self._write_operation(
            "fail",
            operation_id,
            lambda b: self._state_machine.fail(b, operation_id, reason),
        )
        self.logger.warning(
            "Operation failed quality", operation_id=str(operation_id), reason=reason
        )
        return bundle.get_operation(operation_id)

    def requeue_operation(self, operation_id: UUID) -> BundleOperation:
        """Replace a quality-failed operation; returns the new operation."""
        _, rework = self._write_operation(
            "requeue",
            operation_id,
            lambda b: self._state_machine.requeue(b, operation_id),
        )
        return rework

    def skip_operation(self, operation_id: UUID) -> BundleOperation:
        bundle, _ = self._write_operation(
            "skip",
            operation_id,
            lambda b: self._state_machine.skip(b, operation_id),
        )
        return bundle.get_operation(operation_id)

    # Bundle status

    def hold_bundle(self, bundle_id: UUID, reason: str | None = None) -> ProductionBundle:
        return self._write_bundle(
            "hold", bundle_id, lambda b: self._state_machine.hold(b, reason)
        )

    def resume_bundle(self, bundle_id: UUID) -> ProductionBundle:
        return self._write_bundle("resume", bundle_id, self._state_machine.resume)

    def cancel_bundle(self, bundle_id: UUID, reason: str | None = None) -> ProductionBundle:
        return self._write_bundle(
            "cancel", bundle_id, lambda b: self._state_machine.cancel(b, reason)
        )

    # Parts complaints

    def report_complaint(
        self,
        bundle_id: UUID,
        operation_id: UUID,
        damaged_parts: list[str],
        description: str = "",
        *,
        reported_by: str,
        issue_type: ComplaintIssueType = ComplaintIssueType.DAMAGED,
    ) -> PartsComplaint:
        """
        Report damaged parts; freezes the operation and everything downstream.

        Raises:
            EntityNotFoundError: If the bundle or operation does not exist
            IllegalTransitionError: If the operation already finished
        """
        _, complaint = self._write(
            "report_complaint",
            lambda: self._bundles.get(bundle_id),
            lambda b: self._complaint_handler.report(
                b, operation_id, reported_by, damaged_parts, description, issue_type
            ),
            after_commit=self._complaints.save,
        )
        return complaint

    def _write_complaint(
        self,
        operation: str,
        complaint_id: UUID,
        mutate: Callable[[ProductionBundle, PartsComplaint], object],
    ) -> PartsComplaint:
        """Change a complaint inside its bundle; commits with the bundle's version."""
        bundle_id = self._complaints.get(complaint_id).bundle_id

        def apply(bundle: ProductionBundle) -> PartsComplaint:
            complaint = bundle.get_complaint(complaint_id)
            mutate(bundle, complaint)
            return complaint

        _, complaint = self._write(
            operation,
            lambda: self._bundles.get(bundle_id),
            apply,
            after_commit=self._complaints.save,
        )
        return complaint

    def acknowledge_complaint(
        self, complaint_id: UUID, supervisor_id: str, notes: str | None = None
    ) -> PartsComplaint:
        return self._write_complaint(
            "acknowledge_complaint",
            complaint_id,
            lambda _, c: self._complaint_handler.acknowledge(c, supervisor_id, notes),
        )

    def start_replacement(self, complaint_id: UUID) -> PartsComplaint:
        return self._write_complaint(
            "start_replacement",
            complaint_id,
            lambda _, c: self._complaint_handler.start_replacement(c),
        )

    def resolve_complaint(
        self, complaint_id: UUID, outcome: ComplaintOutcome
    ) -> PartsComplaint:
        """
        Resolve or reject a complaint and thaw the operations it froze.

        Operations also frozen by another open complaint stay frozen.

        Raises:
            IllegalTransitionError: If the complaint cannot take this outcome now
        """
        return self._write_complaint(
            "resolve_complaint",
            complaint_id,
            lambda b, c: self._complaint_handler.resolve(b, c, outcome),
        )

    def reject_complaint(self, complaint_id: UUID) -> PartsComplaint:
        return self.resolve_complaint(complaint_id, ComplaintOutcome.REJECTED)

    def open_complaints(self) -> list[PartsComplaint]:
        return self._complaints.find_unresolved()

    # Queries

    def get_bundle(self, bundle_id: UUID) -> ProductionBundle:
        return self._bundles.get(bundle_id)

    def find_bundles(self, lot_id: str) -> list[ProductionBundle]:
        return self._bundles.find_by_lot(lot_id)

    def bundle_value(self, bundle_id: UUID) -> BundleValue:
        return self._earnings.bundle_value(self._bundles.get(bundle_id))

    def bundle_progress(self, bundle_id: UUID) -> BundleProgress:
        bundle = self._bundles.get(bundle_id)
        value = self._earnings.bundle_value(bundle)
        live = [op for op in bundle.operations if op.superseded_by is None]
        settled = sum(1 for op in live if op.is_settled)
        return BundleProgress(
            bundle_id=bundle.id,
            bundle_number=bundle.bundle_number,
            status=bundle.status,
            total_operations=len(live),
            settled_operations=settled,
            frozen_operations=sum(1 for op in live if op.is_frozen),
            status_counts={
                status.value: count
                for status, count in bundle.status_counts().items()
                if count
            },
            completion_percent=round(100.0 * settled / len(live), 1) if live else 0.0,
            piece_value=value.piece_value,
            earned=value.earned,
        )

    def operator_earnings(
        self, operator_id: str | None = None
    ) -> list[OperatorEarningsSummary]:
        """Earnings totals for one operator, or for everyone when omitted."""
        records = (
            self._ledger.find_by_operator(operator_id)
            if operator_id is not None
            else self._ledger.all()
        )
        return self._earnings.summarize(records)
