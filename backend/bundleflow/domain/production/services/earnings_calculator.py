"""
EarningsCalculator Domain Service

Piece-rate earnings: completed pieces times the operation's price per piece,
in Decimal currency rounded to cents.
"""

from collections.abc import Iterable
from decimal import ROUND_HALF_UP, Decimal
from uuid import UUID

from ...shared.base import DomainService, ValueObject, utcnow
from ...shared.exceptions import BusinessRuleError
from ..entities.bundle import BundleOperation, ProductionBundle
from ..entities.earnings import EarningsRecord, OperatorEarningsSummary
from ..value_objects.enums import OperationStatus

CENT = Decimal("0.01")


class BundleValue(ValueObject):
    """Piece-rate value of a bundle and what has been earned on it so far."""

    bundle_id: UUID
    piece_value: Decimal
    earned: Decimal
    total_minutes: float


class EarningsCalculator(DomainService):
    """Computes earnings records and operator totals."""

    @staticmethod
    def amount(completed_pieces: int, price_per_piece: Decimal) -> Decimal:
        """20 pieces at 2.5 is 50.00."""
        return (Decimal(completed_pieces) * Decimal(price_per_piece)).quantize(
            CENT, rounding=ROUND_HALF_UP
        )

    def calculate(self, operation: BundleOperation) -> EarningsRecord:
        """
        Price a completed operation.

        Raises:
            BusinessRuleError: If the operation is not completed or has no operator
        """
        if operation.status != OperationStatus.COMPLETED:
            raise BusinessRuleError(
                f"Operation {operation.id} is {operation.status.value}, not completed",
                {"operation_id": str(operation.id), "status": operation.status.value},
            )
        if not operation.assigned_operator_id:
            raise BusinessRuleError(
                f"Operation {operation.id} has no operator to pay",
                {"operation_id": str(operation.id)},
            )
        return EarningsRecord(
            operation_id=operation.id,
            bundle_id=operation.bundle_id,
            operator_id=operation.assigned_operator_id,
            completed_pieces=operation.completed_pieces,
            price_per_piece=operation.price_per_piece,
            amount=self.amount(operation.completed_pieces, operation.price_per_piece),
            quality_grade=operation.quality_grade,
            completed_at=operation.completed_at or utcnow(),
        )

    @staticmethod
    def summarize(records: Iterable[EarningsRecord]) -> list[OperatorEarningsSummary]:
        """Per-operator totals, ordered by operator id."""
        totals: dict[str, list] = {}
        for record in records:
            entry = totals.setdefault(record.operator_id, [0, 0, Decimal("0.00")])
            entry[0] += 1
            entry[1] += record.completed_pieces
            entry[2] += record.amount
        return [
            OperatorEarningsSummary(
                operator_id=operator_id,
                operations=operations,
                pieces=pieces,
                amount=amount.quantize(CENT),
            )
            for operator_id, (operations, pieces, amount) in sorted(totals.items())
        ]

    def bundle_value(self, bundle: ProductionBundle) -> BundleValue:
        live = [op for op in bundle.operations if op.superseded_by is None]
        return BundleValue(
            bundle_id=bundle.id,
            piece_value=self.amount(
                bundle.quantity, sum((op.price_per_piece for op in live), Decimal("0"))
            ),
            earned=sum(
                (
                    self.amount(op.completed_pieces, op.price_per_piece)
                    for op in bundle.operations
                    if op.status == OperationStatus.COMPLETED
                ),
                Decimal("0.00"),
            ),
            total_minutes=sum(op.estimated_minutes for op in live),
        )
