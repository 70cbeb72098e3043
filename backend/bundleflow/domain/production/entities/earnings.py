"""Earnings record produced at operation completion."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import Field

from ...shared.base import ValueObject, utcnow
from ..value_objects.enums import QualityGrade


class EarningsRecord(ValueObject):
    """Immutable piece-rate payment for one completed operation."""

    operation_id: UUID
    bundle_id: UUID
    operator_id: str
    completed_pieces: int = Field(ge=1)
    price_per_piece: Decimal = Field(ge=0)
    amount: Decimal = Field(ge=0)
    quality_grade: QualityGrade | None = None
    completed_at: datetime = Field(default_factory=utcnow)


class OperatorEarningsSummary(ValueObject):
    """Totals for one operator over a set of earnings records."""

    operator_id: str
    operations: int = 0
    pieces: int = 0
    amount: Decimal = Decimal("0.00")
