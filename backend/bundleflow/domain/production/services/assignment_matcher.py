"""
AssignmentMatcher Domain Service

Scores operators against a ready operation and picks the best one. The
canonical policy is compatibility scoring; color ownership survives as a
deprecated policy for floors still organised by color lines.
"""

import warnings
from abc import ABC, abstractmethod
from collections.abc import Sequence
from uuid import UUID

from ...shared.base import DomainService, ValueObject
from ...shared.exceptions import NoCompatibleOperatorError
from ..entities.bundle import BundleOperation, ProductionBundle
from ..entities.operator import OperatorProfile

MAX_SCORE = 115


class OperatorMatch(ValueObject):
    """An operator together with its compatibility score for one operation."""

    operator: OperatorProfile
    score: int


class NoCompatibleOperator(ValueObject):
    """Result returned when nobody reaches the score threshold."""

    operation_id: UUID
    min_score: int
    best_score: int | None = None
    candidates: int = 0
    reason: str = "below_threshold"

    def to_error(self) -> NoCompatibleOperatorError:
        return NoCompatibleOperatorError(
            self.operation_id, self.min_score, self.best_score, self.candidates
        )


def compatibility_score(operator: OperatorProfile, operation: BundleOperation) -> int:
    """
    Score an operator for an operation, 0..115.

    40 for the machine type, 30 if the skill requirement is met (10 if not),
    up to 15 for efficiency, up to 10 for quality, and 20 when available.
    """
    score = 0
    if operator.can_operate(operation.machine_type):
        score += 40
    score += 30 if operator.skill_level.meets_minimum(operation.required_skill) else 10
    if operator.efficiency > 110:
        score += 15
    elif operator.efficiency > 100:
        score += 10
    if operator.quality_score > 95:
        score += 10
    elif operator.quality_score > 90:
        score += 5
    if operator.status.is_available_for_work:
        score += 20
    return score


class AssignmentPolicy(ABC):
    """Strategy choosing an operator for an operation."""

    name: str = "policy"

    def __init__(self, default_capacity: int, require_machine_match: bool = True) -> None:
        self.default_capacity = default_capacity
        self.require_machine_match = require_machine_match

    def is_eligible(self, operator: OperatorProfile, operation: BundleOperation) -> bool:
        """Available, below capacity and, when required, able to run the machine."""
        if not operator.status.is_available_for_work:
            return False
        if not operator.has_capacity(self.default_capacity):
            return False
        if self.require_machine_match and not operator.can_operate(
            operation.machine_type
        ):
            return False
        return True

    @abstractmethod
    def select(
        self,
        bundle: ProductionBundle,
        operation: BundleOperation,
        operators: Sequence[OperatorProfile],
        min_score: int,
    ) -> OperatorMatch | NoCompatibleOperator:
        ...


class CompatibilityScoringPolicy(AssignmentPolicy):
    """Highest score wins; ties go to the lighter workload, then the lower id."""

    name = "compatibility_scoring"

    def rank(
        self, operation: BundleOperation, operators: Sequence[OperatorProfile]
    ) -> list[OperatorMatch]:
        matches = [
            OperatorMatch(operator=operator, score=compatibility_score(operator, operation))
            for operator in operators
            if self.is_eligible(operator, operation)
        ]
        matches.sort(
            key=lambda m: (-m.score, m.operator.current_workload, m.operator.id)
        )
        return matches

    def select(
        self,
        bundle: ProductionBundle,
        operation: BundleOperation,
        operators: Sequence[OperatorProfile],
        min_score: int,
    ) -> OperatorMatch | NoCompatibleOperator:
        ranked = self.rank(operation, operators)
        if not ranked:
            return NoCompatibleOperator(
                operation_id=operation.id, min_score=min_score, reason="no_eligible_operator"
            )
        best = ranked[0]
        if best.score < min_score:
            return NoCompatibleOperator(
                operation_id=operation.id,
                min_score=min_score,
                best_score=best.score,
                candidates=len(ranked),
            )
        return best


class ColorOwnershipPolicy(AssignmentPolicy):
    """
    Deprecated: operators own a color line.

    Among eligible owners of the bundle color, operations rotate by sequence
    so consecutive operations land on different operators.
    """

    name = "color_ownership"

    def __init__(self, default_capacity: int, require_machine_match: bool = True) -> None:
        warnings.warn(
            "ColorOwnershipPolicy is deprecated, use CompatibilityScoringPolicy",
            DeprecationWarning,
            stacklevel=2,
        )
        super().__init__(default_capacity, require_machine_match)

    def select(
        self,
        bundle: ProductionBundle,
        operation: BundleOperation,
        operators: Sequence[OperatorProfile],
        min_score: int,
    ) -> OperatorMatch | NoCompatibleOperator:
        color = bundle.color.strip().lower()
        owners = sorted(
            (
                operator
                for operator in operators
                if operator.assigned_color
                and operator.assigned_color.strip().lower() == color
                and self.is_eligible(operator, operation)
            ),
            key=lambda o: o.id,
        )
        if not owners:
            return NoCompatibleOperator(
                operation_id=operation.id, min_score=min_score, reason="no_color_owner"
            )
        chosen = owners[(operation.sequence - 1) % len(owners)]
        score = compatibility_score(chosen, operation)
        if score < min_score:
            return NoCompatibleOperator(
                operation_id=operation.id,
                min_score=min_score,
                best_score=score,
                candidates=len(owners),
            )
        return OperatorMatch(operator=chosen, score=score)


class AssignmentMatcher(DomainService):
    """Entry point for operator selection, delegating to a policy."""

    def __init__(self, policy: AssignmentPolicy) -> None:
        self.policy = policy

    def select(
        self,
        bundle: ProductionBundle,
        operation: BundleOperation,
        operators: Sequence[OperatorProfile],
        min_score: int = 0,
    ) -> OperatorMatch | NoCompatibleOperator:
        return self.policy.select(bundle, operation, operators, min_score)
