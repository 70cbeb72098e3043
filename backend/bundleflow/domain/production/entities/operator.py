"""Operator snapshot as read from the operator registry."""

from pydantic import Field, field_validator

from ...shared.base import ValueObject
from ..value_objects.enums import OperatorStatus, SkillLevel


class OperatorProfile(ValueObject):
    """
    Read-only snapshot of an operator at matching time.

    The engine never writes operator data back; workload and availability
    are owned by the operator registry.
    """

    id: str = Field(min_length=1)
    name: str = ""
    machine_types: frozenset[str] = Field(default_factory=frozenset)
    skill_level: SkillLevel = SkillLevel.BEGINNER
    efficiency: float = Field(default=100.0, ge=0)  # percent of standard
    quality_score: float = Field(default=90.0, ge=0, le=100)
    current_workload: int = Field(default=0, ge=0)
    max_concurrent_work: int | None = Field(default=None, ge=1)
    status: OperatorStatus = OperatorStatus.AVAILABLE
    # Only consulted by the color-ownership policy
    assigned_color: str | None = None

    @field_validator("machine_types", mode="before")
    @classmethod
    def normalise_machine_types(cls, v):
        return frozenset(str(m).strip().lower() for m in v)

    def can_operate(self, machine_type: str) -> bool:
        return machine_type.strip().lower() in self.machine_types

    def has_capacity(self, default_capacity: int) -> bool:
        """Check concurrent-work capacity against the operator's own or the default limit."""
        limit = self.max_concurrent_work or default_capacity
        return self.current_workload < limit
