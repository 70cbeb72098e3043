"""Work assignment: the lock that gives one operator an operation."""

from datetime import datetime
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field

from ...shared.base import utcnow
from ..value_objects.enums import AssignmentStatus


class WorkAssignment(BaseModel):
    """Represents an operator's claim on one bundle operation."""

    model_config = ConfigDict(validate_assignment=True)

    id: UUID = Field(default_factory=uuid4)
    operation_id: UUID
    bundle_id: UUID
    operator_id: str
    assigned_pieces: int = Field(ge=1)
    assigned_at: datetime = Field(default_factory=utcnow)
    # Operation version observed when the slot was taken
    version_token: int = Field(ge=0)
    compatibility_score: int = 0
    status: AssignmentStatus = AssignmentStatus.ACTIVE
    closed_at: datetime | None = None

    def close(self, status: AssignmentStatus) -> None:
        """Move the assignment to a terminal status."""
        self.status = status
        self.closed_at = utcnow()
