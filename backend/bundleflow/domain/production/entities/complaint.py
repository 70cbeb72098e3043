"""Parts complaint entity."""

from datetime import datetime
from uuid import UUID

from pydantic import Field, field_validator

from ...shared.base import Entity, utcnow
from ...shared.exceptions import IllegalTransitionError
from ..value_objects.enums import ComplaintIssueType, ComplaintOutcome, ComplaintStatus


class PartsComplaint(Entity):
    """
    Operator report of damaged or missing parts on a bundle operation.

    Complaints live inside their bundle aggregate, so every status change is
    committed with the bundle's compare-and-set. While the complaint is
    unresolved the operations listed in ``frozen_operation_ids`` stay frozen.
    ``version`` increases with every status change.
    """

    bundle_id: UUID
    operation_id: UUID
    reported_by: str
    issue_type: ComplaintIssueType = ComplaintIssueType.DAMAGED
    damaged_parts: list[str] = Field(default_factory=list)
    description: str = Field(default="", max_length=1000)
    status: ComplaintStatus = ComplaintStatus.REPORTED
    frozen_operation_ids: list[UUID] = Field(default_factory=list)
    version: int = Field(default=0, ge=0)

    acknowledged_by: str | None = None
    acknowledged_at: datetime | None = None
    supervisor_notes: str | None = None
    replacement_started_at: datetime | None = None
    replaced_parts: list[str] = Field(default_factory=list)
    resolution: ComplaintOutcome | None = None
    resolved_at: datetime | None = None

    @field_validator("damaged_parts")
    @classmethod
    def strip_part_names(cls, v: list[str]) -> list[str]:
        return [part.strip() for part in v if part and part.strip()]

    @property
    def is_unresolved(self) -> bool:
        return self.status.is_unresolved

    def acknowledge(self, supervisor_id: str, notes: str | None = None) -> None:
        self._change_status(ComplaintStatus.ACKNOWLEDGED)
        self.acknowledged_by = supervisor_id
        self.acknowledged_at = utcnow()
        if notes:
            self.supervisor_notes = notes

    def start_replacement(self) -> None:
        self._change_status(ComplaintStatus.REPLACING)
        self.replacement_started_at = utcnow()

    def resolve(self, outcome: ComplaintOutcome) -> None:
        """
        Close the complaint as resolved.

        Raises:
            IllegalTransitionError: If the complaint cannot be resolved now, or
                parts are reported replaced without a replacement having started
        """
        if outcome == ComplaintOutcome.REJECTED:
            self.reject()
            return
        if (
            outcome == ComplaintOutcome.PARTS_REPLACED
            and self.status != ComplaintStatus.REPLACING
        ):
            raise IllegalTransitionError(
                "PartsComplaint",
                self.id,
                self.status.value,
                ComplaintStatus.RESOLVED.value,
                "parts can only be marked replaced after replacement started",
            )
        self._change_status(ComplaintStatus.RESOLVED)
        self.resolution = outcome
        self.resolved_at = utcnow()
        if outcome == ComplaintOutcome.PARTS_REPLACED:
            self.replaced_parts = list(self.damaged_parts)

    def reject(self) -> None:
        self._change_status(ComplaintStatus.REJECTED)
        self.resolution = ComplaintOutcome.REJECTED
        self.resolved_at = utcnow()

    def _change_status(self, target: ComplaintStatus) -> None:
        if not self.status.can_transition_to(target):
            raise IllegalTransitionError(
                "PartsComplaint", self.id, self.status.value, target.value
            )
        self.status = target
        self.version += 1
        self.mark_updated()
