"""
Collaborator Interfaces

Read-only views of data the engine does not own (operators, templates) and
stores for the records it produces (complaints, earnings).
"""

from abc import ABC, abstractmethod
from uuid import UUID

from ..entities.complaint import PartsComplaint
from ..entities.earnings import EarningsRecord
from ..entities.operator import OperatorProfile
from ..value_objects.template import GarmentTemplate


class OperatorRegistry(ABC):
    """Source of operator snapshots at matching time."""

    @abstractmethod
    def snapshot(self) -> list[OperatorProfile]:
        """Return the current state of every known operator."""
        ...

    @abstractmethod
    def find_by_id(self, operator_id: str) -> OperatorProfile | None:
        ...


class TemplateLibrary(ABC):
    """Source of garment templates."""

    @abstractmethod
    def get(self, template_id: str) -> GarmentTemplate:
        """
        Raises:
            EntityNotFoundError: If the template is unknown
        """
        ...


class ComplaintRepository(ABC):
    """
    Read index of parts complaints.

    The owning bundle is the source of truth; the engine saves a snapshot
    here after each committed complaint write.
    """

    @abstractmethod
    def save(self, complaint: PartsComplaint) -> None:
        """Store the snapshot unless a newer version is already stored."""
        ...

    @abstractmethod
    def get(self, complaint_id: UUID) -> PartsComplaint:
        """
        Raises:
            EntityNotFoundError: If no complaint has this id
        """
        ...

    @abstractmethod
    def find_by_bundle(self, bundle_id: UUID) -> list[PartsComplaint]:
        ...

    @abstractmethod
    def find_unresolved(self) -> list[PartsComplaint]:
        ...


class EarningsLedger(ABC):
    """Append-only store of earnings records, one per operation."""

    @abstractmethod
    def record(self, record: EarningsRecord) -> None:
        """
        Append a record.

        Raises:
            AlreadyCompletedError: If the operation already has a record
        """
        ...

    @abstractmethod
    def find_by_operation(self, operation_id: UUID) -> EarningsRecord | None:
        ...

    @abstractmethod
    def find_by_operator(self, operator_id: str) -> list[EarningsRecord]:
        ...

    @abstractmethod
    def all(self) -> list[EarningsRecord]:
        ...
