"""
Bundle Repository Interface

Versioned persistence contract for bundle aggregates. Implementations must
make ``compare_and_set`` atomic: the write is accepted only when the stored
version still equals the version the caller read.
"""

from abc import ABC, abstractmethod
from uuid import UUID

from ..entities.bundle import ProductionBundle
from ..value_objects.enums import BundleStatus


class BundleRepository(ABC):
    """Repository interface for ProductionBundle aggregates."""

    @abstractmethod
    def add_all(self, bundles: list[ProductionBundle]) -> None:
        """
        Store newly created bundles.

        Raises:
            DuplicateEntityError: If any bundle id already exists
        """
        ...

    @abstractmethod
    def get(self, bundle_id: UUID) -> ProductionBundle:
        """
        Return a private copy of the stored bundle, including its version.

        Raises:
            EntityNotFoundError: If no bundle has this id
        """
        ...

    @abstractmethod
    def get_by_operation(self, operation_id: UUID) -> ProductionBundle:
        """
        Return a private copy of the bundle that owns ``operation_id``.

        Raises:
            EntityNotFoundError: If no bundle owns the operation
        """
        ...

    @abstractmethod
    def compare_and_set(self, bundle: ProductionBundle, expected_version: int) -> int:
        """
        Replace the stored bundle if its version equals ``expected_version``.

        Returns:
            The new version

        Raises:
            ConcurrencyError: If another writer got there first
            EntityNotFoundError: If the bundle does not exist
        """
        ...

    @abstractmethod
    def find_by_lot(self, lot_id: str) -> list[ProductionBundle]:
        """Find all bundles of a production lot, in bundle-number order."""
        ...

    @abstractmethod
    def find_by_status(self, status: BundleStatus) -> list[ProductionBundle]:
        """Find bundles currently in ``status``."""
        ...
