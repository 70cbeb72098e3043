"""
In-memory repository implementations.

Every read hands out a deep copy so callers mutate private state; writes go
through a lock. The bundle repository implements compare-and-set on the
bundle version.
"""

import logging
import threading
from collections.abc import Iterable
from uuid import UUID

from ...domain.production.entities.bundle import ProductionBundle
from ...domain.production.entities.complaint import PartsComplaint
from ...domain.production.entities.earnings import EarningsRecord
from ...domain.production.entities.operator import OperatorProfile
from ...domain.production.repositories import (
    BundleRepository,
    ComplaintRepository,
    EarningsLedger,
    OperatorRegistry,
    TemplateLibrary,
)
from ...domain.production.value_objects.enums import BundleStatus
from ...domain.production.value_objects.template import GarmentTemplate
from ...domain.shared.exceptions import (
    AlreadyCompletedError,
    ConcurrencyError,
    DuplicateEntityError,
    EntityNotFoundError,
)

logger = logging.getLogger(__name__)


class InMemoryBundleRepository(BundleRepository):
    """Versioned bundle store guarded by a single lock."""

    def __init__(self) -> None:
        self._bundles: dict[UUID, ProductionBundle] = {}
        self._operation_index: dict[UUID, UUID] = {}
        self._lock = threading.Lock()

    @staticmethod
    def _snapshot(bundle: ProductionBundle) -> ProductionBundle:
        stored = bundle.model_copy(deep=True)
        stored.clear_domain_events()
        return stored

    def _index(self, bundle: ProductionBundle) -> None:
        for operation_id in bundle.operation_ids:
            self._operation_index[operation_id] = bundle.id

    def add_all(self, bundles: list[ProductionBundle]) -> None:
        with self._lock:
            for bundle in bundles:
                if bundle.id in self._bundles:
                    raise DuplicateEntityError("ProductionBundle", bundle.id)
            for bundle in bundles:
                self._bundles[bundle.id] = self._snapshot(bundle)
                self._index(bundle)
        logger.debug(f"Stored {len(bundles)} bundles")

    def get(self, bundle_id: UUID) -> ProductionBundle:
        with self._lock:
            stored = self._bundles.get(bundle_id)
            if stored is None:
                raise EntityNotFoundError("ProductionBundle", bundle_id)
            return stored.model_copy(deep=True)

    def get_by_operation(self, operation_id: UUID) -> ProductionBundle:
        with self._lock:
            bundle_id = self._operation_index.get(operation_id)
            if bundle_id is None:
                raise EntityNotFoundError("BundleOperation", operation_id)
            return self._bundles[bundle_id].model_copy(deep=True)

    def compare_and_set(self, bundle: ProductionBundle, expected_version: int) -> int:
        with self._lock:
            stored = self._bundles.get(bundle.id)
            if stored is None:
                raise EntityNotFoundError("ProductionBundle", bundle.id)
            if stored.version != expected_version:
                logger.info(
                    f"Version conflict on bundle {bundle.bundle_number}: "
                    f"expected {expected_version}, found {stored.version}"
                )
                raise ConcurrencyError(
                    "ProductionBundle", bundle.id, expected_version, stored.version
                )
            bundle.version = expected_version + 1
            self._bundles[bundle.id] = self._snapshot(bundle)
            self._index(bundle)
            return bundle.version

    def find_by_lot(self, lot_id: str) -> list[ProductionBundle]:
        with self._lock:
            found = [b for b in self._bundles.values() if b.lot_id == lot_id]
            return [
                b.model_copy(deep=True)
                for b in sorted(found, key=lambda b: b.bundle_number)
            ]

    def find_by_status(self, status: BundleStatus) -> list[ProductionBundle]:
        with self._lock:
            return [
                b.model_copy(deep=True)
                for b in self._bundles.values()
                if b.status == status
            ]


class InMemoryComplaintRepository(ComplaintRepository):
    def __init__(self) -> None:
        self._complaints: dict[UUID, PartsComplaint] = {}
        self._lock = threading.Lock()

    def save(self, complaint: PartsComplaint) -> None:
        with self._lock:
            stored = self._complaints.get(complaint.id)
            if stored is not None and stored.version > complaint.version:
                logger.debug(
                    f"Ignoring stale snapshot of complaint {complaint.id}: "
                    f"version {complaint.version}, stored {stored.version}"
                )
                return
            self._complaints[complaint.id] = complaint.model_copy(deep=True)

    def get(self, complaint_id: UUID) -> PartsComplaint:
        with self._lock:
            stored = self._complaints.get(complaint_id)
            if stored is None:
                raise EntityNotFoundError("PartsComplaint", complaint_id)
            return stored.model_copy(deep=True)

    def find_by_bundle(self, bundle_id: UUID) -> list[PartsComplaint]:
        with self._lock:
            return [
                c.model_copy(deep=True)
                for c in self._complaints.values()
                if c.bundle_id == bundle_id
            ]

    def find_unresolved(self) -> list[PartsComplaint]:
        with self._lock:
            return [
                c.model_copy(deep=True)
                for c in self._complaints.values()
                if c.is_unresolved
            ]


class InMemoryEarningsLedger(EarningsLedger):
    """Append-only ledger keyed by operation id."""

    def __init__(self) -> None:
        self._records: dict[UUID, EarningsRecord] = {}
        self._lock = threading.Lock()

    def record(self, record: EarningsRecord) -> None:
        with self._lock:
            if record.operation_id in self._records:
                raise AlreadyCompletedError(record.operation_id)
            self._records[record.operation_id] = record

    def find_by_operation(self, operation_id: UUID) -> EarningsRecord | None:
        with self._lock:
            return self._records.get(operation_id)

    def find_by_operator(self, operator_id: str) -> list[EarningsRecord]:
        with self._lock:
            return [r for r in self._records.values() if r.operator_id == operator_id]

    def all(self) -> list[EarningsRecord]:
        with self._lock:
            return list(self._records.values())


class InMemoryOperatorRegistry(OperatorRegistry):
    def __init__(self, operators: Iterable[OperatorProfile] = ()) -> None:
        self._operators: dict[str, OperatorProfile] = {}
        self._lock = threading.Lock()
        for operator in operators:
            self.upsert(operator)

    def upsert(self, operator: OperatorProfile) -> None:
        with self._lock:
            self._operators[operator.id] = operator

    def snapshot(self) -> list[OperatorProfile]:
        with self._lock:
            return list(self._operators.values())

    def find_by_id(self, operator_id: str) -> OperatorProfile | None:
        with self._lock:
            return self._operators.get(operator_id)


class InMemoryTemplateLibrary(TemplateLibrary):
    def __init__(self, templates: Iterable[GarmentTemplate] = ()) -> None:
        self._templates: dict[str, GarmentTemplate] = {t.id: t for t in templates}

    def add(self, template: GarmentTemplate) -> None:
        self._templates[template.id] = template

    def get(self, template_id: str) -> GarmentTemplate:
        template = self._templates.get(template_id)
        if template is None:
            raise EntityNotFoundError("GarmentTemplate", template_id)
        return template
