"""
Domain Exceptions

Typed errors for the production engine. Every error carries an ErrorType so
callers can discriminate faults (a caller asked for something illegal) from
contention (retry against fresh state) and from plain business conditions.
"""

from enum import Enum
from uuid import UUID


class ErrorType(str, Enum):
    """Error type enumeration for discriminated unions."""

    VALIDATION = "validation"
    BUSINESS_RULE = "business_rule"
    RESOURCE_CONFLICT = "resource_conflict"
    CONSTRAINT_VIOLATION = "constraint_violation"
    NOT_FOUND = "not_found"
    REPOSITORY = "repository"
    CONCURRENCY = "concurrency"


class DomainError(Exception):
    """Base class for all domain errors with type discrimination."""

    retryable: bool = False

    def __init__(
        self,
        message: str,
        error_type: ErrorType,
        details: dict[str, str | int | bool | None] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.error_type = error_type
        self.details = details or {}

    def to_dict(self) -> dict[str, str | dict[str, str | int | bool | None]]:
        """Convert error to dictionary for API responses."""
        return {
            "type": self.error_type.value,
            "error": type(self).__name__,
            "message": self.message,
            "details": self.details,
        }


class ValidationError(DomainError):
    """Raised when domain validation rules are violated."""

    def __init__(
        self,
        field_name: str,
        value: str | int | float | bool | None,
        message: str,
        error_code: str | None = None,
        details: dict[str, str | int | bool | None] | None = None,
    ) -> None:
        self.field_name = field_name
        self.value = value
        self.error_code = error_code or "VALIDATION_ERROR"

        full_message = f"Validation failed for field '{field_name}': {message}"
        details = details or {}
        details.update(
            {
                "field": field_name,
                "value": str(value) if value is not None else None,
                "error_code": self.error_code,
            }
        )

        super().__init__(full_message, ErrorType.VALIDATION, details)


class BusinessRuleError(DomainError):
    """Raised when business rules are violated."""

    def __init__(
        self, message: str, details: dict[str, str | int | bool | None] | None = None
    ) -> None:
        super().__init__(message, ErrorType.BUSINESS_RULE, details)


class ResourceConflictError(DomainError):
    """Raised when two writers compete for the same resource."""

    retryable = True

    def __init__(
        self, message: str, details: dict[str, str | int | bool | None] | None = None
    ) -> None:
        super().__init__(message, ErrorType.RESOURCE_CONFLICT, details)


# Cutting input
class InvalidRatioError(ValidationError):
    """Raised when a size ratio or layer count cannot be allocated."""

    def __init__(self, message: str, value: str | int | None = None) -> None:
        super().__init__("ratio", value, message, "INVALID_RATIO")


# Template graph
class TemplateGraphError(DomainError):
    """Raised when a garment template's operation graph is malformed."""

    def __init__(
        self,
        message: str,
        template_id: str | None = None,
        details: dict[str, str | int | bool | None] | None = None,
    ) -> None:
        graph_details = details or {}
        graph_details["template_id"] = template_id
        super().__init__(message, ErrorType.CONSTRAINT_VIOLATION, graph_details)
        self.template_id = template_id


class CyclicDependencyError(TemplateGraphError):
    """Raised when template prerequisites form a cycle."""

    def __init__(self, cycle: list[int], template_id: str | None = None) -> None:
        path = " -> ".join(str(index) for index in cycle)
        super().__init__(
            f"Operation prerequisites form a cycle: {path}",
            template_id,
            {"cycle": path},
        )
        self.cycle = cycle


# Lifecycle
class IllegalTransitionError(BusinessRuleError):
    """Raised when a caller attempts a status change the lifecycle forbids."""

    def __init__(
        self,
        entity_type: str,
        entity_id: UUID,
        current_status: str,
        attempted_status: str,
        reason: str | None = None,
    ) -> None:
        message = (
            f"Cannot change {entity_type} {entity_id} "
            f"from {current_status} to {attempted_status}"
        )
        if reason:
            message += f": {reason}"
        super().__init__(
            message,
            {
                "entity_type": entity_type,
                "entity_id": str(entity_id),
                "current_status": current_status,
                "attempted_status": attempted_status,
                "reason": reason,
            },
        )
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.current_status = current_status
        self.attempted_status = attempted_status
        self.reason = reason


class ComplaintBlockingError(BusinessRuleError):
    """Raised when an operation is frozen by an unresolved parts complaint."""

    def __init__(self, operation_id: UUID, complaint_ids: list[UUID]) -> None:
        joined = ", ".join(str(cid) for cid in complaint_ids)
        super().__init__(
            f"Operation {operation_id} is frozen by unresolved complaint(s): {joined}",
            {"operation_id": str(operation_id), "complaint_ids": joined},
        )
        self.operation_id = operation_id
        self.complaint_ids = complaint_ids


class AlreadyCompletedError(BusinessRuleError):
    """Raised on a second completion of the same operation."""

    def __init__(self, operation_id: UUID) -> None:
        super().__init__(
            f"Operation {operation_id} is already completed",
            {"operation_id": str(operation_id), "status": "completed"},
        )
        self.operation_id = operation_id


class CapacityExceededError(BusinessRuleError):
    """Raised when more pieces are reported than were assigned."""

    def __init__(
        self, operation_id: UUID, completed_pieces: int, assigned_pieces: int
    ) -> None:
        super().__init__(
            f"Operation {operation_id}: {completed_pieces} pieces reported, "
            f"only {assigned_pieces} assigned",
            {
                "operation_id": str(operation_id),
                "completed_pieces": completed_pieces,
                "assigned_pieces": assigned_pieces,
            },
        )
        self.operation_id = operation_id
        self.completed_pieces = completed_pieces
        self.assigned_pieces = assigned_pieces


# Assignment
class AlreadyAssignedError(ResourceConflictError):
    """Raised when the operation's assignment slot is already taken."""

    def __init__(
        self,
        operation_id: UUID,
        current_operator_id: str | None = None,
        reason: str = "slot_occupied",
    ) -> None:
        message = f"Operation {operation_id} is already assigned"
        if current_operator_id:
            message += f" to operator {current_operator_id}"
        super().__init__(
            message,
            {
                "operation_id": str(operation_id),
                "current_operator_id": current_operator_id,
                "reason": reason,
            },
        )
        self.operation_id = operation_id
        self.current_operator_id = current_operator_id
        self.reason = reason


class NoCompatibleOperatorError(BusinessRuleError):
    """Raised (on request) when no operator reaches the score threshold."""

    def __init__(
        self,
        operation_id: UUID,
        min_score: int,
        best_score: int | None = None,
        candidates: int = 0,
    ) -> None:
        message = (
            f"No operator for operation {operation_id} reaches score {min_score}"
        )
        if best_score is not None:
            message += f" (best: {best_score})"
        super().__init__(
            message,
            {
                "operation_id": str(operation_id),
                "min_score": min_score,
                "best_score": best_score,
                "candidates": candidates,
            },
        )
        self.operation_id = operation_id
        self.min_score = min_score
        self.best_score = best_score
        self.candidates = candidates


# Repository exceptions
class RepositoryError(DomainError):
    """Base class for repository-related errors."""

    def __init__(
        self, message: str, details: dict[str, str | int | bool | None] | None = None
    ) -> None:
        super().__init__(message, ErrorType.REPOSITORY, details)


class EntityNotFoundError(RepositoryError):
    """Raised when entity is not found in repository."""

    def __init__(self, entity_type: str, entity_id: UUID | str) -> None:
        super().__init__(
            f"{entity_type} not found: {entity_id}",
            {"entity_type": entity_type, "entity_id": str(entity_id)},
        )
        self.error_type = ErrorType.NOT_FOUND
        self.entity_type = entity_type
        self.entity_id = entity_id


class DuplicateEntityError(RepositoryError):
    """Raised when an entity with the same identity is stored twice."""

    def __init__(self, entity_type: str, entity_id: UUID | str) -> None:
        super().__init__(
            f"{entity_type} already exists: {entity_id}",
            {"entity_type": entity_type, "entity_id": str(entity_id)},
        )
        self.entity_type = entity_type
        self.entity_id = entity_id


class ConcurrencyError(RepositoryError):
    """Raised when a compare-and-set loses against a concurrent writer."""

    retryable = True

    def __init__(
        self,
        entity_type: str,
        entity_id: UUID,
        expected_version: int | None = None,
        actual_version: int | None = None,
    ) -> None:
        super().__init__(
            f"Concurrent modification of {entity_type}: {entity_id}",
            {
                "entity_type": entity_type,
                "entity_id": str(entity_id),
                "expected_version": expected_version,
                "actual_version": actual_version,
            },
        )
        self.error_type = ErrorType.CONCURRENCY
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.expected_version = expected_version
        self.actual_version = actual_version
