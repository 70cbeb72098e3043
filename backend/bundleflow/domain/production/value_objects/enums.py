"""Domain enums for bundle production."""

from enum import Enum


class BundleStatus(str, Enum):
    """Bundle status enumeration."""

    DRAFT = "draft"
    CUTTING = "cutting"
    READY = "ready"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    ON_HOLD = "on_hold"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        """Check if bundle status is terminal (cannot transition further)."""
        return self in {BundleStatus.COMPLETED, BundleStatus.CANCELLED}

    @property
    def accepts_assignments(self) -> bool:
        """Whether operations of a bundle in this status may be assigned."""
        return self in {BundleStatus.READY, BundleStatus.IN_PROGRESS}

    def can_transition_to(self, target_status: "BundleStatus") -> bool:
        """Check if bundle can transition from current status to target status."""
        if target_status == BundleStatus.ON_HOLD:
            return not self.is_terminal and self != BundleStatus.ON_HOLD
        valid_transitions = {
            BundleStatus.DRAFT: {BundleStatus.CUTTING},
            BundleStatus.CUTTING: {BundleStatus.READY},
            BundleStatus.READY: {BundleStatus.IN_PROGRESS},
            BundleStatus.IN_PROGRESS: {BundleStatus.COMPLETED, BundleStatus.CANCELLED},
            # Resuming from hold is checked against the stored resume status
            BundleStatus.ON_HOLD: {
                BundleStatus.DRAFT,
                BundleStatus.CUTTING,
                BundleStatus.READY,
                BundleStatus.IN_PROGRESS,
            },
            BundleStatus.COMPLETED: set(),  # Terminal state
            BundleStatus.CANCELLED: set(),  # Terminal state
        }
        return target_status in valid_transitions.get(self, set())


class OperationStatus(str, Enum):
    """Bundle operation status enumeration."""

    WAITING = "waiting"  # Prerequisites not yet completed
    READY = "ready"  # All prerequisites completed, awaiting an operator
    ASSIGNED = "assigned"  # Operator holds the assignment slot
    IN_PROGRESS = "in_progress"  # Operator started sewing
    COMPLETED = "completed"
    QUALITY_FAILED = "quality_failed"
    FROZEN = "frozen"  # Blocked by an unresolved parts complaint
    SKIPPED = "skipped"  # Optional operation deliberately left out

    @property
    def is_terminal(self) -> bool:
        """Check if operation status is terminal."""
        return self in {
            OperationStatus.COMPLETED,
            OperationStatus.QUALITY_FAILED,
            OperationStatus.SKIPPED,
        }

    @property
    def holds_assignment(self) -> bool:
        """Check if an operator currently holds this operation."""
        return self in {OperationStatus.ASSIGNED, OperationStatus.IN_PROGRESS}

    def can_transition_to(self, target_status: "OperationStatus") -> bool:
        """Check if operation can transition from current status to target status."""
        valid_transitions = {
            OperationStatus.WAITING: {
                OperationStatus.READY,
                OperationStatus.FROZEN,
                OperationStatus.SKIPPED,
            },
            OperationStatus.READY: {
                OperationStatus.ASSIGNED,
                OperationStatus.FROZEN,
                OperationStatus.SKIPPED,
            },
            OperationStatus.ASSIGNED: {
                OperationStatus.IN_PROGRESS,
                OperationStatus.READY,  # Assignment released
                OperationStatus.FROZEN,
            },
            OperationStatus.IN_PROGRESS: {
                OperationStatus.COMPLETED,
                OperationStatus.QUALITY_FAILED,
                OperationStatus.FROZEN,
            },
            OperationStatus.FROZEN: {
                OperationStatus.WAITING,
                OperationStatus.READY,
                OperationStatus.ASSIGNED,
                OperationStatus.IN_PROGRESS,
            },
            OperationStatus.COMPLETED: set(),  # Terminal state
            OperationStatus.QUALITY_FAILED: set(),  # Re-queue creates a new operation
            OperationStatus.SKIPPED: set(),  # Terminal state
        }
        return target_status in valid_transitions.get(self, set())


class AssignmentStatus(str, Enum):
    """Work assignment status enumeration."""

    ACTIVE = "active"
    RELEASED = "released"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        """Only an active assignment occupies the operation's slot."""
        return self != AssignmentStatus.ACTIVE


class ComplaintStatus(str, Enum):
    """Parts complaint status enumeration."""

    REPORTED = "reported"
    ACKNOWLEDGED = "acknowledged"
    REPLACING = "replacing"
    RESOLVED = "resolved"
    REJECTED = "rejected"

    @property
    def is_unresolved(self) -> bool:
        """Unresolved complaints keep their operations frozen."""
        return self in {
            ComplaintStatus.REPORTED,
            ComplaintStatus.ACKNOWLEDGED,
            ComplaintStatus.REPLACING,
        }

    def can_transition_to(self, target_status: "ComplaintStatus") -> bool:
        """Check if complaint can transition from current status to target status."""
        valid_transitions = {
            ComplaintStatus.REPORTED: {
                ComplaintStatus.ACKNOWLEDGED,
                ComplaintStatus.REJECTED,
            },
            ComplaintStatus.ACKNOWLEDGED: {
                ComplaintStatus.REPLACING,
                ComplaintStatus.RESOLVED,
                ComplaintStatus.REJECTED,
            },
            ComplaintStatus.REPLACING: {
                ComplaintStatus.RESOLVED,
                ComplaintStatus.REJECTED,
            },
            ComplaintStatus.RESOLVED: set(),
            ComplaintStatus.REJECTED: set(),
        }
        return target_status in valid_transitions.get(self, set())


class ComplaintIssueType(str, Enum):
    """What is wrong with the reported parts."""

    DAMAGED = "damaged"
    MISSING = "missing"
    DEFECTIVE = "defective"
    WRONG_SIZE = "wrong_size"
    WRONG_COLOR = "wrong_color"
    OTHER = "other"


class ComplaintOutcome(str, Enum):
    """Supervisor decision closing a parts complaint."""

    PARTS_REPLACED = "parts_replaced"
    APPROVED_AS_IS = "approved_as_is"
    REJECTED = "rejected"


class OperatorStatus(str, Enum):
    """Operator status enumeration."""

    AVAILABLE = "available"
    BUSY = "busy"
    ON_BREAK = "on_break"
    OFFLINE = "offline"

    @property
    def is_available_for_work(self) -> bool:
        """Check if operator is available for new assignments."""
        return self == OperatorStatus.AVAILABLE


class SkillLevel(str, Enum):
    """Operator skill level, also used as an operation's requirement."""

    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"
    EXPERT = "expert"

    @property
    def numeric_value(self) -> int:
        """Get numeric value for comparison."""
        return {
            SkillLevel.BEGINNER: 1,
            SkillLevel.INTERMEDIATE: 2,
            SkillLevel.ADVANCED: 3,
            SkillLevel.EXPERT: 4,
        }[self]

    def meets_minimum(self, minimum_level: "SkillLevel") -> bool:
        """Check if this skill level meets the minimum requirement."""
        return self.numeric_value >= minimum_level.numeric_value


class QualityGrade(str, Enum):
    """Quality rating recorded with a completed operation."""

    A_PLUS = "A+"
    A = "A"
    B = "B"
    C = "C"
