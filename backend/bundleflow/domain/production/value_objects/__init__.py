"""Value objects for the production domain."""

from .cutting import ColorBatch, FabricRoll, GarmentPart, SizeAllocation, SizeRatio
from .enums import (
    AssignmentStatus,
    BundleStatus,
    ComplaintIssueType,
    ComplaintOutcome,
    ComplaintStatus,
    OperationStatus,
    OperatorStatus,
    QualityGrade,
    SkillLevel,
)
from .template import GarmentTemplate, OperationDefinition

__all__ = [
    # Cutting input
    "ColorBatch",
    "FabricRoll",
    "GarmentPart",
    "SizeAllocation",
    "SizeRatio",
    # Templates
    "GarmentTemplate",
    "OperationDefinition",
    # Enums
    "AssignmentStatus",
    "BundleStatus",
    "ComplaintIssueType",
    "ComplaintOutcome",
    "ComplaintStatus",
    "OperationStatus",
    "OperatorStatus",
    "QualityGrade",
    "SkillLevel",
]
