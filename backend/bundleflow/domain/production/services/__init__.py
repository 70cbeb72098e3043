"""
Production Domain Services

Stateless services that build bundles and drive their lifecycle.
"""

from .assignment_matcher import (
    AssignmentMatcher,
    AssignmentPolicy,
    ColorOwnershipPolicy,
    CompatibilityScoringPolicy,
    NoCompatibleOperator,
    OperatorMatch,
    compatibility_score,
)
from .bundle_chunker import BundleChunker
from .earnings_calculator import BundleValue, EarningsCalculator
from .lifecycle_state_machine import LifecycleStateMachine
from .operation_graph_builder import OperationGraphBuilder
from .parts_complaint_handler import PartsComplaintHandler
from .ratio_allocator import RatioAllocator

__all__ = [
    "AssignmentMatcher",
    "AssignmentPolicy",
    "BundleChunker",
    "BundleValue",
    "ColorOwnershipPolicy",
    "CompatibilityScoringPolicy",
    "EarningsCalculator",
    "LifecycleStateMachine",
    "NoCompatibleOperator",
    "OperationGraphBuilder",
    "OperatorMatch",
    "PartsComplaintHandler",
    "RatioAllocator",
    "compatibility_score",
]
