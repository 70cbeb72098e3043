"""Entities and aggregates of the production domain."""

from .assignment import WorkAssignment
from .bundle import WHOLE_GARMENT, BundleOperation, ProductionBundle
from .complaint import PartsComplaint
from .earnings import EarningsRecord, OperatorEarningsSummary
from .operator import OperatorProfile

__all__ = [
    "WHOLE_GARMENT",
    "BundleOperation",
    "EarningsRecord",
    "OperatorEarningsSummary",
    "OperatorProfile",
    "PartsComplaint",
    "ProductionBundle",
    "WorkAssignment",
]
