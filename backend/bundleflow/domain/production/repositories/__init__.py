"""
Repository Interfaces

Abstract contracts for persistence and for the external collaborators the
engine reads from. Implementations live in the infrastructure layer.
"""

from .bundle_repository import BundleRepository
from .collaborators import (
    ComplaintRepository,
    EarningsLedger,
    OperatorRegistry,
    TemplateLibrary,
)

__all__ = [
    "BundleRepository",
    "ComplaintRepository",
    "EarningsLedger",
    "OperatorRegistry",
    "TemplateLibrary",
]
