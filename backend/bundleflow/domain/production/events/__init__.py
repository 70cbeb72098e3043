"""
Domain Events Module

Exports all production domain events.
"""

from .domain_events import (
    # Bundle events
    BundlesCreated,
    BundleStatusChanged,
    # Complaint events
    ComplaintRaised,
    ComplaintResolved,
    # Operation events
    OperationAssigned,
    OperationAssignmentReleased,
    OperationCompleted,
    OperationQualityFailed,
    OperationReady,
    OperationRequeued,
    OperationStarted,
)

__all__ = [
    "BundlesCreated",
    "BundleStatusChanged",
    "OperationReady",
    "OperationAssigned",
    "OperationAssignmentReleased",
    "OperationStarted",
    "OperationCompleted",
    "OperationQualityFailed",
    "OperationRequeued",
    "ComplaintRaised",
    "ComplaintResolved",
]
