from .in_memory import (
    InMemoryBundleRepository,
    InMemoryComplaintRepository,
    InMemoryEarningsLedger,
    InMemoryOperatorRegistry,
    InMemoryTemplateLibrary,
)

__all__ = [
    "InMemoryBundleRepository",
    "InMemoryComplaintRepository",
    "InMemoryEarningsLedger",
    "InMemoryOperatorRegistry",
    "InMemoryTemplateLibrary",
]
