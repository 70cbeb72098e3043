"""Application services for the bundle production use cases."""

from .production_engine import BundleProgress, ProductionEngine

__all__ = [
    "BundleProgress",
    "ProductionEngine",
]
