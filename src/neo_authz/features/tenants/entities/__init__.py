"""Tenant entities."""

from .tenant import Tenant
from .boundary import BoundaryResult, BoundaryReason

__all__ = [
    "Tenant",
    "BoundaryResult",
    "BoundaryReason",
]
