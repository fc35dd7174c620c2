"""Application services."""

from .maintenance import MaintenanceService

__all__ = [
    "MaintenanceService",
]
