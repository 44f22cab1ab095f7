"""
Maintenance Use Cases

Retention cleanup and security statistics.
"""

from .perform_security_maintenance_use_case import PerformSecurityMaintenanceUseCase
from .get_security_stats_use_case import GetSecurityStatsUseCase
from .dtos import MaintenanceResponse, SecurityStatsResponse

__all__ = [
    # Use Cases
    "PerformSecurityMaintenanceUseCase",
    "GetSecurityStatsUseCase",
    # DTOs
    "MaintenanceResponse",
    "SecurityStatsResponse",
]
