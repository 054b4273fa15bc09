# fieldops/services/__init__.py
"""
Scheduling services: availability, conflicts, utilization and schedules.
"""

from fieldops.services.availability_service import (
    is_available, check_availability, ensure_available, find_available_resources
)
from fieldops.services.conflict_service import find_conflicts, classify_severity
from fieldops.services.utilization_service import calculate_utilization
from fieldops.services.schedule_service import get_job_schedule, get_availability_schedule

__all__ = [
    "is_available",
    "check_availability",
    "ensure_available",
    "find_available_resources",
    "find_conflicts",
    "classify_severity",
    "calculate_utilization",
    "get_job_schedule",
    "get_availability_schedule",
]
