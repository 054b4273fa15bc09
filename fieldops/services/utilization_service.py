# fieldops/services/utilization_service.py
"""
Resource utilization over a reporting window.

Allocated hours are the wall-clock span of each booking clipped to the
window, not ``hours_allocated``. Available hours assume a fixed working day
(``settings.WORKDAY_HOURS``, 8 by default) over the window's length in days.
Percentages above 100 mean the resource is double-booked.
"""
from datetime import datetime
from typing import List, Optional

from sqlmodel import Session

from fieldops.core.config import settings
from fieldops.core.intervals import clipped_duration_hours, duration_hours, normalize_interval
from fieldops.crud.resource import resource_crud, allocation_crud
from fieldops.schemas.resource import ResourceUtilization, ResourceAllocation as ResourceAllocationSchema


def available_hours(window_start: datetime, window_end: datetime, workday_hours: Optional[float] = None) -> float:
    if workday_hours is None:
        workday_hours = settings.WORKDAY_HOURS
    days_in_window = duration_hours(window_start, window_end) / 24
    return days_in_window * workday_hours


def calculate_utilization(
    db: Session,
    resource_ids: List[int],
    window_start: datetime,
    window_end: datetime,
    workday_hours: Optional[float] = None
) -> List[ResourceUtilization]:
    window_start, window_end = normalize_interval(window_start, window_end)
    total_available_hours = available_hours(window_start, window_end, workday_hours)
    utilization = []

    for resource_id in resource_ids:
        resource = resource_crud.get_resource(db, resource_id)
        allocations = allocation_crud.list_allocations_for_resource(
            db, resource_id, window_start=window_start, window_end=window_end
        )

        total_hours_allocated = sum(
            clipped_duration_hours(a.start_date, a.end_date, window_start, window_end)
            for a in allocations
        )

        # An empty window has no capacity to measure against
        utilization_percentage = 0.0
        if total_available_hours > 0:
            utilization_percentage = (total_hours_allocated / total_available_hours) * 100

        utilization.append(ResourceUtilization(
            resource_id=resource_id,
            resource_name=resource.name,
            resource_type=resource.type,
            total_hours_allocated=total_hours_allocated,
            total_available_hours=total_available_hours,
            utilization_percentage=utilization_percentage,
            allocations=[ResourceAllocationSchema.model_validate(a) for a in allocations]
        ))

    return utilization
