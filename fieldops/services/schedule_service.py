# fieldops/services/schedule_service.py
from datetime import datetime

from sqlmodel import Session

from fieldops.core.intervals import normalize_interval
from fieldops.crud.resource import resource_crud, allocation_crud
from fieldops.models.resource import ResourceStatus
from fieldops.schemas.resource import (
    AvailabilityPeriod, AvailabilitySchedule, JobSchedule,
    ResourceAllocation as ResourceAllocationSchema
)


def get_job_schedule(db: Session, job_id: int) -> JobSchedule:
    """A job's bookings and the overall span they cover."""
    allocations = allocation_crud.list_allocations_for_job(db, job_id)

    schedule = JobSchedule(
        job_id=job_id,
        resource_allocations=[ResourceAllocationSchema.model_validate(a) for a in allocations]
    )
    if allocations:
        schedule.start_date = min(a.start_date for a in allocations)
        schedule.end_date = max(a.end_date for a in allocations)
    return schedule


def get_availability_schedule(
    db: Session, resource_id: int, window_start: datetime, window_end: datetime
) -> AvailabilitySchedule:
    """Busy periods of a resource within a window, one per booking."""
    window_start, window_end = normalize_interval(window_start, window_end)
    resource_crud.get_resource(db, resource_id)
    allocations = allocation_crud.list_allocations_for_resource(
        db, resource_id, window_start=window_start, window_end=window_end
    )

    busy_periods = [
        AvailabilityPeriod(
            start_date=a.start_date,
            end_date=a.end_date,
            status=ResourceStatus.scheduled,
            notes=f"Scheduled for job {a.job_id}"
        )
        for a in allocations
    ]

    return AvailabilitySchedule(
        resource_id=resource_id,
        window_start=window_start,
        window_end=window_end,
        busy_periods=busy_periods,
        allocations=[ResourceAllocationSchema.model_validate(a) for a in allocations]
    )
