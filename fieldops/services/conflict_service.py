# fieldops/services/conflict_service.py
"""
Conflict detection for a job's resource allocations.

For each allocation of the job, every other job's non-cancelled booking of
the same resource that overlaps it is a conflict. The conflict window is
narrowed progressively: start moves to the latest conflicting start, end to
the earliest conflicting end. Severity is scored from the share of the
subject allocation's own duration covered by that window.
"""
import logging
from datetime import datetime
from typing import List, Optional, Tuple

from sqlmodel import Session

from fieldops.core.intervals import overlap_interval
from fieldops.crud.resource import resource_crud, allocation_crud
from fieldops.models.resource import ResourceAllocation
from fieldops.schemas.resource import (
    ConflictSeverity, ResourceConflict, ResourceAllocation as ResourceAllocationSchema
)

logger = logging.getLogger(__name__)

# Strict thresholds: exactly 75% is medium, exactly 25% is low
HIGH_SEVERITY_THRESHOLD = 75.0
MEDIUM_SEVERITY_THRESHOLD = 25.0


def classify_severity(overlap_percentage: float) -> ConflictSeverity:
    if overlap_percentage > HIGH_SEVERITY_THRESHOLD:
        return ConflictSeverity.high
    if overlap_percentage > MEDIUM_SEVERITY_THRESHOLD:
        return ConflictSeverity.medium
    return ConflictSeverity.low


def merge_conflict_window(
    allocation: ResourceAllocation, conflicting: List[ResourceAllocation]
) -> Tuple[datetime, datetime]:
    """
    Tightest sub-interval of ``allocation`` shared with every conflicting booking.

    When the conflicting bookings share no common instant the narrowed window
    would be inverted; the largest single pairwise overlap is used instead.
    """
    conflict_start = allocation.start_date
    conflict_end = allocation.end_date

    for other in conflicting:
        if other.start_date > conflict_start:
            conflict_start = other.start_date
        if other.end_date < conflict_end:
            conflict_end = other.end_date

    if conflict_start <= conflict_end:
        return conflict_start, conflict_end

    pairwise = [
        overlap_interval(allocation.start_date, allocation.end_date, other.start_date, other.end_date)
        for other in conflicting
    ]
    return max(
        (window for window in pairwise if window is not None),
        key=lambda window: window[1] - window[0]
    )


def overlap_percentage(allocation: ResourceAllocation, conflict_start: datetime, conflict_end: datetime) -> float:
    """Share of the allocation's duration inside the conflict window, in percent."""
    allocation_seconds = (allocation.end_date - allocation.start_date).total_seconds()
    conflict_seconds = (conflict_end - conflict_start).total_seconds()
    if allocation_seconds <= 0:
        # A zero-length booking that conflicts at all is fully covered
        return 100.0
    return conflict_seconds / allocation_seconds * 100


def conflicts_for_allocation(db: Session, allocation: ResourceAllocation) -> Optional[ResourceConflict]:
    """The conflict group for one allocation, or None when it is uncontested."""
    conflicting = allocation_crud.list_allocations_for_resource(
        db,
        allocation.resource_id,
        window_start=allocation.start_date,
        window_end=allocation.end_date,
        exclude_job_id=allocation.job_id
    )
    if not conflicting:
        return None

    resource = resource_crud.get_resource(db, allocation.resource_id)
    conflict_start, conflict_end = merge_conflict_window(allocation, conflicting)
    percentage = overlap_percentage(allocation, conflict_start, conflict_end)

    return ResourceConflict(
        resource_id=allocation.resource_id,
        resource_name=resource.name,
        allocation_id=allocation.id,
        conflicting_allocations=[ResourceAllocationSchema.model_validate(a) for a in conflicting],
        conflict_start_date=conflict_start,
        conflict_end_date=conflict_end,
        overlap_percentage=percentage,
        severity=classify_severity(percentage)
    )


def find_conflicts(db: Session, job_id: int) -> List[ResourceConflict]:
    """
    Find double-bookings for every non-cancelled allocation of ``job_id``.

    One entry is returned per contested allocation, so a resource may appear
    more than once if several of the job's bookings conflict independently.
    """
    conflicts = []

    for allocation in allocation_crud.list_allocations_for_job(db, job_id):
        conflict = conflicts_for_allocation(db, allocation)
        if conflict is not None:
            conflicts.append(conflict)

    if conflicts:
        logger.info(f"Job {job_id} has {len(conflicts)} conflicting allocation(s)")
    return conflicts
