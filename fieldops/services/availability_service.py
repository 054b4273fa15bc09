# fieldops/services/availability_service.py
"""
Availability checks and available-resource search.

Availability is binary: a resource with any non-cancelled allocation
overlapping the requested window (inclusive bounds) is unavailable, no
matter how many hours that allocation books. Partial capacity is not
modelled.
"""
import logging
from datetime import datetime
from typing import List, Optional

from sqlmodel import Session

from fieldops.core.exceptions import ResourceUnavailableError
from fieldops.core.intervals import normalize_interval
from fieldops.crud.resource import resource_crud, allocation_crud
from fieldops.models.resource import Resource, ResourceAllocation, ResourceType
from fieldops.schemas.resource import AvailabilityCheck, EmployeeProfile, parse_profile

logger = logging.getLogger(__name__)


def blocking_allocations(
    db: Session,
    resource_id: int,
    start_date: datetime,
    end_date: datetime,
    exclude_job_id: Optional[int] = None
) -> List[ResourceAllocation]:
    """Non-cancelled allocations of the resource that overlap the window."""
    start_date, end_date = normalize_interval(start_date, end_date)
    return allocation_crud.list_allocations_for_resource(
        db,
        resource_id,
        window_start=start_date,
        window_end=end_date,
        exclude_job_id=exclude_job_id
    )


def is_available(
    db: Session,
    resource_id: int,
    start_date: datetime,
    end_date: datetime,
    exclude_job_id: Optional[int] = None
) -> bool:
    """True when no other booking overlaps ``[start_date, end_date]``."""
    return not blocking_allocations(db, resource_id, start_date, end_date, exclude_job_id)


def check_availability(
    db: Session,
    resource_id: int,
    start_date: datetime,
    end_date: datetime,
    exclude_job_id: Optional[int] = None
) -> AvailabilityCheck:
    """
    Availability with the evidence a caller needs to explain a refusal.

    The conflict window is the span of the requested interval covered by the
    blocking allocations (earliest overlap start to latest overlap end).
    """
    start_date, end_date = normalize_interval(start_date, end_date)
    blocking = blocking_allocations(db, resource_id, start_date, end_date, exclude_job_id)

    check = AvailabilityCheck(
        resource_id=resource_id,
        start_date=start_date,
        end_date=end_date,
        available=not blocking,
        conflicting_allocation_ids=[a.id for a in blocking]
    )
    if blocking:
        check.conflict_start_date = max(start_date, min(a.start_date for a in blocking))
        check.conflict_end_date = min(end_date, max(a.end_date for a in blocking))
    return check


def ensure_available(
    db: Session,
    resource_id: int,
    start_date: datetime,
    end_date: datetime,
    exclude_job_id: Optional[int] = None
) -> None:
    """Raise ResourceUnavailableError when the window is already booked."""
    check = check_availability(db, resource_id, start_date, end_date, exclude_job_id)
    if not check.available:
        logger.info(
            f"Resource {resource_id} unavailable for {check.start_date.isoformat()}..{check.end_date.isoformat()}: "
            f"blocked by allocations {check.conflicting_allocation_ids}"
        )
        raise ResourceUnavailableError(
            resource_id,
            check.start_date,
            check.end_date,
            check.conflicting_allocation_ids,
            check.conflict_start_date,
            check.conflict_end_date
        )


def find_available_resources(
    db: Session,
    start_date: datetime,
    end_date: datetime,
    resource_type: Optional[ResourceType] = None,
    required_skills: Optional[List[str]] = None
) -> List[Resource]:
    """
    Resources free for the whole window, optionally of one type.

    When ``required_skills`` is non-empty, employees must list every one of
    them; other resource types have no skills and are not filtered by them.
    """
    start_date, end_date = normalize_interval(start_date, end_date)
    available = []

    for resource in resource_crud.list_resources(db, resource_type=resource_type):
        if not is_available(db, resource.id, start_date, end_date):
            continue

        if required_skills:
            profile = parse_profile(resource.type, resource.attributes)
            if isinstance(profile, EmployeeProfile) and not profile.has_skills(required_skills):
                continue

        available.append(resource)

    return available
