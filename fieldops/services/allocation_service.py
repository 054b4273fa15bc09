# fieldops/services/allocation_service.py
"""
Availability-checked allocation writes.

Every write that can create a double-booking holds the resource's lock
(process-local lock plus the row lock on the resource) from the
availability check through the commit of the write. Each committed change
is then appended to the audit trail; if that follow-up fails the caller
gets a PartialFailureError naming the allocation that was written.
"""
import logging
from typing import Any, Dict, Optional

from sqlmodel import Session

from fieldops.core.exceptions import DomainError, PartialFailureError, StoreError
from fieldops.core.intervals import normalize_interval
from fieldops.core.locks import resource_locks
from fieldops.crud.resource import (
    resource_crud, allocation_crud, allocation_event_crud, allocation_snapshot
)
from fieldops.models.resource import ResourceAllocation, AllocationStatus
from fieldops.schemas.resource import ResourceAllocationCreate, ResourceAllocationUpdate
from fieldops.services.availability_service import ensure_available

logger = logging.getLogger(__name__)


def _record_event(
    db: Session,
    snapshot: Dict[str, Any],
    action: str,
    completed_step: str,
    old_values: Optional[Dict[str, Any]] = None,
    new_values: Optional[Dict[str, Any]] = None
) -> None:
    try:
        allocation_event_crud.record_event(
            db,
            snapshot["id"],
            snapshot["job_id"],
            snapshot["resource_id"],
            action,
            old_values=old_values,
            new_values=new_values
        )
    except StoreError as e:
        logger.error(f"Allocation {snapshot['id']} written but audit record failed: {e}")
        raise PartialFailureError(snapshot["id"], completed_step, "record_allocation_event", e) from e


def allocate_resource(
    db: Session, allocation_data: ResourceAllocationCreate, timeout: Optional[float] = None
) -> ResourceAllocation:
    """Book a resource for a job, failing with ResourceUnavailableError on overlap."""
    start_date, end_date = normalize_interval(allocation_data.start_date, allocation_data.end_date)

    with resource_locks.hold(allocation_data.resource_id):
        try:
            resource = resource_crud.lock_resource(db, allocation_data.resource_id, timeout)
            if allocation_data.status != AllocationStatus.cancelled:
                ensure_available(db, resource.id, start_date, end_date, exclude_job_id=allocation_data.job_id)
            allocation = allocation_crud.create_allocation(db, allocation_data, resource, timeout)
        except DomainError:
            db.rollback()
            raise

    logger.info(
        f"Allocated resource {allocation.resource_id} to job {allocation.job_id} "
        f"for {allocation.start_date.isoformat()}..{allocation.end_date.isoformat()} (allocation {allocation.id})"
    )
    snapshot = allocation_snapshot(allocation)
    _record_event(db, snapshot, "allocation.created", "create_allocation", new_values=snapshot)
    return allocation


def _needs_availability_check(allocation: ResourceAllocation, allocation_data: ResourceAllocationUpdate) -> bool:
    """Date changes are re-checked, and so is bringing a cancelled booking back."""
    new_status = allocation_data.status or allocation.status
    if new_status == AllocationStatus.cancelled:
        return False
    if allocation_data.changes_dates:
        return True
    return allocation.status == AllocationStatus.cancelled


def update_allocation(
    db: Session, allocation_id: int, allocation_data: ResourceAllocationUpdate, timeout: Optional[float] = None
) -> ResourceAllocation:
    """Apply a partial update, re-checking availability when the booking moves."""
    allocation = allocation_crud.get_allocation(db, allocation_id, timeout)
    old_values = allocation_snapshot(allocation)

    if _needs_availability_check(allocation, allocation_data):
        start_date, end_date = normalize_interval(
            allocation_data.start_date or allocation.start_date,
            allocation_data.end_date or allocation.end_date
        )
        with resource_locks.hold(allocation.resource_id):
            try:
                resource_crud.lock_resource(db, allocation.resource_id, timeout)
                ensure_available(db, allocation.resource_id, start_date, end_date, exclude_job_id=allocation.job_id)
                allocation = allocation_crud.update_allocation(db, allocation_id, allocation_data, allocation, timeout)
            except DomainError:
                db.rollback()
                raise
    else:
        allocation = allocation_crud.update_allocation(db, allocation_id, allocation_data, allocation, timeout)

    new_values = allocation_snapshot(allocation)
    action = "allocation.updated"
    if allocation.status == AllocationStatus.cancelled and old_values["status"] != AllocationStatus.cancelled.value:
        action = "allocation.cancelled"
        logger.info(f"Cancelled allocation {allocation_id}")

    _record_event(db, new_values, action, "update_allocation", old_values=old_values, new_values=new_values)
    return allocation


def cancel_allocation(db: Session, allocation_id: int, timeout: Optional[float] = None) -> ResourceAllocation:
    """Retire an allocation; the record stays for the audit trail."""
    return update_allocation(
        db, allocation_id, ResourceAllocationUpdate(status=AllocationStatus.cancelled), timeout
    )


def delete_allocation(db: Session, allocation_id: int, timeout: Optional[float] = None) -> bool:
    """Hard-delete an erroneous allocation."""
    allocation = allocation_crud.get_allocation(db, allocation_id, timeout)
    snapshot = allocation_snapshot(allocation)

    allocation_crud.delete_allocation(db, allocation_id, timeout)
    logger.info(f"Deleted allocation {allocation_id}")

    _record_event(db, snapshot, "allocation.deleted", "delete_allocation", old_values=snapshot)
    return True
