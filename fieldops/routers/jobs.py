# fieldops/routers/jobs.py
from fastapi import APIRouter, Depends
from sqlmodel import Session
from typing import List

from fieldops.database.engine import get_db
from fieldops.crud.resource import allocation_crud
from fieldops.schemas.resource import ResourceAllocation, ResourceConflict, JobSchedule
from fieldops.services.conflict_service import find_conflicts
from fieldops.services.schedule_service import get_job_schedule

router = APIRouter(
    prefix="/jobs",
    tags=["jobs"],
)

@router.get("/{job_id}/allocations", response_model=List[ResourceAllocation])
def get_job_allocations(
    job_id: int,
    include_cancelled: bool = False,
    db: Session = Depends(get_db)
):
    """Get resource allocations booked for a job."""
    allocations = allocation_crud.list_allocations_for_job(db, job_id, include_cancelled=include_cancelled)
    return [ResourceAllocation.model_validate(a) for a in allocations]

@router.get("/{job_id}/conflicts", response_model=List[ResourceConflict])
def get_job_conflicts(
    job_id: int,
    db: Session = Depends(get_db)
):
    """Find other jobs' bookings that overlap this job's allocations."""
    return find_conflicts(db, job_id)

@router.get("/{job_id}/schedule", response_model=JobSchedule)
def get_schedule(
    job_id: int,
    db: Session = Depends(get_db)
):
    """Get a job's allocations and the overall span they cover."""
    return get_job_schedule(db, job_id)
