# fieldops/routers/resources.py
from fastapi import APIRouter, Depends, Query
from sqlmodel import Session
from typing import List, Optional
from datetime import datetime

from fieldops.database.engine import get_db
from fieldops.crud.resource import resource_crud, allocation_crud
from fieldops.models.resource import ResourceType
from fieldops.schemas.resource import (
    ResourceCreate, ResourceUpdate, Resource, ResourceAllocation,
    AvailabilityCheck, AvailabilitySchedule, ResourceUtilization
)
from fieldops.services.availability_service import check_availability, find_available_resources
from fieldops.services.schedule_service import get_availability_schedule
from fieldops.services.utilization_service import calculate_utilization

router = APIRouter(
    prefix="/resources",
    tags=["resources"],
    responses={404: {"description": "Not found"}},
)

# ========================================
# RESOURCE ENDPOINTS
# ========================================

@router.post("/", response_model=Resource)
def create_resource(
    resource_data: ResourceCreate,
    db: Session = Depends(get_db)
):
    """Create a new resource."""
    resource = resource_crud.create_resource(db, resource_data)
    return Resource.model_validate(resource)

@router.get("/", response_model=List[Resource])
def get_resources(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    resource_type: Optional[ResourceType] = None,
    db: Session = Depends(get_db)
):
    """Get list of resources."""
    resources = resource_crud.list_resources(db, resource_type=resource_type, skip=skip, limit=limit)
    return [Resource.model_validate(r) for r in resources]

@router.get("/available", response_model=List[Resource])
def get_available_resources(
    start_date: datetime,
    end_date: datetime,
    resource_type: Optional[ResourceType] = None,
    required_skills: Optional[List[str]] = Query(None),
    db: Session = Depends(get_db)
):
    """Find resources free for the whole window, optionally with required skills."""
    resources = find_available_resources(
        db, start_date, end_date, resource_type=resource_type, required_skills=required_skills
    )
    return [Resource.model_validate(r) for r in resources]

@router.get("/utilization", response_model=List[ResourceUtilization])
def get_resource_utilization(
    start_date: datetime,
    end_date: datetime,
    resource_ids: List[int] = Query(...),
    db: Session = Depends(get_db)
):
    """Get utilization of resources over a reporting window."""
    return calculate_utilization(db, resource_ids, start_date, end_date)

@router.get("/{resource_id}", response_model=Resource)
def get_resource(
    resource_id: int,
    db: Session = Depends(get_db)
):
    """Get resource by ID."""
    return Resource.model_validate(resource_crud.get_resource(db, resource_id))

@router.put("/{resource_id}", response_model=Resource)
def update_resource(
    resource_id: int,
    resource_data: ResourceUpdate,
    db: Session = Depends(get_db)
):
    """Update resource. The resource type cannot be changed."""
    resource = resource_crud.update_resource(db, resource_id, resource_data)
    return Resource.model_validate(resource)

@router.delete("/{resource_id}", response_model=dict)
def delete_resource(
    resource_id: int,
    db: Session = Depends(get_db)
):
    """Delete a resource that no allocation references."""
    resource_crud.delete_resource(db, resource_id)
    return {"message": "Resource deleted successfully"}

# ========================================
# RESOURCE SCHEDULE ENDPOINTS
# ========================================

@router.get("/{resource_id}/availability", response_model=AvailabilityCheck)
def get_resource_availability(
    resource_id: int,
    start_date: datetime,
    end_date: datetime,
    exclude_job_id: Optional[int] = None,
    db: Session = Depends(get_db)
):
    """Check whether a resource can be booked for a window."""
    resource_crud.get_resource(db, resource_id)
    return check_availability(db, resource_id, start_date, end_date, exclude_job_id=exclude_job_id)

@router.get("/{resource_id}/schedule", response_model=AvailabilitySchedule)
def get_resource_schedule(
    resource_id: int,
    start_date: datetime,
    end_date: datetime,
    db: Session = Depends(get_db)
):
    """Get the busy periods of a resource within a window."""
    return get_availability_schedule(db, resource_id, start_date, end_date)

@router.get("/{resource_id}/allocations", response_model=List[ResourceAllocation])
def get_resource_allocations(
    resource_id: int,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    exclude_job_id: Optional[int] = None,
    include_cancelled: bool = False,
    db: Session = Depends(get_db)
):
    """Get allocations of a resource, optionally only those overlapping a window."""
    resource_crud.get_resource(db, resource_id)
    allocations = allocation_crud.list_allocations_for_resource(
        db,
        resource_id,
        window_start=start_date,
        window_end=end_date,
        exclude_job_id=exclude_job_id,
        include_cancelled=include_cancelled
    )
    return [ResourceAllocation.model_validate(a) for a in allocations]
