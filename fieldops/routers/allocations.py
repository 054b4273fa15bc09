# fieldops/routers/allocations.py
from fastapi import APIRouter, Depends
from sqlmodel import Session
from typing import List

from fieldops.database.engine import get_db
from fieldops.crud.resource import allocation_crud, allocation_event_crud
from fieldops.schemas.resource import (
    ResourceAllocationCreate, ResourceAllocationUpdate, ResourceAllocation, AllocationEvent
)
from fieldops.services import allocation_service

router = APIRouter(
    prefix="/allocations",
    tags=["allocations"],
    responses={404: {"description": "Not found"}},
)

@router.post("/", response_model=ResourceAllocation)
def allocate_resource(
    allocation_data: ResourceAllocationCreate,
    db: Session = Depends(get_db)
):
    """Allocate a resource to a job. Fails with 409 if the resource is already booked."""
    allocation = allocation_service.allocate_resource(db, allocation_data)
    return ResourceAllocation.model_validate(allocation)

@router.get("/{allocation_id}", response_model=ResourceAllocation)
def get_allocation(
    allocation_id: int,
    db: Session = Depends(get_db)
):
    """Get allocation by ID."""
    return ResourceAllocation.model_validate(allocation_crud.get_allocation(db, allocation_id))

@router.put("/{allocation_id}", response_model=ResourceAllocation)
def update_allocation(
    allocation_id: int,
    allocation_data: ResourceAllocationUpdate,
    db: Session = Depends(get_db)
):
    """Update an allocation. Date changes are re-checked for availability."""
    allocation = allocation_service.update_allocation(db, allocation_id, allocation_data)
    return ResourceAllocation.model_validate(allocation)

@router.post("/{allocation_id}/cancel", response_model=ResourceAllocation)
def cancel_allocation(
    allocation_id: int,
    db: Session = Depends(get_db)
):
    """Cancel an allocation without deleting its record."""
    allocation = allocation_service.cancel_allocation(db, allocation_id)
    return ResourceAllocation.model_validate(allocation)

@router.delete("/{allocation_id}", response_model=dict)
def delete_allocation(
    allocation_id: int,
    db: Session = Depends(get_db)
):
    """Hard-delete an erroneous allocation."""
    allocation_service.delete_allocation(db, allocation_id)
    return {"message": "Allocation deleted successfully"}

@router.get("/{allocation_id}/events", response_model=List[AllocationEvent])
def get_allocation_events(
    allocation_id: int,
    db: Session = Depends(get_db)
):
    """Get the audit trail of an allocation (kept after deletion)."""
    events = allocation_event_crud.list_events(db, allocation_id)
    return [AllocationEvent.model_validate(e) for e in events]
