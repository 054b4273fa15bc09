# fieldops/models/resource.py
from sqlmodel import SQLModel, Field, Relationship, Column, Text, JSON
from sqlalchemy import Index
from typing import Optional, List, Dict, Any
from datetime import datetime
from enum import Enum

class ResourceType(str, Enum):
    employee = "employee"
    equipment = "equipment"
    material = "material"
    vehicle = "vehicle"

# Consumables are booked by quantity, everything else by hours
TIME_BASED_RESOURCE_TYPES = frozenset({ResourceType.employee, ResourceType.equipment, ResourceType.vehicle})

class ResourceStatus(str, Enum):
    available = "available"
    partially_available = "partially_available"
    unavailable = "unavailable"
    scheduled = "scheduled"
    out_of_service = "out_of_service"

class AllocationStatus(str, Enum):
    planned = "planned"
    confirmed = "confirmed"
    in_progress = "in_progress"
    completed = "completed"
    cancelled = "cancelled"

class Resource(SQLModel, table=True):
    __tablename__ = "resources"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(max_length=100)
    type: ResourceType = Field(index=True)
    status: ResourceStatus = Field(default=ResourceStatus.available, index=True)
    description: Optional[str] = Field(default=None, sa_column=Column(Text))
    tags: List[str] = Field(default_factory=list, sa_column=Column(JSON))
    # Subtype-specific profile (skills, condition, unit cost, ...)
    attributes: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON))
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    # Relationships
    allocations: List["ResourceAllocation"] = Relationship(back_populates="resource")

class ResourceAllocation(SQLModel, table=True):
    __tablename__ = "resource_allocations"
    __table_args__ = (
        Index("ix_resource_allocations_resource_window", "resource_id", "start_date", "end_date"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    job_id: int = Field(index=True)
    resource_id: int = Field(foreign_key="resources.id", index=True)
    resource_type: ResourceType
    start_date: datetime
    end_date: datetime
    hours_allocated: Optional[float] = Field(default=None, ge=0)
    quantity_allocated: Optional[float] = Field(default=None, ge=0)
    status: AllocationStatus = Field(default=AllocationStatus.planned, index=True)
    notes: Optional[str] = Field(default=None, sa_column=Column(Text))
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    # Relationships
    resource: Resource = Relationship(back_populates="allocations")

class AllocationEvent(SQLModel, table=True):
    """Audit trail of allocation changes; rows outlive the allocation they describe."""
    __tablename__ = "allocation_events"

    id: Optional[int] = Field(default=None, primary_key=True)
    allocation_id: int = Field(index=True)
    job_id: int = Field(index=True)
    resource_id: int = Field(index=True)
    action: str = Field(max_length=50)
    old_values: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSON))
    new_values: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSON))
    created_at: datetime = Field(default_factory=datetime.utcnow, index=True)
