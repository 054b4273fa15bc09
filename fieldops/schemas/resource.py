# fieldops/schemas/resource.py
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator, model_validator
from typing import Optional, List, Dict, Any, Literal, Union, Annotated
from datetime import datetime, date
from enum import Enum

from fieldops.core.intervals import as_naive_utc
from fieldops.models.resource import ResourceType, ResourceStatus, AllocationStatus

# ========================================
# RESOURCE PROFILES
# ========================================
# Subtype-specific attributes, discriminated on the resource type.

class SkillLevel(str, Enum):
    beginner = "beginner"
    intermediate = "intermediate"
    advanced = "advanced"
    expert = "expert"

class EmployeeProfile(BaseModel):
    model_config = ConfigDict(extra="allow")

    type: Literal["employee"] = "employee"
    skills: List[str] = Field(default_factory=list)
    skill_levels: Dict[str, SkillLevel] = Field(default_factory=dict)
    hourly_rate: Optional[float] = Field(None, ge=0)
    max_hours_per_week: Optional[float] = Field(None, ge=0)
    certifications: List[str] = Field(default_factory=list)
    email: Optional[str] = None
    role: Optional[str] = None

    def has_skills(self, required_skills: List[str]) -> bool:
        """True when every required skill is listed (exact match, no partial credit)."""
        return set(required_skills).issubset(self.skills)

class EquipmentProfile(BaseModel):
    model_config = ConfigDict(extra="allow")

    type: Literal["equipment"] = "equipment"
    model: Optional[str] = None
    serial_number: Optional[str] = None
    condition: Optional[str] = None
    acquisition_date: Optional[date] = None
    last_service_date: Optional[date] = None
    next_service_date: Optional[date] = None
    daily_rate: Optional[float] = Field(None, ge=0)
    hourly_rate: Optional[float] = Field(None, ge=0)
    warranty_expiry: Optional[date] = None

class MaterialProfile(BaseModel):
    model_config = ConfigDict(extra="allow")

    type: Literal["material"] = "material"
    unit: Optional[str] = Field(None, max_length=20)
    unit_cost: Optional[float] = Field(None, ge=0)
    quantity_available: Optional[float] = Field(None, ge=0)
    reorder_threshold: Optional[float] = Field(None, ge=0)
    supplier_id: Optional[str] = None
    location: Optional[str] = Field(None, max_length=100)

class VehicleProfile(BaseModel):
    model_config = ConfigDict(extra="allow")

    type: Literal["vehicle"] = "vehicle"
    make: Optional[str] = None
    model: Optional[str] = None
    year: Optional[int] = Field(None, ge=1900)
    license_plate: Optional[str] = None
    vin: Optional[str] = None
    mileage: Optional[float] = Field(None, ge=0)
    fuel_type: Optional[str] = None
    daily_rate: Optional[float] = Field(None, ge=0)

ResourceProfile = Annotated[
    Union[EmployeeProfile, EquipmentProfile, MaterialProfile, VehicleProfile],
    Field(discriminator="type"),
]

_profile_adapter = TypeAdapter(ResourceProfile)

def parse_profile(resource_type: ResourceType, attributes: Optional[Dict[str, Any]]) -> Union[EmployeeProfile, EquipmentProfile, MaterialProfile, VehicleProfile]:
    """Validate a resource's attribute blob as the profile variant for its type."""
    data = dict(attributes or {})
    data["type"] = ResourceType(resource_type).value
    return _profile_adapter.validate_python(data)

# ========================================
# RESOURCE SCHEMAS
# ========================================

class ResourceBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    type: ResourceType
    status: ResourceStatus = ResourceStatus.available
    description: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    attributes: Dict[str, Any] = Field(default_factory=dict)

class ResourceCreate(ResourceBase):
    @model_validator(mode="after")
    def check_profile(self):
        profile = parse_profile(self.type, self.attributes)
        self.attributes = profile.model_dump(mode="json", exclude={"type"})
        self.tags = list(dict.fromkeys(self.tags))
        return self

class ResourceUpdate(BaseModel):
    # `type` is deliberately absent: it is immutable once created
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(None, min_length=1, max_length=100)
    status: Optional[ResourceStatus] = None
    description: Optional[str] = None
    tags: Optional[List[str]] = None
    attributes: Optional[Dict[str, Any]] = None

    @field_validator("name", "status", "tags", "attributes")
    @classmethod
    def reject_null(cls, value):
        # Omit a field to leave it unchanged; only description may be cleared
        if value is None:
            raise ValueError("may be omitted but not set to null")
        return value

class Resource(ResourceBase):
    id: int
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

# ========================================
# ALLOCATION SCHEMAS
# ========================================

def _check_window(start_date: Optional[datetime], end_date: Optional[datetime]) -> None:
    if start_date is not None and end_date is not None and start_date > end_date:
        raise ValueError("start_date must not be after end_date")

def _check_amounts(hours_allocated: Optional[float], quantity_allocated: Optional[float]) -> None:
    if hours_allocated is not None and quantity_allocated is not None:
        raise ValueError("Set either hours_allocated or quantity_allocated, not both")

class ResourceAllocationBase(BaseModel):
    start_date: datetime
    end_date: datetime
    hours_allocated: Optional[float] = Field(None, ge=0)
    quantity_allocated: Optional[float] = Field(None, ge=0)
    status: AllocationStatus = AllocationStatus.planned
    notes: Optional[str] = None

    @field_validator("start_date", "end_date")
    @classmethod
    def normalize_dates(cls, value):
        return as_naive_utc(value)

class ResourceAllocationCreate(ResourceAllocationBase):
    job_id: int
    resource_id: int
    # Denormalized from the resource; optional, but must match when given
    resource_type: Optional[ResourceType] = None

    @model_validator(mode="after")
    def check_allocation(self):
        _check_window(self.start_date, self.end_date)
        _check_amounts(self.hours_allocated, self.quantity_allocated)
        return self

class ResourceAllocationUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    hours_allocated: Optional[float] = Field(None, ge=0)
    quantity_allocated: Optional[float] = Field(None, ge=0)
    status: Optional[AllocationStatus] = None
    notes: Optional[str] = None

    @field_validator("start_date", "end_date")
    @classmethod
    def normalize_dates(cls, value):
        return as_naive_utc(value)

    @model_validator(mode="after")
    def check_allocation(self):
        _check_window(self.start_date, self.end_date)
        _check_amounts(self.hours_allocated, self.quantity_allocated)
        return self

    @property
    def changes_dates(self) -> bool:
        return "start_date" in self.model_fields_set or "end_date" in self.model_fields_set

class ResourceAllocation(ResourceAllocationBase):
    id: int
    job_id: int
    resource_id: int
    resource_type: ResourceType
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

# ========================================
# SCHEDULING RESULTS
# ========================================

class ConflictSeverity(str, Enum):
    low = "low"
    medium = "medium"
    high = "high"

class AvailabilityCheck(BaseModel):
    resource_id: int
    start_date: datetime
    end_date: datetime
    available: bool
    conflicting_allocation_ids: List[int] = Field(default_factory=list)
    conflict_start_date: Optional[datetime] = None
    conflict_end_date: Optional[datetime] = None

class ResourceConflict(BaseModel):
    resource_id: int
    resource_name: str
    allocation_id: int
    conflicting_allocations: List[ResourceAllocation]
    conflict_start_date: datetime
    conflict_end_date: datetime
    overlap_percentage: float
    severity: ConflictSeverity

class ResourceUtilization(BaseModel):
    resource_id: int
    resource_name: str
    resource_type: ResourceType
    total_hours_allocated: float
    total_available_hours: float
    utilization_percentage: float
    allocations: List[ResourceAllocation]

class JobSchedule(BaseModel):
    job_id: int
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    resource_allocations: List[ResourceAllocation]

class AvailabilityPeriod(BaseModel):
    start_date: datetime
    end_date: datetime
    status: ResourceStatus = ResourceStatus.scheduled
    notes: Optional[str] = None

class AvailabilitySchedule(BaseModel):
    resource_id: int
    window_start: datetime
    window_end: datetime
    busy_periods: List[AvailabilityPeriod]
    allocations: List[ResourceAllocation]

class AllocationEvent(BaseModel):
    id: int
    allocation_id: int
    job_id: int
    resource_id: int
    action: str
    old_values: Optional[Dict[str, Any]] = None
    new_values: Optional[Dict[str, Any]] = None
    created_at: datetime

    class Config:
        from_attributes = True
