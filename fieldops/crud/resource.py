# fieldops/crud/resource.py
from sqlmodel import Session, select
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from pydantic import ValidationError
from contextlib import contextmanager
from typing import List, Optional, Dict, Any, Iterator, Union
from datetime import datetime
import logging

from fieldops.core.config import settings
from fieldops.core.exceptions import (
    DomainError, NotFoundError, InvariantViolationError, ResourceInUseError, StoreError
)
from fieldops.core.intervals import normalize_interval, as_naive_utc
from fieldops.models.resource import (
    Resource, ResourceAllocation, AllocationEvent, ResourceType, AllocationStatus,
    TIME_BASED_RESOURCE_TYPES
)
from fieldops.schemas.resource import (
    ResourceCreate, ResourceUpdate, ResourceAllocationCreate, ResourceAllocationUpdate,
    ResourceAllocation as ResourceAllocationSchema, parse_profile
)

logger = logging.getLogger(__name__)


def _apply_timeout(db: Session, timeout: Optional[float]) -> None:
    """Bound every statement of the current transaction (PostgreSQL only)."""
    seconds = settings.STORE_TIMEOUT_SECONDS if timeout is None else timeout
    if seconds and db.get_bind().dialect.name == "postgresql":
        db.execute(text(f"SET LOCAL statement_timeout = {int(seconds * 1000)}"))


@contextmanager
def store_operation(db: Session, operation: str, entity_id: Any = None, timeout: Optional[float] = None) -> Iterator[None]:
    """Run a unit of store work, translating driver failures into StoreError."""
    try:
        _apply_timeout(db, timeout)
        yield
    except DomainError:
        db.rollback()
        raise
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Store operation {operation} failed for {entity_id}: {e}")
        raise StoreError(operation, entity_id, e) from e


def check_allocation_amounts(resource_type: ResourceType, hours_allocated: Optional[float], quantity_allocated: Optional[float]) -> None:
    """Time-based resources are booked in hours, consumables by quantity."""
    if resource_type in TIME_BASED_RESOURCE_TYPES and quantity_allocated is not None:
        raise InvariantViolationError(
            f"{resource_type.value} allocations are booked by hours, not quantity", "quantity_allocated"
        )
    if resource_type not in TIME_BASED_RESOURCE_TYPES and hours_allocated is not None:
        raise InvariantViolationError(
            f"{resource_type.value} allocations are booked by quantity, not hours", "hours_allocated"
        )


def allocation_snapshot(allocation: ResourceAllocation) -> Dict[str, Any]:
    return ResourceAllocationSchema.model_validate(allocation).model_dump(mode="json")


class ResourceCRUD:
    def create_resource(self, db: Session, resource_data: ResourceCreate, timeout: Optional[float] = None) -> Resource:
        """Create a new resource."""
        with store_operation(db, "create_resource", resource_data.name, timeout):
            resource = Resource(**resource_data.model_dump())
            db.add(resource)
            db.commit()
            db.refresh(resource)
        logger.info(f"Created {resource.type.value} resource {resource.id} ({resource.name})")
        return resource

    def get_resource(self, db: Session, resource_id: int, timeout: Optional[float] = None) -> Resource:
        """Get resource by ID, raising NotFoundError if absent."""
        with store_operation(db, "get_resource", resource_id, timeout):
            resource = db.get(Resource, resource_id)
        if not resource:
            raise NotFoundError("Resource", resource_id)
        return resource

    def lock_resource(self, db: Session, resource_id: int, timeout: Optional[float] = None) -> Resource:
        """Get a resource and hold its row lock until the transaction ends."""
        with store_operation(db, "lock_resource", resource_id, timeout):
            resource = db.exec(
                select(Resource).where(Resource.id == resource_id).with_for_update()
            ).first()
            if not resource:
                raise NotFoundError("Resource", resource_id)
        return resource

    def list_resources(
        self,
        db: Session,
        resource_type: Optional[ResourceType] = None,
        skip: int = 0,
        limit: Optional[int] = None,
        timeout: Optional[float] = None
    ) -> List[Resource]:
        """Get resources, optionally of one type."""
        query = select(Resource)

        if resource_type:
            query = query.where(Resource.type == resource_type)

        query = query.order_by(Resource.name, Resource.id).offset(skip)
        if limit is not None:
            query = query.limit(limit)

        with store_operation(db, "list_resources", resource_type, timeout):
            return list(db.exec(query).all())

    def update_resource(
        self,
        db: Session,
        resource_id: int,
        resource_data: Union[ResourceUpdate, Dict[str, Any]],
        timeout: Optional[float] = None
    ) -> Resource:
        """Update resource. The resource type cannot change."""
        if isinstance(resource_data, dict):
            if "type" in resource_data:
                raise InvariantViolationError("Resource type is immutable after creation", "type")
            resource_data = ResourceUpdate.model_validate(resource_data)

        resource = self.get_resource(db, resource_id, timeout)
        update_data = resource_data.model_dump(exclude_unset=True)
        # Required columns cannot be cleared
        for field in ("name", "status", "tags", "attributes"):
            if field in update_data and update_data[field] is None:
                del update_data[field]

        if update_data.get("attributes") is not None:
            try:
                profile = parse_profile(resource.type, update_data["attributes"])
            except ValidationError as e:
                raise InvariantViolationError(f"Invalid {resource.type.value} attributes: {e}", "attributes") from e
            update_data["attributes"] = profile.model_dump(mode="json", exclude={"type"})
        if update_data.get("tags") is not None:
            update_data["tags"] = list(dict.fromkeys(update_data["tags"]))

        with store_operation(db, "update_resource", resource_id, timeout):
            for field, value in update_data.items():
                setattr(resource, field, value)

            resource.updated_at = datetime.utcnow()
            db.add(resource)
            db.commit()
            db.refresh(resource)
        return resource

    def delete_resource(self, db: Session, resource_id: int, timeout: Optional[float] = None) -> bool:
        """Hard-delete a resource no allocation references."""
        resource = self.get_resource(db, resource_id, timeout)

        with store_operation(db, "delete_resource", resource_id, timeout):
            referencing_ids = db.exec(
                select(ResourceAllocation.id).where(ResourceAllocation.resource_id == resource_id)
            ).all()
            if referencing_ids:
                raise ResourceInUseError(resource_id, list(referencing_ids))

            db.delete(resource)
            db.commit()
        logger.info(f"Deleted resource {resource_id}")
        return True


class ResourceAllocationCRUD:
    def get_allocation(self, db: Session, allocation_id: int, timeout: Optional[float] = None) -> ResourceAllocation:
        """Get allocation by ID, raising NotFoundError if absent."""
        with store_operation(db, "get_allocation", allocation_id, timeout):
            allocation = db.get(ResourceAllocation, allocation_id)
        if not allocation:
            raise NotFoundError("ResourceAllocation", allocation_id)
        return allocation

    def list_allocations_for_job(
        self,
        db: Session,
        job_id: int,
        include_cancelled: bool = False,
        timeout: Optional[float] = None
    ) -> List[ResourceAllocation]:
        """Get allocations booked for a job."""
        query = select(ResourceAllocation).where(ResourceAllocation.job_id == job_id)

        if not include_cancelled:
            query = query.where(ResourceAllocation.status != AllocationStatus.cancelled)

        query = query.order_by(ResourceAllocation.start_date, ResourceAllocation.id)
        with store_operation(db, "list_allocations_for_job", job_id, timeout):
            return list(db.exec(query).all())

    def list_allocations_for_resource(
        self,
        db: Session,
        resource_id: int,
        window_start: Optional[datetime] = None,
        window_end: Optional[datetime] = None,
        exclude_job_id: Optional[int] = None,
        include_cancelled: bool = False,
        timeout: Optional[float] = None
    ) -> List[ResourceAllocation]:
        """
        Get allocations of a resource, optionally only those overlapping a window.

        The window test is inclusive on both ends: an allocation ending exactly
        at window_start (or starting exactly at window_end) is returned.
        """
        window_start, window_end = as_naive_utc(window_start), as_naive_utc(window_end)
        if window_start is not None and window_end is not None:
            window_start, window_end = normalize_interval(window_start, window_end)

        query = select(ResourceAllocation).where(ResourceAllocation.resource_id == resource_id)

        if not include_cancelled:
            query = query.where(ResourceAllocation.status != AllocationStatus.cancelled)
        if window_end is not None:
            query = query.where(ResourceAllocation.start_date <= window_end)
        if window_start is not None:
            query = query.where(ResourceAllocation.end_date >= window_start)
        if exclude_job_id is not None:
            query = query.where(ResourceAllocation.job_id != exclude_job_id)

        query = query.order_by(ResourceAllocation.start_date, ResourceAllocation.id)
        with store_operation(db, "list_allocations_for_resource", resource_id, timeout):
            return list(db.exec(query).all())

    def create_allocation(
        self,
        db: Session,
        allocation_data: ResourceAllocationCreate,
        resource: Resource,
        timeout: Optional[float] = None
    ) -> ResourceAllocation:
        """
        Insert an allocation for ``resource``.

        This is the raw write; availability is the caller's precondition (see
        allocation_service.allocate_resource, which holds the resource lock
        across the check and this insert).
        """
        start_date, end_date = normalize_interval(allocation_data.start_date, allocation_data.end_date)

        if allocation_data.resource_id != resource.id:
            raise InvariantViolationError("Allocation resource_id does not match the resource", "resource_id")
        if allocation_data.resource_type is not None and allocation_data.resource_type != resource.type:
            raise InvariantViolationError(
                f"resource_type {allocation_data.resource_type.value} does not match resource type {resource.type.value}",
                "resource_type"
            )
        check_allocation_amounts(resource.type, allocation_data.hours_allocated, allocation_data.quantity_allocated)

        with store_operation(db, "create_allocation", resource.id, timeout):
            allocation = ResourceAllocation(
                **allocation_data.model_dump(exclude={"resource_type", "start_date", "end_date"}),
                resource_type=resource.type,
                start_date=start_date,
                end_date=end_date
            )
            db.add(allocation)
            db.commit()
            db.refresh(allocation)
        return allocation

    def update_allocation(
        self,
        db: Session,
        allocation_id: int,
        allocation_data: ResourceAllocationUpdate,
        allocation: Optional[ResourceAllocation] = None,
        timeout: Optional[float] = None
    ) -> ResourceAllocation:
        """Apply a partial update to an allocation."""
        if allocation is None:
            allocation = self.get_allocation(db, allocation_id, timeout)

        update_data = allocation_data.model_dump(exclude_unset=True)
        # Required columns cannot be cleared
        for field in ("start_date", "end_date", "status"):
            if field in update_data and update_data[field] is None:
                del update_data[field]
        start_date, end_date = normalize_interval(
            update_data.get("start_date") or allocation.start_date,
            update_data.get("end_date") or allocation.end_date
        )
        hours = update_data.get("hours_allocated", allocation.hours_allocated)
        quantity = update_data.get("quantity_allocated", allocation.quantity_allocated)
        check_allocation_amounts(allocation.resource_type, hours, quantity)

        with store_operation(db, "update_allocation", allocation_id, timeout):
            for field, value in update_data.items():
                setattr(allocation, field, value)

            allocation.start_date = start_date
            allocation.end_date = end_date
            allocation.updated_at = datetime.utcnow()
            db.add(allocation)
            db.commit()
            db.refresh(allocation)
        return allocation

    def delete_allocation(self, db: Session, allocation_id: int, timeout: Optional[float] = None) -> bool:
        """Hard-delete an allocation (erroneous entries only; cancel otherwise)."""
        allocation = self.get_allocation(db, allocation_id, timeout)

        with store_operation(db, "delete_allocation", allocation_id, timeout):
            db.delete(allocation)
            db.commit()
        return True


class AllocationEventCRUD:
    def record_event(
        self,
        db: Session,
        allocation_id: int,
        job_id: int,
        resource_id: int,
        action: str,
        old_values: Optional[Dict[str, Any]] = None,
        new_values: Optional[Dict[str, Any]] = None,
        timeout: Optional[float] = None
    ) -> AllocationEvent:
        """Append an audit row for an allocation change."""
        event = AllocationEvent(
            allocation_id=allocation_id,
            job_id=job_id,
            resource_id=resource_id,
            action=action,
            old_values=old_values,
            new_values=new_values
        )
        with store_operation(db, "record_allocation_event", allocation_id, timeout):
            db.add(event)
            db.commit()
            db.refresh(event)
        logger.debug(f"Recorded {action} for allocation {allocation_id}")
        return event

    def list_events(self, db: Session, allocation_id: int, timeout: Optional[float] = None) -> List[AllocationEvent]:
        query = (
            select(AllocationEvent)
            .where(AllocationEvent.allocation_id == allocation_id)
            .order_by(AllocationEvent.created_at, AllocationEvent.id)
        )
        with store_operation(db, "list_allocation_events", allocation_id, timeout):
            return list(db.exec(query).all())

# Create instances
resource_crud = ResourceCRUD()
allocation_crud = ResourceAllocationCRUD()
allocation_event_crud = AllocationEventCRUD()
