from datetime import datetime
from sqlmodel import Session, select

from fieldops.models.resource import (
    Resource, ResourceAllocation, AllocationEvent, ResourceType, ResourceStatus, AllocationStatus
)

class TestResourceModel:
    def test_create_resource(self, session: Session):
        resource = Resource(
            name="Thermal camera",
            type=ResourceType.equipment,
            tags=["inspection"],
            attributes={"model": "FLIR E8"},
        )
        session.add(resource)
        session.commit()
        session.refresh(resource)

        assert resource.id is not None
        assert resource.status == ResourceStatus.available
        assert resource.tags == ["inspection"]
        assert resource.attributes == {"model": "FLIR E8"}
        assert isinstance(resource.created_at, datetime)

    def test_resource_defaults(self, session: Session):
        resource = Resource(name="Cable drum", type=ResourceType.material)
        session.add(resource)
        session.commit()
        session.refresh(resource)

        assert resource.tags == []
        assert resource.attributes == {}
        assert resource.description is None

class TestResourceAllocationModel:
    def test_allocation_relationship(self, session: Session):
        resource = Resource(name="Van 7", type=ResourceType.vehicle)
        session.add(resource)
        session.commit()
        session.refresh(resource)

        allocation = ResourceAllocation(
            job_id=12,
            resource_id=resource.id,
            resource_type=resource.type,
            start_date=datetime(2024, 1, 1),
            end_date=datetime(2024, 1, 3),
            hours_allocated=16,
        )
        session.add(allocation)
        session.commit()
        session.refresh(allocation)

        assert allocation.status == AllocationStatus.planned
        assert allocation.resource.name == "Van 7"
        session.refresh(resource)
        assert [a.id for a in resource.allocations] == [allocation.id]

class TestAllocationEventModel:
    def test_event_keeps_snapshots(self, session: Session):
        event = AllocationEvent(
            allocation_id=5,
            job_id=12,
            resource_id=3,
            action="allocation.created",
            new_values={"status": "planned"},
        )
        session.add(event)
        session.commit()

        stored = session.exec(select(AllocationEvent).where(AllocationEvent.allocation_id == 5)).one()
        assert stored.new_values == {"status": "planned"}
        assert stored.old_values is None
