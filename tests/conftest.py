import os

# Point the application engine at SQLite before anything imports it
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel, create_engine
from sqlmodel.pool import StaticPool

from fieldops.main import app
from fieldops.database.engine import get_db
from fieldops.crud.resource import resource_crud, allocation_crud
from fieldops.models.resource import ResourceType, AllocationStatus
from fieldops.schemas.resource import ResourceCreate, ResourceAllocationCreate

# Test database setup
@pytest.fixture(name="session")
def session_fixture():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    SQLModel.metadata.create_all(engine)
    with Session(engine) as session:
        yield session

@pytest.fixture(name="client")
def client_fixture(session: Session):
    def get_session_override():
        return session

    app.dependency_overrides[get_db] = get_session_override
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()

@pytest.fixture(name="make_resource")
def make_resource_fixture(session: Session):
    def _make_resource(name="Test Resource", type=ResourceType.equipment, **kwargs):
        return resource_crud.create_resource(session, ResourceCreate(name=name, type=type, **kwargs))
    return _make_resource

@pytest.fixture(name="book")
def book_fixture(session: Session):
    """Insert an allocation directly through the gateway, skipping the availability check."""
    def _book(resource, job_id, start_date, end_date, status=AllocationStatus.confirmed, **kwargs):
        data = ResourceAllocationCreate(
            job_id=job_id,
            resource_id=resource.id,
            start_date=start_date,
            end_date=end_date,
            status=status,
            **kwargs
        )
        return allocation_crud.create_allocation(session, data, resource)
    return _book

@pytest.fixture(name="technician")
def technician_fixture(make_resource):
    return make_resource(
        name="Jordan Reyes",
        type=ResourceType.employee,
        attributes={
            "skills": ["welding", "relay testing"],
            "skill_levels": {"welding": "advanced"},
            "role": "Field Technician",
        },
    )

@pytest.fixture(name="test_set")
def test_set_fixture(make_resource):
    return make_resource(
        name="Megger MIT1025",
        type=ResourceType.equipment,
        attributes={"model": "MIT1025", "condition": "good"},
    )
