from datetime import datetime
from sqlmodel import Session

from fieldops.models.resource import ResourceType
from fieldops.services.availability_service import find_available_resources

class TestFindAvailableResources:
    def test_skill_filter(self, session: Session, make_resource):
        welder = make_resource(name="Alex Welder", type=ResourceType.employee, attributes={"skills": ["welding"]})
        make_resource(name="Sam Plumber", type=ResourceType.employee, attributes={"skills": ["plumbing"]})

        found = find_available_resources(
            session, datetime(2024, 2, 1), datetime(2024, 2, 2),
            resource_type=ResourceType.employee, required_skills=["welding"]
        )
        assert [r.id for r in found] == [welder.id]

    def test_all_required_skills_needed(self, session: Session, technician, make_resource):
        make_resource(name="Casey", type=ResourceType.employee, attributes={"skills": ["welding"]})

        found = find_available_resources(
            session, datetime(2024, 2, 1), datetime(2024, 2, 2),
            required_skills=["welding", "relay testing"]
        )
        assert [r.id for r in found] == [technician.id]

    def test_busy_resources_excluded(self, session: Session, technician, test_set, book):
        book(technician, 1, datetime(2024, 2, 1), datetime(2024, 2, 5))

        found = find_available_resources(session, datetime(2024, 2, 3), datetime(2024, 2, 4))
        assert [r.id for r in found] == [test_set.id]

    def test_type_filter(self, session: Session, technician, test_set):
        found = find_available_resources(
            session, datetime(2024, 2, 1), datetime(2024, 2, 2), resource_type=ResourceType.equipment
        )
        assert [r.id for r in found] == [test_set.id]

    def test_skills_do_not_filter_other_types(self, session: Session, test_set):
        found = find_available_resources(
            session, datetime(2024, 2, 1), datetime(2024, 2, 2), required_skills=["welding"]
        )
        assert [r.id for r in found] == [test_set.id]

    def test_empty_skill_list_matches_everyone(self, session: Session, technician, make_resource):
        novice = make_resource(name="Robin", type=ResourceType.employee)

        found = find_available_resources(
            session, datetime(2024, 2, 1), datetime(2024, 2, 2),
            resource_type=ResourceType.employee, required_skills=[]
        )
        assert {r.id for r in found} == {technician.id, novice.id}
