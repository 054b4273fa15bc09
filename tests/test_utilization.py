import pytest
from datetime import datetime
from sqlmodel import Session

from fieldops.core.config import settings
from fieldops.core.exceptions import NotFoundError
from fieldops.models.resource import AllocationStatus
from fieldops.services.utilization_service import available_hours, calculate_utilization

class TestAvailableHours:
    def test_uses_configured_workday(self):
        assert available_hours(datetime(2024, 1, 1), datetime(2024, 1, 11)) == 10 * settings.WORKDAY_HOURS

    def test_default_workday_is_eight_hours(self):
        assert settings.WORKDAY_HOURS == 8
        assert available_hours(datetime(2024, 1, 1), datetime(2024, 1, 2)) == 8

    def test_explicit_workday(self):
        assert available_hours(datetime(2024, 1, 1), datetime(2024, 1, 3), workday_hours=10) == 20

class TestCalculateUtilization:
    def test_resource_without_allocations(self, session: Session, test_set):
        result = calculate_utilization(session, [test_set.id], datetime(2024, 1, 1), datetime(2024, 1, 31))

        assert len(result) == 1
        assert result[0].resource_id == test_set.id
        assert result[0].total_hours_allocated == 0
        assert result[0].utilization_percentage == 0
        assert result[0].allocations == []

    def test_booking_inside_window(self, session: Session, test_set, book):
        book(test_set, 1, datetime(2024, 1, 2), datetime(2024, 1, 3))

        result = calculate_utilization(session, [test_set.id], datetime(2024, 1, 1), datetime(2024, 1, 11))[0]
        assert result.total_hours_allocated == 24
        assert result.total_available_hours == 80
        assert result.utilization_percentage == pytest.approx(30.0)

    def test_bookings_clipped_to_window(self, session: Session, test_set, book):
        book(test_set, 1, datetime(2023, 12, 25), datetime(2024, 1, 2))
        book(test_set, 2, datetime(2024, 1, 10), datetime(2024, 1, 20))

        result = calculate_utilization(session, [test_set.id], datetime(2024, 1, 1), datetime(2024, 1, 11))[0]
        assert result.total_hours_allocated == 48
        assert len(result.allocations) == 2

    def test_wall_clock_span_can_exceed_capacity(self, session: Session, test_set, book):
        book(test_set, 1, datetime(2024, 1, 1), datetime(2024, 1, 10), hours_allocated=40)

        result = calculate_utilization(session, [test_set.id], datetime(2024, 1, 1), datetime(2024, 1, 11))[0]
        assert result.total_hours_allocated == 216
        assert result.utilization_percentage == pytest.approx(270.0)

    def test_cancelled_bookings_not_counted(self, session: Session, test_set, book):
        book(test_set, 1, datetime(2024, 1, 2), datetime(2024, 1, 3), status=AllocationStatus.cancelled)

        result = calculate_utilization(session, [test_set.id], datetime(2024, 1, 1), datetime(2024, 1, 11))[0]
        assert result.total_hours_allocated == 0

    def test_allocated_hours_add_across_adjacent_windows(self, session: Session, test_set, book):
        book(test_set, 1, datetime(2024, 1, 1), datetime(2024, 1, 10))
        book(test_set, 2, datetime(2024, 1, 12, 6), datetime(2024, 1, 13))

        def hours(start, end):
            return calculate_utilization(session, [test_set.id], start, end)[0].total_hours_allocated

        split = datetime(2024, 1, 5)
        whole = hours(datetime(2024, 1, 1), datetime(2024, 1, 15))
        assert whole == hours(datetime(2024, 1, 1), split) + hours(split, datetime(2024, 1, 15))
        assert whole == 216 + 18

    def test_result_order_follows_request(self, session: Session, test_set, technician):
        result = calculate_utilization(
            session, [technician.id, test_set.id], datetime(2024, 1, 1), datetime(2024, 1, 2)
        )
        assert [r.resource_id for r in result] == [technician.id, test_set.id]
        assert result[0].resource_name == "Jordan Reyes"

    def test_zero_length_window(self, session: Session, test_set, book):
        book(test_set, 1, datetime(2024, 1, 1), datetime(2024, 1, 10))

        result = calculate_utilization(session, [test_set.id], datetime(2024, 1, 5), datetime(2024, 1, 5))[0]
        assert result.total_available_hours == 0
        assert result.utilization_percentage == 0

    def test_workday_override(self, session: Session, test_set, book):
        book(test_set, 1, datetime(2024, 1, 1), datetime(2024, 1, 2))

        result = calculate_utilization(
            session, [test_set.id], datetime(2024, 1, 1), datetime(2024, 1, 3), workday_hours=12
        )[0]
        assert result.total_available_hours == 24
        assert result.utilization_percentage == pytest.approx(100.0)

    def test_unknown_resource(self, session: Session):
        with pytest.raises(NotFoundError):
            calculate_utilization(session, [999], datetime(2024, 1, 1), datetime(2024, 1, 2))
