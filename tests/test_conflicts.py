import pytest
from datetime import datetime
from sqlmodel import Session

from fieldops.models.resource import AllocationStatus
from fieldops.schemas.resource import ConflictSeverity
from fieldops.services.conflict_service import classify_severity, find_conflicts

class TestClassifySeverity:
    @pytest.mark.parametrize("percentage,expected", [
        (100.0, ConflictSeverity.high),
        (75.1, ConflictSeverity.high),
        (75.0, ConflictSeverity.medium),
        (25.1, ConflictSeverity.medium),
        (25.0, ConflictSeverity.low),
        (0.0, ConflictSeverity.low),
    ])
    def test_thresholds(self, percentage, expected):
        assert classify_severity(percentage) == expected

class TestFindConflicts:
    def test_partial_overlap(self, session: Session, test_set, book):
        existing = book(test_set, 1, datetime(2024, 1, 1), datetime(2024, 1, 10))
        subject = book(test_set, 2, datetime(2024, 1, 8), datetime(2024, 1, 20))

        conflicts = find_conflicts(session, 2)
        assert len(conflicts) == 1

        conflict = conflicts[0]
        assert conflict.resource_id == test_set.id
        assert conflict.resource_name == "Megger MIT1025"
        assert conflict.allocation_id == subject.id
        assert [a.id for a in conflict.conflicting_allocations] == [existing.id]
        assert conflict.conflict_start_date == datetime(2024, 1, 8)
        assert conflict.conflict_end_date == datetime(2024, 1, 10)
        # Two of the allocation's twelve days are contested
        assert conflict.overlap_percentage == pytest.approx(100 * 2 / 12)
        assert conflict.severity == ConflictSeverity.low

    def test_conflicts_are_seen_from_both_jobs(self, session: Session, test_set, book):
        book(test_set, 1, datetime(2024, 1, 1), datetime(2024, 1, 10))
        book(test_set, 2, datetime(2024, 1, 8), datetime(2024, 1, 20))

        conflict = find_conflicts(session, 1)[0]
        assert conflict.overlap_percentage == pytest.approx(100 * 2 / 9)
        assert conflict.severity == ConflictSeverity.low

    def test_exactly_seventy_five_percent_is_medium(self, session: Session, test_set, book):
        book(test_set, 1, datetime(2024, 3, 1), datetime(2024, 3, 5))
        book(test_set, 2, datetime(2024, 3, 2), datetime(2024, 3, 10))

        conflict = find_conflicts(session, 1)[0]
        assert conflict.overlap_percentage == pytest.approx(75.0)
        assert conflict.severity == ConflictSeverity.medium

    def test_mostly_covered_allocation_is_high(self, session: Session, test_set, book):
        book(test_set, 1, datetime(2024, 3, 1), datetime(2024, 3, 6))
        book(test_set, 2, datetime(2024, 3, 2), datetime(2024, 3, 10))

        conflict = find_conflicts(session, 1)[0]
        assert conflict.overlap_percentage == pytest.approx(80.0)
        assert conflict.severity == ConflictSeverity.high

    def test_exactly_twenty_five_percent_is_low(self, session: Session, test_set, book):
        book(test_set, 1, datetime(2024, 3, 1), datetime(2024, 3, 5))
        book(test_set, 2, datetime(2024, 2, 20), datetime(2024, 3, 2))

        conflict = find_conflicts(session, 1)[0]
        assert conflict.overlap_percentage == pytest.approx(25.0)
        assert conflict.severity == ConflictSeverity.low

    def test_window_narrows_across_conflicts(self, session: Session, test_set, book):
        book(test_set, 1, datetime(2024, 4, 1), datetime(2024, 4, 30))
        book(test_set, 2, datetime(2024, 4, 5), datetime(2024, 4, 20))
        book(test_set, 3, datetime(2024, 4, 10), datetime(2024, 4, 25))

        conflict = find_conflicts(session, 1)[0]
        assert len(conflict.conflicting_allocations) == 2
        assert conflict.conflict_start_date == datetime(2024, 4, 10)
        assert conflict.conflict_end_date == datetime(2024, 4, 20)

    def test_disjoint_conflicts_use_largest_overlap(self, session: Session, test_set, book):
        book(test_set, 1, datetime(2024, 5, 1), datetime(2024, 5, 31))
        book(test_set, 2, datetime(2024, 5, 2), datetime(2024, 5, 4))
        book(test_set, 3, datetime(2024, 5, 20), datetime(2024, 5, 25))

        conflict = find_conflicts(session, 1)[0]
        assert conflict.conflict_start_date == datetime(2024, 5, 20)
        assert conflict.conflict_end_date == datetime(2024, 5, 25)
        assert conflict.conflict_start_date <= conflict.conflict_end_date

    def test_zero_length_allocation_is_fully_covered(self, session: Session, test_set, book):
        book(test_set, 1, datetime(2024, 6, 1, 12), datetime(2024, 6, 1, 12))
        book(test_set, 2, datetime(2024, 6, 1), datetime(2024, 6, 2))

        conflict = find_conflicts(session, 1)[0]
        assert conflict.overlap_percentage == 100.0
        assert conflict.severity == ConflictSeverity.high

    def test_same_job_and_cancelled_bookings_ignored(self, session: Session, test_set, book):
        book(test_set, 1, datetime(2024, 1, 1), datetime(2024, 1, 10))
        book(test_set, 1, datetime(2024, 1, 5), datetime(2024, 1, 15))
        book(test_set, 2, datetime(2024, 1, 2), datetime(2024, 1, 3), status=AllocationStatus.cancelled)

        assert find_conflicts(session, 1) == []

    def test_cancelled_subject_allocation_ignored(self, session: Session, test_set, book):
        book(test_set, 1, datetime(2024, 1, 1), datetime(2024, 1, 10), status=AllocationStatus.cancelled)
        book(test_set, 2, datetime(2024, 1, 2), datetime(2024, 1, 3))

        assert find_conflicts(session, 1) == []

    def test_other_resources_do_not_conflict(self, session: Session, test_set, technician, book):
        book(test_set, 1, datetime(2024, 1, 1), datetime(2024, 1, 10))
        book(technician, 2, datetime(2024, 1, 1), datetime(2024, 1, 10))

        assert find_conflicts(session, 1) == []

    def test_job_without_allocations(self, session: Session):
        assert find_conflicts(session, 404) == []
