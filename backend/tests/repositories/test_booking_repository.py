"""Repository tests for the uniqueness backstops and guarded writes."""

from datetime import datetime, timezone

import pytest
from sqlalchemy.exc import IntegrityError

from tutorbook.core.enums import ActorRole, BookingStatus, CancellationRequestStatus
from tutorbook.core.exceptions import RepositoryException
from tutorbook.repositories.factory import RepositoryFactory

from tests.utils.builders import CLASS_DATE, CLASS_TIME


def _values(teacher, student, classroom_id, status=BookingStatus.PENDING):
    return dict(
        student_id=student.id,
        teacher_id=teacher.id,
        booking_date=CLASS_DATE,
        start_time=CLASS_TIME,
        lesson_ref="Unit 1",
        student_level="A1",
        classroom_id=classroom_id,
        status=status.value,
    )


@pytest.fixture
def repository(db):
    return RepositoryFactory.create_booking_repository(db)


class TestBookingRepository:
    def test_two_live_bookings_on_one_tuple_violate_index(self, repository, db, teacher, student):
        repository.create(**_values(teacher, student, "room-1"))

        with pytest.raises(IntegrityError):
            repository.create(**_values(teacher, student, "room-2"))
        db.rollback()

    def test_cancelled_booking_frees_the_tuple(self, repository, db, teacher, student):
        repository.create(**_values(teacher, student, "room-1", BookingStatus.CANCELLED))
        repository.create(**_values(teacher, student, "room-2"))
        db.commit()

        live = repository.get_live_booking_at(teacher.id, CLASS_DATE, CLASS_TIME)
        assert live.classroom_id == "room-2"
        assert repository.live_slot_keys(teacher.id, CLASS_DATE, CLASS_DATE) == {
            (CLASS_DATE, CLASS_TIME)
        }

    def test_mark_absent_if_active_is_guarded(self, repository, db, teacher, student):
        booking = repository.create(**_values(teacher, student, "room-1"))
        db.commit()
        marked_at = datetime(2026, 3, 2, 1, 20, tzinfo=timezone.utc)

        assert repository.mark_absent_if_active(booking.id, absent_type="teacher", absent_marked_at=marked_at)
        assert not repository.mark_absent_if_active(
            booking.id, absent_type="student", absent_marked_at=marked_at
        )
        db.commit()

        db.expire_all()
        reloaded = repository.get_by_id(booking.id)
        assert reloaded.status == BookingStatus.ABSENT.value
        assert reloaded.absent_type == "teacher"
        assert reloaded.absent_checked is True
        assert reloaded.absent_marked_at == marked_at

    def test_unchecked_candidates(self, repository, db, teacher, student):
        booking = repository.create(**_values(teacher, student, "room-1"))
        db.commit()

        assert [b.id for b in repository.list_unchecked_for_date(CLASS_DATE)] == [booking.id]

        booking.absent_checked = True
        db.commit()
        assert repository.list_unchecked_for_date(CLASS_DATE) == []


class TestCancellationRequestRepository:
    def test_one_pending_request_per_booking(self, db, teacher, student):
        bookings = RepositoryFactory.create_booking_repository(db)
        requests = RepositoryFactory.create_cancellation_request_repository(db)
        booking = bookings.create(**_values(teacher, student, "room-1"))
        values = dict(
            booking_id=booking.id,
            requester_role=ActorRole.STUDENT.value,
            requester_id=student.id,
            reason="Cannot attend this class at all",
            status=CancellationRequestStatus.PENDING.value,
        )
        requests.create(**values)

        with pytest.raises(RepositoryException) as exc_info:
            requests.create(**values)

        assert isinstance(exc_info.value.__cause__, IntegrityError)
        db.rollback()
