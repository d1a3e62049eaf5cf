"""Service-level fixtures shared by the unit service tests."""

import pytest

from tests.utils.builders import CLASS_DATE, CLASS_TIME
from tutorbook.services.booking_service import BookingService


@pytest.fixture
def booking_service(db, notifier, clock):
    return BookingService(db, notifier=notifier, clock=clock)


@pytest.fixture
def booking(booking_service, open_slot, teacher, student):
    """A pending booking on the standard class slot."""
    return booking_service.create(
        student.id, teacher.id, CLASS_DATE, CLASS_TIME, "Unit 3: Travel", "Intermediate"
    )
