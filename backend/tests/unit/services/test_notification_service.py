"""Tests for the post-commit notification emitter."""

from unittest.mock import MagicMock, patch

import pytest

from tutorbook.core.enums import ActorRole, NotificationType
from tutorbook.services.notification_service import NotificationOutbox, PendingNotification


class TestNotificationService:
    def test_notify_persists(self, notifier, teacher, notifications):
        assert notifier.notify(teacher.id, ActorRole.TEACHER, NotificationType.BOOKING, "Hello")

        sent = notifications(teacher.id)
        assert len(sent) == 1
        assert sent[0].recipient_role == "teacher"
        assert sent[0].type == "booking"
        assert sent[0].read is False

    def test_failures_are_logged_not_raised(self, notifier, teacher):
        with patch(
            "tutorbook.services.notification_service.RepositoryFactory.create_notification_repository"
        ) as factory:
            factory.return_value.create.side_effect = RuntimeError("store down")
            with patch.object(notifier.logger, "error") as log_error:
                written = notifier.emit(
                    [
                        PendingNotification(teacher.id, ActorRole.TEACHER, NotificationType.SALARY, "a"),
                        PendingNotification(teacher.id, ActorRole.TEACHER, NotificationType.SALARY, "b"),
                    ]
                )

        assert written == 0
        assert log_error.call_count == 2


class TestNotificationOutbox:
    def test_flush_sends_once(self):
        notifier = MagicMock()
        notifier.emit.return_value = 1
        outbox = NotificationOutbox(notifier)
        outbox.add("t1", ActorRole.TEACHER, NotificationType.CANCEL, "Cancelled")

        assert outbox.flush() == 1
        assert outbox.flush() == 0
        notifier.emit.assert_called_once()

    def test_discard_drops_pending(self):
        notifier = MagicMock()
        outbox = NotificationOutbox(notifier)
        outbox.add("t1", ActorRole.TEACHER, NotificationType.CANCEL, "Cancelled")

        outbox.discard()

        assert outbox.flush() == 0
        notifier.emit.assert_not_called()

    def test_failed_transaction_discards_queued_notifications(
        self, booking_service, booking, notifier, teacher, notifications
    ):
        """A rolled-back transition never leaks its notification into a later flush."""
        before = len(notifications(teacher.id))

        with patch.object(booking_service.db, "commit", side_effect=RuntimeError("commit failed")):
            with pytest.raises(RuntimeError):
                booking_service.mark_teacher_absent(booking.id)

        assert booking_service.outbox.flush() == 0
        assert len(notifications(teacher.id)) == before
