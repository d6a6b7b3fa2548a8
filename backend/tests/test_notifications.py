"""Tests for notification rendering, listing and read state."""

import json
from datetime import timedelta

import pytest

from myanedu.database import utcnow
from myanedu.errors import NotFoundError
from myanedu.models.notification import Notification
from myanedu.services.students import register_student
from myanedu.services.notifications import (
    render_notification, list_notifications, mark_notification_read,
    emit_adjudication_notification, PAYMENT_VERIFIED_KEY, PAYMENT_REJECTED_KEY,
)


def _note(student_id, key=PAYMENT_VERIFIED_KEY, created_at=None, **params):
    return Notification(
        student_id=student_id,
        type="success",
        template_key=key,
        params=json.dumps(params),
        created_at=created_at or utcnow()
    )


class TestRenderNotification:

    def test_verified_message(self):
        note = _note("s1", course_title="Basic Computer", batch_name="Batch 1")
        assert render_notification(note) == \
            "Payment verified. You can now attend Basic Computer (Batch 1)."

    def test_rejected_message(self):
        note = _note("s1", key=PAYMENT_REJECTED_KEY, course_title="Basic Computer", batch_name="Batch 1")
        assert "Payment rejected for Basic Computer (Batch 1)" in render_notification(note)

    def test_unknown_template_falls_back_to_key(self):
        assert render_notification(_note("s1", key="welcome")) == "welcome"

    def test_missing_params_returns_raw_template(self):
        text = render_notification(_note("s1"))
        assert "{course_title}" in text


class TestEmitNotification:

    def test_addresses_enrolled_student(self, db, student, enrollment):
        note = emit_adjudication_notification(db, enrollment.id, 7, "verified")
        db.commit()

        assert note.student_id == student.id
        assert note.type == "success"
        assert note.params_dict == {"course_title": "Basic Computer", "batch_name": "Batch 1", "payment_id": 7}
        assert note.is_read is False

    def test_unknown_enrollment(self, db):
        assert emit_adjudication_notification(db, 12345, 1, "rejected") is None


class TestListNotifications:

    def test_newest_first_capped_at_twenty(self, db, student):
        base = utcnow() - timedelta(hours=1)
        for minute in range(25):
            db.add(_note(student.id, created_at=base + timedelta(minutes=minute), n=minute))
        db.commit()

        notes = list_notifications(db, student.id)

        assert len(notes) == 20
        assert [n.params_dict["n"] for n in notes] == list(range(24, 4, -1))

    def test_only_own_notifications(self, db, student):
        other = register_student(db, "Su Su", "09420000002", "another-pass")
        db.add(_note(student.id))
        db.add(_note(other.id))
        db.commit()

        notes = list_notifications(db, student.id)
        assert len(notes) == 1


class TestMarkNotificationRead:

    def test_marks_and_is_idempotent(self, db, student):
        note = _note(student.id)
        db.add(note)
        db.commit()

        assert mark_notification_read(db, note.id).is_read is True
        assert mark_notification_read(db, note.id).is_read is True

    def test_unknown_notification(self, db):
        with pytest.raises(NotFoundError):
            mark_notification_read(db, 404)
