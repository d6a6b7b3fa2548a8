"""Tests for the enrollment resolver."""

from datetime import timedelta

import pytest

from myanedu.database import utcnow
from myanedu.errors import NotFoundError
from myanedu.models.enrollment import Enrollment, ENROLLMENT_ACTIVE, ENROLLMENT_PENDING
from myanedu.services import enrollment as enrollment_service
from myanedu.services.enrollment import resolve_enrollment, latest_enrollment


class TestResolveEnrollment:
    """Find-or-create behaviour keyed on (student, batch)."""

    def test_creates_pending_enrollment(self, db, student, batch):
        enrollment = resolve_enrollment(db, student.id, batch.id)
        db.commit()

        assert enrollment.id is not None
        assert enrollment.status == ENROLLMENT_PENDING
        assert enrollment.joined_at == utcnow().date()
        assert enrollment.expire_date > utcnow() + timedelta(days=29)

    def test_second_call_returns_same_row(self, db, student, batch):
        first = resolve_enrollment(db, student.id, batch.id)
        db.commit()
        second = resolve_enrollment(db, student.id, batch.id)
        db.commit()

        assert first.id == second.id
        assert db.query(Enrollment).filter(Enrollment.student_id == student.id).count() == 1

    def test_existing_enrollment_is_not_modified(self, db, student, batch):
        enrollment = resolve_enrollment(db, student.id, batch.id, initial_status=ENROLLMENT_ACTIVE)
        db.commit()
        expiry = enrollment.expire_date

        again = resolve_enrollment(db, student.id, batch.id)

        assert again.status == ENROLLMENT_ACTIVE
        assert again.expire_date == expiry

    def test_initial_status_active_for_explicit_enroll(self, db, student, batch):
        enrollment = resolve_enrollment(db, student.id, batch.id, initial_status=ENROLLMENT_ACTIVE)
        assert enrollment.status == ENROLLMENT_ACTIVE

    def test_unknown_student(self, db, batch):
        with pytest.raises(NotFoundError):
            resolve_enrollment(db, "00000000-0000-0000-0000-000000000000", batch.id)
        assert db.query(Enrollment).count() == 0

    def test_unknown_batch(self, db, student):
        with pytest.raises(NotFoundError):
            resolve_enrollment(db, student.id, "NOPE")
        assert db.query(Enrollment).count() == 0

    def test_concurrent_insert_reuses_existing_row(self, db, student, batch, monkeypatch):
        """A lost insert race falls back to the row the other request wrote."""
        existing = resolve_enrollment(db, student.id, batch.id)
        db.commit()

        real_find = enrollment_service.find_enrollment
        calls = {"count": 0}

        def stale_find(session, student_id, batch_id):
            # First lookup misses, as if the other request had not committed yet
            calls["count"] += 1
            if calls["count"] == 1:
                return None
            return real_find(session, student_id, batch_id)

        monkeypatch.setattr(enrollment_service, "find_enrollment", stale_find)

        resolved = resolve_enrollment(db, student.id, batch.id)
        db.commit()

        assert resolved.id == existing.id
        assert calls["count"] == 2
        assert db.query(Enrollment).count() == 1


class TestLatestEnrollment:

    def test_none_without_enrollments(self, db, student):
        assert latest_enrollment(db, student.id) is None

    def test_most_recently_joined(self, db, student, batch, other_batch):
        older = resolve_enrollment(db, student.id, batch.id)
        older.joined_at = utcnow().date() - timedelta(days=10)
        newer = resolve_enrollment(db, student.id, other_batch.id)
        db.commit()

        assert latest_enrollment(db, student.id).id == newer.id
