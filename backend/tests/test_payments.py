"""Tests for payment submission and adjudication."""

from datetime import timedelta

import pytest
from sqlalchemy.exc import OperationalError

from myanedu.database import utcnow
from myanedu.errors import NotFoundError, ValidationError, ConflictError, StorageError
from myanedu.models.enrollment import Enrollment, ENROLLMENT_ACTIVE, ENROLLMENT_PENDING, ENROLLMENT_REJECTED
from myanedu.models.notification import Notification
from myanedu.models.payment import Payment
from myanedu.services import notifications as notification_service
from myanedu.services import payments as payment_service
from myanedu.services.enrollment import resolve_enrollment
from myanedu.services.payments import submit_payment, adjudicate_payment, list_payments


def _disk_error():
    return OperationalError("UPDATE enrollments", {}, Exception("disk I/O error"))


class TestSubmitPayment:
    """Recording a pending payment against an enrollment."""

    def test_creates_pending_payment_and_enrollment(self, db, student, batch):
        payment = submit_payment(db, student.id, 30000, "KBZPay", "r1", batch_id=batch.id)

        assert payment.status == "pending"
        assert payment.amount == 30000
        assert payment.payment_method == "KBZPay"
        assert payment.receipt_image == "r1"
        enrollment = db.get(Enrollment, payment.enrollment_id)
        assert enrollment.batch_id == batch.id
        assert enrollment.status == ENROLLMENT_PENDING

    def test_keeps_transaction_reference(self, db, student, batch):
        payment = submit_payment(db, student.id, 30000, "WavePay", "r1",
                                 batch_id=batch.id, transaction_ref="TX-778")
        assert payment.transaction_id == "TX-778"

    def test_reuses_active_enrollment_without_reset(self, db, student, batch):
        enrollment = resolve_enrollment(db, student.id, batch.id, initial_status=ENROLLMENT_ACTIVE)
        db.commit()

        payment = submit_payment(db, student.id, 30000, "KBZPay", "r2", batch_id=batch.id)

        assert payment.enrollment_id == enrollment.id
        assert db.get(Enrollment, enrollment.id).status == ENROLLMENT_ACTIVE
        assert db.query(Enrollment).count() == 1

    def test_missing_receipt_inserts_nothing(self, db, student, batch):
        with pytest.raises(ValidationError):
            submit_payment(db, student.id, 30000, "KBZPay", None, batch_id=batch.id)

        assert db.query(Payment).count() == 0
        assert db.query(Enrollment).count() == 0

    def test_blank_receipt_rejected(self, db, student, batch):
        with pytest.raises(ValidationError):
            submit_payment(db, student.id, 30000, "KBZPay", "   ", batch_id=batch.id)
        assert db.query(Payment).count() == 0

    def test_non_positive_amount_rejected(self, db, student, batch):
        with pytest.raises(ValidationError):
            submit_payment(db, student.id, 0, "KBZPay", "r1", batch_id=batch.id)
        assert db.query(Payment).count() == 0

    def test_without_batch_uses_latest_enrollment(self, db, student, enrollment):
        payment = submit_payment(db, student.id, 30000, "KBZPay", "r1")
        assert payment.enrollment_id == enrollment.id

    def test_without_batch_or_enrollment(self, db, student):
        with pytest.raises(ValidationError, match="No enrollment found"):
            submit_payment(db, student.id, 30000, "KBZPay", "r1")
        assert db.query(Payment).count() == 0

    def test_unknown_student(self, db, batch):
        with pytest.raises(NotFoundError):
            submit_payment(db, "missing", 30000, "KBZPay", "r1", batch_id=batch.id)
        with pytest.raises(NotFoundError):
            submit_payment(db, "missing", 30000, "KBZPay", "r1")
        assert db.query(Payment).count() == 0

    def test_unknown_batch(self, db, student):
        with pytest.raises(NotFoundError):
            submit_payment(db, student.id, 30000, "KBZPay", "r1", batch_id="NOPE")
        assert db.query(Payment).count() == 0


class TestAdjudicatePayment:
    """Verify / reject transitions and their side effects."""

    def test_verify_activates_enrollment_for_thirty_days(self, db, student, pending_payment):
        payment = adjudicate_payment(db, pending_payment.id, "verified")

        assert payment.status == "verified"
        enrollment = db.get(Enrollment, payment.enrollment_id)
        assert enrollment.status == ENROLLMENT_ACTIVE
        assert enrollment.expire_date > utcnow() + timedelta(days=29)
        assert enrollment.expire_date <= utcnow() + timedelta(days=30)

        notes = db.query(Notification).filter(Notification.student_id == student.id).all()
        assert len(notes) == 1
        assert notes[0].type == "success"
        assert notes[0].template_key == "payment_verified"
        assert notes[0].params_dict["course_title"] == "Basic Computer"
        assert notes[0].params_dict["batch_name"] == "Batch 1"

    def test_verify_is_fresh_window_not_additive(self, db, pending_payment):
        enrollment = db.get(Enrollment, pending_payment.enrollment_id)
        enrollment.expire_date = utcnow() + timedelta(days=300)
        db.commit()

        adjudicate_payment(db, pending_payment.id, "verified")

        enrollment = db.get(Enrollment, pending_payment.enrollment_id)
        assert enrollment.expire_date < utcnow() + timedelta(days=31)

    def test_reject_revokes_access(self, db, student, pending_payment):
        payment = adjudicate_payment(db, pending_payment.id, "rejected")

        assert payment.status == "rejected"
        enrollment = db.get(Enrollment, payment.enrollment_id)
        assert enrollment.status == ENROLLMENT_REJECTED
        assert enrollment.expire_date < utcnow()
        assert enrollment.expire_date > utcnow() - timedelta(days=2)

        notes = db.query(Notification).filter(Notification.student_id == student.id).all()
        assert len(notes) == 1
        assert notes[0].type == "error"
        assert notes[0].template_key == "payment_rejected"

    def test_unknown_payment_mutates_nothing(self, db, pending_payment):
        with pytest.raises(NotFoundError):
            adjudicate_payment(db, 9999, "verified")

        assert db.get(Payment, pending_payment.id).status == "pending"
        assert db.query(Notification).count() == 0

    def test_invalid_decision(self, db, pending_payment):
        with pytest.raises(ValidationError):
            adjudicate_payment(db, pending_payment.id, "approved")
        with pytest.raises(ValidationError):
            adjudicate_payment(db, pending_payment.id, None)
        with pytest.raises(ValidationError):
            adjudicate_payment(db, pending_payment.id, ["verified"])
        assert db.get(Payment, pending_payment.id).status == "pending"

    def test_terminal_payment_cannot_be_decided_again(self, db, pending_payment):
        adjudicate_payment(db, pending_payment.id, "verified")
        enrollment = db.get(Enrollment, pending_payment.enrollment_id)
        expiry = enrollment.expire_date

        with pytest.raises(ConflictError):
            adjudicate_payment(db, pending_payment.id, "rejected")

        assert db.get(Payment, pending_payment.id).status == "verified"
        enrollment = db.get(Enrollment, pending_payment.enrollment_id)
        assert enrollment.status == ENROLLMENT_ACTIVE
        assert enrollment.expire_date == expiry
        assert db.query(Notification).count() == 1

    def test_same_decision_twice_is_also_conflict(self, db, pending_payment):
        adjudicate_payment(db, pending_payment.id, "rejected")
        with pytest.raises(ConflictError):
            adjudicate_payment(db, pending_payment.id, "rejected")
        assert db.query(Notification).count() == 1

    def test_payment_without_enrollment(self, db):
        orphan = Payment(amount=1000, payment_method="Cash", receipt_image="r9")
        db.add(orphan)
        db.commit()

        payment = adjudicate_payment(db, orphan.id, "verified")

        assert payment.status == "verified"
        assert db.query(Notification).count() == 0

    def test_unresolvable_chain_skips_notification(self, db, pending_payment, monkeypatch):
        monkeypatch.setattr(notification_service, "lookup_enrollment_chain", lambda session, eid: None)

        payment = adjudicate_payment(db, pending_payment.id, "verified")

        assert payment.status == "verified"
        assert db.get(Enrollment, payment.enrollment_id).status == ENROLLMENT_ACTIVE
        assert db.query(Notification).count() == 0

    def test_notification_failure_does_not_block_decision(self, db, pending_payment, monkeypatch):
        def broken_lookup(session, enrollment_id):
            raise _disk_error()

        monkeypatch.setattr(notification_service, "lookup_enrollment_chain", broken_lookup)

        payment = adjudicate_payment(db, pending_payment.id, "rejected")

        assert payment.status == "rejected"
        assert db.get(Enrollment, payment.enrollment_id).status == ENROLLMENT_REJECTED
        assert db.query(Notification).count() == 0

    def test_enrollment_failure_rolls_back_everything(self, db, pending_payment, monkeypatch):
        def broken_update(enrollment, decision, now):
            raise _disk_error()

        monkeypatch.setattr(payment_service, "apply_decision_to_enrollment", broken_update)

        with pytest.raises(StorageError):
            adjudicate_payment(db, pending_payment.id, "verified")

        assert db.get(Payment, pending_payment.id).status == "pending"
        assert db.get(Enrollment, pending_payment.enrollment_id).status == ENROLLMENT_PENDING
        assert db.query(Notification).count() == 0


class TestListPayments:

    def test_pending_first_then_newest(self, db, student, batch):
        first = submit_payment(db, student.id, 30000, "KBZPay", "r1", batch_id=batch.id)
        second = submit_payment(db, student.id, 30000, "KBZPay", "r2", batch_id=batch.id)
        third = submit_payment(db, student.id, 30000, "KBZPay", "r3", batch_id=batch.id)
        adjudicate_payment(db, third.id, "rejected")

        rows = list_payments(db)

        assert [p.id for p, _, _, _ in rows] == [second.id, first.id, third.id]
        payment, row_student, row_batch, row_course = rows[0]
        assert row_student.name == "Aung Aung"
        assert row_batch.batch_name == "Batch 1"
        assert row_course.title == "Basic Computer"

    def test_status_filter(self, db, student, batch):
        kept = submit_payment(db, student.id, 30000, "KBZPay", "r1", batch_id=batch.id)
        decided = submit_payment(db, student.id, 30000, "KBZPay", "r2", batch_id=batch.id)
        adjudicate_payment(db, decided.id, "verified")

        rows = list_payments(db, status="PENDING")
        assert [p.id for p, _, _, _ in rows] == [kept.id]
