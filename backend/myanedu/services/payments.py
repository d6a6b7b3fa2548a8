"""
Payment lifecycle - submission and admin adjudication.

State machine of a payment:

    pending --verify--> verified   (terminal)
    pending --reject--> rejected   (terminal)

Adjudication touches three tables (payments, enrollments, notifications)
and runs as one transaction. The status update is conditional on the
payment still being pending, so two admins deciding the same payment at
once cannot both win; the loser gets a ConflictError.

Access rules applied to the linked enrollment:
- verified: status 'active', expire_date = now + ACCESS_PERIOD_DAYS
  (a fresh window, not added to any time left)
- rejected: status 'rejected', expire_date = now - 1 day (access revoked)
"""

from datetime import timedelta
from typing import Optional

from sqlalchemy import case
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from myanedu.config import ACCESS_PERIOD_DAYS
from myanedu.database import utcnow
from myanedu.errors import DomainError, NotFoundError, ValidationError, ConflictError, StorageError
from myanedu.models.student import Student
from myanedu.models.course import Batch, Course
from myanedu.models.enrollment import Enrollment, ENROLLMENT_ACTIVE, ENROLLMENT_REJECTED
from myanedu.models.payment import (
    Payment, PAYMENT_PENDING, PAYMENT_VERIFIED, PAYMENT_REJECTED, TERMINAL_PAYMENT_STATUSES
)
from myanedu.services.enrollment import resolve_enrollment, latest_enrollment
from myanedu.services.notifications import emit_adjudication_notification
from myanedu.logging_config import get_logger, log_with_context

logger = get_logger("payments")


def submit_payment(db: Session, student_id: str, amount: float, method: str,
                   receipt_ref: Optional[str], batch_id: Optional[str] = None,
                   transaction_ref: Optional[str] = None) -> Payment:
    """
    Record a pending payment for a student.

    With a batch_id the enrollment is resolved (and created if needed);
    without one the student's most recently joined enrollment is used.

    Raises:
        ValidationError: no receipt, non-positive amount, or no enrollment to pay for
        NotFoundError: unknown student or batch
        StorageError: the insert failed and was rolled back
    """
    if not receipt_ref or not receipt_ref.strip():
        raise ValidationError("Receipt is required", student_id=student_id)
    if amount is None or amount <= 0:
        raise ValidationError("Amount must be greater than zero", student_id=student_id)

    try:
        if batch_id:
            enrollment = resolve_enrollment(db, student_id, batch_id)
        else:
            if db.get(Student, student_id) is None:
                raise NotFoundError("Student not found", student_id=student_id)
            enrollment = latest_enrollment(db, student_id)
            if enrollment is None:
                raise ValidationError("No enrollment found. Please select a course.",
                                      student_id=student_id)

        payment = Payment(
            enrollment_id=enrollment.id,
            amount=amount,
            payment_method=method,
            transaction_id=transaction_ref or None,
            receipt_image=receipt_ref.strip(),
            status=PAYMENT_PENDING,
            payment_date=utcnow()
        )
        db.add(payment)
        db.commit()
    except DomainError:
        db.rollback()
        raise
    except SQLAlchemyError as e:
        db.rollback()
        log_with_context(logger, "ERROR", "Payment submission failed: {}".format(str(e)),
                         context={"student_id": student_id, "batch_id": batch_id})
        raise StorageError("Payment could not be saved", student_id=student_id) from e

    db.refresh(payment)
    log_with_context(logger, "INFO", "Payment {} submitted".format(payment.id),
                     context={"payment_id": payment.id, "student_id": student_id,
                              "enrollment_id": payment.enrollment_id},
                     extra_data={"amount": amount, "method": method})
    return payment


def apply_decision_to_enrollment(enrollment: Enrollment, decision: str, now) -> None:
    """Set an enrollment's status and expiry for an adjudicated payment."""
    if decision == PAYMENT_VERIFIED:
        enrollment.status = ENROLLMENT_ACTIVE
        enrollment.expire_date = now + timedelta(days=ACCESS_PERIOD_DAYS)
    else:
        enrollment.status = ENROLLMENT_REJECTED
        enrollment.expire_date = now - timedelta(days=1)


def adjudicate_payment(db: Session, payment_id: int, decision: str) -> Payment:
    """
    Verify or reject a pending payment.

    Steps, all in one transaction:
    1. Move the payment from pending to the decision
    2. Update the linked enrollment's status and expiry
    3. Queue the student notification (failure here is logged, not fatal)
    4. Commit

    Raises:
        ValidationError: decision is not 'verified' or 'rejected'
        NotFoundError: no payment with this id
        ConflictError: the payment was already verified or rejected
        StorageError: a database error rolled the whole decision back
    """
    if not isinstance(decision, str) or decision not in TERMINAL_PAYMENT_STATUSES:
        raise ValidationError("Invalid status: {}".format(decision), payment_id=payment_id)

    ctx = {"payment_id": payment_id}
    try:
        updated = db.query(Payment).filter(
            Payment.id == payment_id,
            Payment.status == PAYMENT_PENDING
        ).update({Payment.status: decision}, synchronize_session="fetch")

        if updated == 0:
            payment = db.get(Payment, payment_id)
            if payment is None:
                raise NotFoundError("Payment not found", **ctx)
            raise ConflictError("Payment is already {}".format(payment.status),
                                status=payment.status, **ctx)

        payment = db.get(Payment, payment_id)
        enrollment = payment.enrollment
        if enrollment is not None:
            ctx["enrollment_id"] = enrollment.id
            apply_decision_to_enrollment(enrollment, decision, utcnow())
            emit_adjudication_notification(db, enrollment.id, payment.id, decision)
        else:
            log_with_context(logger, "WARNING", "Payment {} has no enrollment".format(payment_id), context=ctx)

        db.commit()
    except DomainError:
        db.rollback()
        raise
    except SQLAlchemyError as e:
        db.rollback()
        log_with_context(logger, "ERROR", "Adjudication of payment {} rolled back: {}".format(payment_id, str(e)),
                         context=ctx, extra_data={"decision": decision})
        raise StorageError("Payment decision could not be saved", **ctx) from e

    db.refresh(payment)
    log_with_context(logger, "INFO", "Payment {} {}".format(payment_id, decision), context=ctx)
    return payment


def get_payment(db: Session, payment_id: int) -> Payment:
    payment = db.get(Payment, payment_id)
    if payment is None:
        raise NotFoundError("Payment not found", payment_id=payment_id)
    return payment


def list_payments(db: Session, status: Optional[str] = None):
    """
    Payments for the admin review queue.

    Returns (payment, student, batch, course) rows: pending first, then
    newest first. Payments without an enrollment are included with
    student, batch and course set to None.
    """
    query = db.query(Payment, Student, Batch, Course).outerjoin(
        Enrollment, Payment.enrollment_id == Enrollment.id
    ).outerjoin(
        Student, Enrollment.student_id == Student.id
    ).outerjoin(
        Batch, Enrollment.batch_id == Batch.id
    ).outerjoin(
        Course, Batch.course_id == Course.id
    )
    if status:
        query = query.filter(Payment.status == status.lower())

    pending_first = case((Payment.status == PAYMENT_PENDING, 0), else_=1)
    return query.order_by(pending_first, Payment.payment_date.desc(), Payment.id.desc()).all()


def list_student_payments(db: Session, student_id: str):
    """A student's payment history as (payment, enrollment, batch, course) rows."""
    return db.query(Payment, Enrollment, Batch, Course).join(
        Enrollment, Payment.enrollment_id == Enrollment.id
    ).join(
        Batch, Enrollment.batch_id == Batch.id
    ).join(
        Course, Batch.course_id == Course.id
    ).filter(
        Enrollment.student_id == student_id
    ).order_by(Payment.payment_date.desc(), Payment.id.desc()).all()
