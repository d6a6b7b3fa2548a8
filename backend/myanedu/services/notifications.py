"""
Notification service - student notifications raised by payment review.

Notifications are stored as a template key plus parameters. Text is
produced by render_notification() when a notification is shown.

Emission policy: a failure while writing the notification is logged and
rolled back to a SAVEPOINT, so the payment decision that triggered it
still commits.
"""

import json
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from myanedu.config import NOTIFICATION_LIST_LIMIT
from myanedu.database import commit_or_rollback
from myanedu.errors import NotFoundError
from myanedu.models.course import Batch, Course
from myanedu.models.enrollment import Enrollment
from myanedu.models.notification import Notification, NOTIFICATION_SUCCESS, NOTIFICATION_ERROR
from myanedu.models.payment import PAYMENT_VERIFIED
from myanedu.logging_config import get_logger, log_with_context

logger = get_logger("notifications")

PAYMENT_VERIFIED_KEY = "payment_verified"
PAYMENT_REJECTED_KEY = "payment_rejected"

TEMPLATES = {
    PAYMENT_VERIFIED_KEY: "Payment verified. You can now attend {course_title} ({batch_name}).",
    PAYMENT_REJECTED_KEY: "Payment rejected for {course_title} ({batch_name}). Please upload a valid receipt again.",
}


def render_notification(notification: Notification) -> str:
    """Render a notification's template with its parameters."""
    template = TEMPLATES.get(notification.template_key)
    if template is None:
        return notification.template_key
    try:
        return template.format(**notification.params_dict)
    except (KeyError, IndexError):
        return template


def lookup_enrollment_chain(db: Session, enrollment_id: int):
    """Resolve enrollment -> batch -> course; None if any link is gone."""
    return db.query(
        Enrollment.student_id, Batch.batch_name, Course.title
    ).join(
        Batch, Enrollment.batch_id == Batch.id
    ).join(
        Course, Batch.course_id == Course.id
    ).filter(Enrollment.id == enrollment_id).first()


def emit_adjudication_notification(db: Session, enrollment_id: int, payment_id: int,
                                   decision: str) -> Optional[Notification]:
    """
    Add the notification telling a student how their payment was decided.

    Runs inside a SAVEPOINT of the caller's transaction and never commits.

    Returns:
        The new Notification, or None when the enrollment chain does not
        resolve or the write failed
    """
    ctx = {"payment_id": payment_id, "enrollment_id": enrollment_id}
    try:
        with db.begin_nested():
            chain = lookup_enrollment_chain(db, enrollment_id)
            if chain is None:
                log_with_context(logger, "WARNING",
                                 "No batch/course for enrollment {}, notification skipped".format(enrollment_id),
                                 context=ctx)
                return None

            student_id, batch_name, course_title = chain
            verified = decision == PAYMENT_VERIFIED
            notification = Notification(
                student_id=student_id,
                type=NOTIFICATION_SUCCESS if verified else NOTIFICATION_ERROR,
                template_key=PAYMENT_VERIFIED_KEY if verified else PAYMENT_REJECTED_KEY,
                params=json.dumps({
                    "course_title": course_title,
                    "batch_name": batch_name,
                    "payment_id": payment_id
                })
            )
            db.add(notification)
    except SQLAlchemyError as e:
        log_with_context(logger, "ERROR", "Notification for payment {} failed: {}".format(payment_id, str(e)),
                         context=ctx, exc_info=True)
        return None

    log_with_context(logger, "INFO", "Notification {} queued for student {}".format(
        notification.template_key, notification.student_id), context=ctx)
    return notification


def list_notifications(db: Session, student_id: str, limit: int = NOTIFICATION_LIST_LIMIT):
    """Newest notifications for a student, capped at `limit`."""
    return db.query(Notification).filter(
        Notification.student_id == student_id
    ).order_by(Notification.created_at.desc(), Notification.id.desc()).limit(limit).all()


def mark_notification_read(db: Session, notification_id: int) -> Notification:
    """Mark a notification as read. Marking it again is a no-op."""
    notification = db.get(Notification, notification_id)
    if notification is None:
        raise NotFoundError("Notification not found", notification_id=notification_id)
    if notification.is_read:
        return notification

    notification.is_read = True
    commit_or_rollback(db, "Could not update notification", notification_id=notification_id)
    db.refresh(notification)
    return notification
