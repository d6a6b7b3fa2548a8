"""
Enrollment Resolver - finds or creates the enrollment for (student, batch).

Submitting a payment, or an admin enrolling a student by hand, both go
through resolve_enrollment(). An existing enrollment is always reused as
is, so paying again for a batch never resets the student's progress.

The (student_id, batch_id) unique constraint is the arbiter when two
requests race to create the same enrollment: the loser's insert fails
inside a SAVEPOINT, and the row written by the winner is returned.
"""

from datetime import timedelta
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from myanedu.config import ENROLLMENT_GRACE_DAYS
from myanedu.database import utcnow
from myanedu.errors import NotFoundError, ConflictError
from myanedu.models.student import Student
from myanedu.models.course import Batch
from myanedu.models.enrollment import Enrollment, ENROLLMENT_PENDING
from myanedu.logging_config import get_logger, log_with_context

logger = get_logger("db")


def find_enrollment(db: Session, student_id: str, batch_id: str) -> Optional[Enrollment]:
    return db.query(Enrollment).filter(
        Enrollment.student_id == student_id,
        Enrollment.batch_id == batch_id
    ).first()


def latest_enrollment(db: Session, student_id: str) -> Optional[Enrollment]:
    """The student's most recently joined enrollment, if any."""
    return db.query(Enrollment).filter(
        Enrollment.student_id == student_id
    ).order_by(Enrollment.joined_at.desc(), Enrollment.id.desc()).first()


def resolve_enrollment(db: Session, student_id: str, batch_id: str,
                       initial_status: str = ENROLLMENT_PENDING) -> Enrollment:
    """
    Return the enrollment for (student_id, batch_id), creating it if needed.

    The new row is flushed but not committed; the caller owns the
    transaction.

    Args:
        db: Database session
        student_id: Student to enroll
        batch_id: Batch to enroll in
        initial_status: Status given to a newly created enrollment

    Raises:
        NotFoundError: student or batch does not exist
        ConflictError: the insert collided but the conflicting row is not visible
    """
    if db.get(Student, student_id) is None:
        raise NotFoundError("Student not found", student_id=student_id)

    existing = find_enrollment(db, student_id, batch_id)
    if existing:
        log_with_context(logger, "DEBUG", "Reusing enrollment {}".format(existing.id),
                         context={"student_id": student_id, "enrollment_id": existing.id})
        return existing

    if db.get(Batch, batch_id) is None:
        raise NotFoundError("Batch not found", batch_id=batch_id)

    now = utcnow()
    enrollment = Enrollment(
        student_id=student_id,
        batch_id=batch_id,
        status=initial_status,
        joined_at=now.date(),
        expire_date=now + timedelta(days=ENROLLMENT_GRACE_DAYS)
    )
    try:
        with db.begin_nested():
            db.add(enrollment)
    except IntegrityError:
        existing = find_enrollment(db, student_id, batch_id)
        if existing is None:
            raise ConflictError("Enrollment could not be created", student_id=student_id, batch_id=batch_id)
        log_with_context(logger, "INFO", "Enrollment created concurrently, reusing {}".format(existing.id),
                         context={"student_id": student_id, "enrollment_id": existing.id})
        return existing

    log_with_context(logger, "INFO", "Created enrollment {} in batch {}".format(enrollment.id, batch_id),
                     context={"student_id": student_id, "enrollment_id": enrollment.id},
                     extra_data={"status": initial_status})
    return enrollment
