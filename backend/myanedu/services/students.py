"""
Student accounts - registration, login, profile changes and deletion.

Passwords are stored as bcrypt digests. Deleting a student removes the
rows that hang off the student (notifications, exam results, payments,
enrollments) in the same transaction as the student row itself.
"""

from datetime import date
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from myanedu.database import commit_or_rollback
from myanedu.errors import NotFoundError, ValidationError, AuthenticationError, StorageError
from myanedu.models.student import Student
from myanedu.models.enrollment import Enrollment
from myanedu.models.payment import Payment
from myanedu.models.notification import Notification
from myanedu.models.exam_result import ExamResult
from myanedu.services.credentials import hash_password, verify_password
from myanedu.logging_config import get_logger, log_with_context

logger = get_logger("db")


def normalize_phone(phone: str) -> str:
    """Strip whitespace, dashes and brackets from a phone number."""
    if not phone:
        return phone
    return "".join(ch for ch in phone.strip() if ch not in " -()")


def find_by_phone(db: Session, phone: str) -> Optional[Student]:
    return db.query(Student).filter(Student.phone_primary == normalize_phone(phone)).first()


def flush_phone_change(db: Session, phone: str) -> None:
    """
    Flush a new or changed primary phone.

    A concurrent registration can take the phone between the lookup and the
    write; the unique constraint then reports it as an IntegrityError.
    """
    try:
        db.flush()
    except IntegrityError as e:
        db.rollback()
        raise ValidationError("Phone exists", phone=phone) from e


def get_student(db: Session, student_id: str) -> Student:
    student = db.get(Student, student_id)
    if student is None:
        raise NotFoundError("Student not found", student_id=student_id)
    return student


def register_student(db: Session, name: str, phone: str, password: str,
                     address: Optional[str] = None,
                     date_of_birth: Optional[date] = None) -> Student:
    """
    Create a student account.

    Raises:
        ValidationError: missing fields, phone already registered, unusable password
    """
    phone = normalize_phone(phone)
    if not name or not name.strip() or not phone:
        raise ValidationError("Name and phone are required")
    if find_by_phone(db, phone):
        raise ValidationError("Phone exists", phone=phone)
    try:
        password_hash = hash_password(password)
    except ValueError as e:
        raise ValidationError(str(e)) from e

    student = Student(
        name=name.strip(),
        phone_primary=phone,
        password_hash=password_hash,
        address=address,
        date_of_birth=date_of_birth
    )
    db.add(student)
    flush_phone_change(db, phone)
    commit_or_rollback(db, "Student could not be registered", phone=phone)
    db.refresh(student)

    log_with_context(logger, "INFO", "Registered student {}".format(student.name),
                     context={"student_id": student.id})
    return student


def authenticate(db: Session, phone: str, password: str) -> Student:
    """Return the student whose phone and password match."""
    student = find_by_phone(db, phone)
    if student is None or not verify_password(password, student.password_hash):
        log_with_context(logger, "WARNING", "Login failed", extra_data={"phone": normalize_phone(phone)})
        raise AuthenticationError("Login Failed")
    return student


def check_password_change(student: Student, old_password: Optional[str],
                          new_password: Optional[str]) -> bool:
    """
    Return True when a new password is requested and the old one matches.

    Raises:
        ValidationError: new password given without the old one
        AuthenticationError: old password does not match
    """
    if not new_password or not new_password.strip():
        return False
    if not old_password:
        raise ValidationError("Need Old Password", student_id=student.id)
    if not verify_password(old_password, student.password_hash):
        raise AuthenticationError("Wrong Old Password", student_id=student.id)
    return True


def update_profile(db: Session, student_id: str, name: Optional[str] = None,
                   address: Optional[str] = None, old_password: Optional[str] = None,
                   new_password: Optional[str] = None,
                   profile_image: Optional[str] = None) -> Student:
    """
    Self-service profile update.

    Changing the password requires the current one.

    Raises:
        NotFoundError: unknown student
        ValidationError: new password given without the old one
        AuthenticationError: old password does not match
    """
    student = get_student(db, student_id)

    if check_password_change(student, old_password, new_password):
        try:
            student.password_hash = hash_password(new_password)
        except ValueError as e:
            raise ValidationError(str(e), student_id=student_id) from e

    if name:
        student.name = name.strip()
    if address:
        student.address = address
    if profile_image:
        student.profile_image = profile_image

    commit_or_rollback(db, "Profile could not be updated", student_id=student_id)
    db.refresh(student)
    return student


def admin_update_student(db: Session, student_id: str, name: Optional[str] = None,
                         phone_primary: Optional[str] = None,
                         phone_secondary: Optional[str] = None,
                         address: Optional[str] = None) -> Student:
    """Admin edit of a student's contact details."""
    student = get_student(db, student_id)

    if phone_primary:
        phone_primary = normalize_phone(phone_primary)
        other = find_by_phone(db, phone_primary)
        if other is not None and other.id != student.id:
            raise ValidationError("Phone exists", phone=phone_primary)
        student.phone_primary = phone_primary
    if name:
        student.name = name.strip()
    if phone_secondary is not None:
        student.phone_secondary = normalize_phone(phone_secondary) or None
    if address is not None:
        student.address = address

    if phone_primary:
        flush_phone_change(db, phone_primary)
    commit_or_rollback(db, "Student could not be updated", student_id=student_id)
    db.refresh(student)
    return student


def delete_student(db: Session, student_id: str) -> dict:
    """
    Delete a student and everything owned by the student in one transaction.

    Returns:
        Counts of deleted rows per table
    """
    student = get_student(db, student_id)
    enrollment_ids = select(Enrollment.id).where(Enrollment.student_id == student_id)

    try:
        counts = {
            "notifications": db.query(Notification).filter(
                Notification.student_id == student_id
            ).delete(synchronize_session=False),
            "exam_results": db.query(ExamResult).filter(
                ExamResult.enrollment_id.in_(enrollment_ids)
            ).delete(synchronize_session=False),
            "payments": db.query(Payment).filter(
                Payment.enrollment_id.in_(enrollment_ids)
            ).delete(synchronize_session=False),
            "enrollments": db.query(Enrollment).filter(
                Enrollment.student_id == student_id
            ).delete(synchronize_session=False),
        }
        db.delete(student)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        log_with_context(logger, "ERROR", "Delete of student {} rolled back: {}".format(student_id, str(e)),
                         context={"student_id": student_id})
        raise StorageError("Student could not be deleted", student_id=student_id) from e

    log_with_context(logger, "INFO", "Deleted student {}".format(student_id),
                     context={"student_id": student_id}, extra_data=counts)
    return counts
