"""
Serializers turning ORM rows into API response dicts.

Passwords never leave the service: serialize_student omits the hash.
"""

from myanedu.models.student import Student
from myanedu.models.course import Course, Batch
from myanedu.models.enrollment import Enrollment
from myanedu.models.payment import Payment
from myanedu.models.notification import Notification
from myanedu.models.lesson import Lesson, Comment
from myanedu.models.exam_result import ExamResult
from myanedu.services.notifications import render_notification


def _iso(value):
    return value.isoformat() if value else None


def serialize_student(student: Student) -> dict:
    return {
        "id": str(student.id),
        "name": student.name,
        "phone_primary": student.phone_primary,
        "phone_secondary": student.phone_secondary,
        "address": student.address,
        "date_of_birth": _iso(student.date_of_birth),
        "profile_image": student.profile_image,
        "created_at": _iso(student.created_at)
    }


def serialize_course(course: Course) -> dict:
    return {
        "id": course.id,
        "title": course.title,
        "description": course.description,
        "created_at": _iso(course.created_at)
    }


def serialize_batch(batch: Batch) -> dict:
    return {
        "id": batch.id,
        "course_id": batch.course_id,
        "batch_name": batch.batch_name,
        "start_date": _iso(batch.start_date),
        "fees": float(batch.fees or 0),
        "status": batch.status,
        "max_students": batch.max_students,
        "created_at": _iso(batch.created_at)
    }


def serialize_enrollment(enrollment: Enrollment) -> dict:
    return {
        "id": enrollment.id,
        "student_id": str(enrollment.student_id),
        "batch_id": enrollment.batch_id,
        "status": enrollment.status,
        "joined_at": _iso(enrollment.joined_at),
        "expire_date": _iso(enrollment.expire_date)
    }


def serialize_payment(payment: Payment) -> dict:
    return {
        "id": payment.id,
        "enrollment_id": payment.enrollment_id,
        "amount": float(payment.amount),
        "payment_method": payment.payment_method,
        "transaction_id": payment.transaction_id,
        "receipt_image": payment.receipt_image,
        "status": payment.status,
        "payment_date": _iso(payment.payment_date)
    }


def serialize_notification(notification: Notification) -> dict:
    return {
        "id": notification.id,
        "student_id": str(notification.student_id),
        "type": notification.type,
        "template_key": notification.template_key,
        "params": notification.params_dict,
        "message": render_notification(notification),
        "is_read": bool(notification.is_read),
        "created_at": _iso(notification.created_at)
    }


def serialize_lesson(lesson: Lesson) -> dict:
    return {
        "id": lesson.id,
        "batch_id": lesson.batch_id,
        "title": lesson.title,
        "video_url": lesson.video_url,
        "description": lesson.description,
        "created_at": _iso(lesson.created_at)
    }


def serialize_comment(comment: Comment) -> dict:
    return {
        "id": comment.id,
        "lesson_id": comment.lesson_id,
        "user_name": comment.user_name,
        "user_role": comment.user_role,
        "message": comment.message,
        "created_at": _iso(comment.created_at)
    }


def serialize_exam_result(result: ExamResult) -> dict:
    return {
        "id": result.id,
        "enrollment_id": result.enrollment_id,
        "exam_title": result.exam_title,
        "marks_obtained": result.marks_obtained,
        "total_marks": result.total_marks,
        "grade": result.grade,
        "result_date": _iso(result.result_date)
    }
