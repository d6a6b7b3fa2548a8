from myanedu.models.student import Student
from myanedu.models.course import Course, Batch
from myanedu.models.enrollment import Enrollment
from myanedu.models.payment import Payment
from myanedu.models.notification import Notification
from myanedu.models.lesson import Lesson, Comment
from myanedu.models.exam_result import ExamResult

__all__ = [
    "Student", "Course", "Batch", "Enrollment", "Payment",
    "Notification", "Lesson", "Comment", "ExamResult",
]
