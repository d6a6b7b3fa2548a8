"""
Student API routes - accounts, enrollments and per-student history.

Provides endpoints for:
- Registration and login
- Admin listing, search, edit and delete
- Self-service profile update (with optional profile image upload)
- Explicit enrollment into a batch
- A student's enrollments, payment history and exam results
"""

from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from myanedu.database import get_db, commit_or_rollback
from myanedu.errors import NotFoundError, ValidationError
from myanedu.models.student import Student
from myanedu.models.course import Batch, Course
from myanedu.models.enrollment import Enrollment, ENROLLMENT_ACTIVE
from myanedu.models.exam_result import ExamResult
from myanedu.serializers import (
    serialize_student, serialize_enrollment, serialize_payment, serialize_exam_result
)
from myanedu.services.enrollment import resolve_enrollment
from myanedu.services.media import MediaStore, get_media_store
from myanedu.services.payments import list_student_payments
from myanedu.services.students import (
    register_student, authenticate, update_profile, admin_update_student,
    delete_student, find_by_phone, get_student, check_password_change
)
from myanedu.logging_config import get_logger, log_with_context

router = APIRouter()
logger = get_logger("http")


# ── Pydantic schemas ─────────────────────────────────────────

class RegisterRequest(BaseModel):
    name: str
    phone: str
    password: str
    address: Optional[str] = None
    date_of_birth: Optional[date] = None


class LoginRequest(BaseModel):
    phone: str
    password: str


class StudentUpdate(BaseModel):
    """Admin edit of a student's contact details."""
    name: Optional[str] = None
    phone_primary: Optional[str] = None
    phone_secondary: Optional[str] = None
    address: Optional[str] = None


class EnrollRequest(BaseModel):
    """Enroll by ids, or by phone and batch name as admins type them."""
    model_config = ConfigDict(populate_by_name=True)

    student_id: Optional[str] = Field(None, alias="studentId")
    batch_id: Optional[str] = Field(None, alias="batchId")
    phone: Optional[str] = None
    batch_name: Optional[str] = Field(None, alias="batchName")


@router.post("/students/register")
def register(request: RegisterRequest, db: Session = Depends(get_db)):
    student = register_student(
        db, request.name, request.phone, request.password,
        address=request.address, date_of_birth=request.date_of_birth
    )
    return serialize_student(student)


@router.post("/students/login")
def login(request: LoginRequest, db: Session = Depends(get_db)):
    student = authenticate(db, request.phone, request.password)
    log_with_context(logger, "INFO", "Student logged in", context={"student_id": str(student.id)})
    return serialize_student(student)


@router.get("/students")
def list_students(db: Session = Depends(get_db)):
    students = db.query(Student).order_by(Student.created_at.desc()).all()
    return [serialize_student(s) for s in students]


@router.get("/students/search")
def search_student(phone: Optional[str] = Query(None), db: Session = Depends(get_db)):
    if not phone:
        raise ValidationError("Phone required")
    student = find_by_phone(db, phone)
    if student is None:
        raise NotFoundError("Not found", phone=phone)
    return serialize_student(student)


@router.get("/students/{student_id}")
def read_student(student_id: str, db: Session = Depends(get_db)):
    return serialize_student(get_student(db, student_id))


@router.put("/students/{student_id}/profile")
def update_own_profile(
    student_id: str,
    name: Optional[str] = Form(None),
    address: Optional[str] = Form(None),
    old_password: Optional[str] = Form(None),
    new_password: Optional[str] = Form(None),
    profile_image: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db),
    media: MediaStore = Depends(get_media_store)
):
    """Update name/address/password; a new profile image goes to the media store."""
    student = get_student(db, student_id)
    check_password_change(student, old_password, new_password)
    image_url = None
    if profile_image is not None:
        image_url = media.upload(
            profile_image.file.read(), profile_image.filename,
            profile_image.content_type or "application/octet-stream"
        )
    student = update_profile(
        db, student_id, name=name, address=address,
        old_password=old_password, new_password=new_password,
        profile_image=image_url
    )
    return {"message": "Updated!", "student": serialize_student(student)}


@router.put("/students/{student_id}")
def update_student(student_id: str, request: StudentUpdate, db: Session = Depends(get_db)):
    student = admin_update_student(
        db, student_id,
        name=request.name,
        phone_primary=request.phone_primary,
        phone_secondary=request.phone_secondary,
        address=request.address
    )
    return {"message": "Updated successfully", "student": serialize_student(student)}


@router.delete("/students/{student_id}")
def remove_student(student_id: str, db: Session = Depends(get_db)):
    counts = delete_student(db, student_id)
    return {"message": "Deleted Successfully!", "deleted": counts}


@router.post("/enrollments")
def enroll(request: EnrollRequest, db: Session = Depends(get_db)):
    """Enroll a student in a batch directly; the enrollment starts active."""
    student_id = request.student_id
    batch_id = request.batch_id

    if not student_id and request.phone:
        student = find_by_phone(db, request.phone)
        if student is None:
            raise NotFoundError("Student not found", phone=request.phone)
        student_id = student.id
    if not batch_id and request.batch_name:
        batch = db.query(Batch).filter(Batch.batch_name == request.batch_name).first()
        if batch is None:
            raise NotFoundError("Batch not found", batch_name=request.batch_name)
        batch_id = batch.id
    if not student_id or not batch_id:
        raise ValidationError("Student and batch are required")

    enrollment = resolve_enrollment(db, student_id, batch_id, initial_status=ENROLLMENT_ACTIVE)
    commit_or_rollback(db, "Enrollment could not be saved", student_id=student_id, batch_id=batch_id)
    db.refresh(enrollment)
    return serialize_enrollment(enrollment)


@router.get("/students/{student_id}/enrollments")
def student_enrollments(student_id: str, db: Session = Depends(get_db)):
    rows = db.query(Enrollment, Batch, Course).join(
        Batch, Enrollment.batch_id == Batch.id
    ).join(
        Course, Batch.course_id == Course.id
    ).filter(Enrollment.student_id == student_id).order_by(Enrollment.joined_at.desc()).all()
    return [
        {**serialize_enrollment(e), "batch_name": b.batch_name, "course_name": c.title}
        for e, b, c in rows
    ]


@router.get("/students/{student_id}/payments")
def student_payments(student_id: str, db: Session = Depends(get_db)):
    """Payment history with the enrollment state each payment affects."""
    return [
        {
            **serialize_payment(p),
            "batch_id": b.id,
            "batch_name": b.batch_name,
            "course_name": c.title,
            "enrollment_status": e.status,
            "expire_date": e.expire_date.isoformat() if e.expire_date else None
        }
        for p, e, b, c in list_student_payments(db, student_id)
    ]


@router.get("/students/{student_id}/exams")
def student_exams(student_id: str, db: Session = Depends(get_db)):
    rows = db.query(ExamResult, Batch, Course).join(
        Enrollment, ExamResult.enrollment_id == Enrollment.id
    ).join(
        Batch, Enrollment.batch_id == Batch.id
    ).join(
        Course, Batch.course_id == Course.id
    ).filter(Enrollment.student_id == student_id).order_by(ExamResult.result_date.desc()).all()
    return [
        {**serialize_exam_result(r), "batch_name": b.batch_name, "course_name": c.title}
        for r, b, c in rows
    ]
