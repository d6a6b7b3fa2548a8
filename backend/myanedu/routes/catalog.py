"""
Catalog API routes - courses and their batches.

Provides endpoints for:
- Creating and listing courses
- Creating, editing and listing batches (admin view with lesson counts)
- Batches open for payment, with fees
- Promotional listing with seat usage
"""

from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy import func
from sqlalchemy.orm import Session

from myanedu.database import get_db, commit_or_rollback
from myanedu.errors import NotFoundError, ValidationError
from myanedu.models.course import Course, Batch
from myanedu.models.enrollment import Enrollment
from myanedu.models.lesson import Lesson
from myanedu.serializers import serialize_course, serialize_batch
from myanedu.logging_config import get_logger, log_with_context

router = APIRouter()
logger = get_logger("db")

OPEN_BATCH_STATUSES = ("active", "open")


# ── Pydantic schemas ─────────────────────────────────────────

class CourseCreate(BaseModel):
    title: str
    description: Optional[str] = None


class BatchCreate(BaseModel):
    id: str = Field(..., description="Batch code, e.g. C1-B1")
    course_id: int
    batch_name: str
    fees: float = 0
    start_date: Optional[date] = None
    max_students: Optional[int] = Field(None, ge=1)


class BatchUpdate(BaseModel):
    batch_name: Optional[str] = None
    fees: Optional[float] = None
    status: Optional[str] = None
    max_students: Optional[int] = Field(None, ge=1)


@router.post("/courses")
def create_course(request: CourseCreate, db: Session = Depends(get_db)):
    if not request.title.strip():
        raise ValidationError("Course title cannot be empty")
    course = Course(title=request.title.strip(), description=request.description)
    db.add(course)
    commit_or_rollback(db, "Course could not be created")
    db.refresh(course)
    log_with_context(logger, "INFO", "Created course: {}".format(course.title),
                     context={"course_id": course.id})
    return serialize_course(course)


@router.get("/courses")
def list_courses(db: Session = Depends(get_db)):
    return [serialize_course(c) for c in db.query(Course).order_by(Course.title.asc()).all()]


@router.post("/batches")
def create_batch(request: BatchCreate, db: Session = Depends(get_db)):
    if db.get(Course, request.course_id) is None:
        raise NotFoundError("Course not found", course_id=request.course_id)
    if db.get(Batch, request.id) is not None:
        raise ValidationError("Batch id already exists", batch_id=request.id)

    batch = Batch(
        id=request.id,
        course_id=request.course_id,
        batch_name=request.batch_name,
        fees=request.fees,
        start_date=request.start_date,
        max_students=request.max_students,
        status="active"
    )
    db.add(batch)
    commit_or_rollback(db, "Batch could not be created", batch_id=request.id)
    db.refresh(batch)
    log_with_context(logger, "INFO", "Created batch: {}".format(batch.batch_name),
                     context={"batch_id": batch.id, "course_id": batch.course_id})
    return serialize_batch(batch)


@router.put("/batches/{batch_id}")
def update_batch(batch_id: str, request: BatchUpdate, db: Session = Depends(get_db)):
    batch = db.get(Batch, batch_id)
    if batch is None:
        raise NotFoundError("Batch not found", batch_id=batch_id)

    if request.batch_name:
        batch.batch_name = request.batch_name
    if request.fees is not None:
        batch.fees = request.fees
    if request.status:
        batch.status = request.status.strip().lower()
    if request.max_students is not None:
        batch.max_students = request.max_students

    commit_or_rollback(db, "Batch could not be updated", batch_id=batch_id)
    db.refresh(batch)
    return {"message": "Updated", "batch": serialize_batch(batch)}


@router.get("/batches")
def list_batches(db: Session = Depends(get_db)):
    """Admin batch list with course name and lesson count, newest first."""
    lesson_count = db.query(
        Lesson.batch_id, func.count(Lesson.id).label("lesson_count")
    ).group_by(Lesson.batch_id).subquery()

    rows = db.query(
        Batch, Course.title, func.coalesce(lesson_count.c.lesson_count, 0)
    ).join(
        Course, Batch.course_id == Course.id
    ).outerjoin(
        lesson_count, lesson_count.c.batch_id == Batch.id
    ).order_by(Batch.created_at.desc()).all()

    return [
        {**serialize_batch(batch), "course_name": title, "lesson_count": int(count)}
        for batch, title, count in rows
    ]


@router.get("/batches/active")
def list_active_batches(db: Session = Depends(get_db)):
    """Batches a student can pay for, with fees, ordered by course title."""
    rows = db.query(Batch, Course.title).join(
        Course, Batch.course_id == Course.id
    ).filter(Batch.status.in_(OPEN_BATCH_STATUSES)).order_by(Course.title.asc(), Batch.id.asc()).all()
    return [
        {"id": batch.id, "batch_name": batch.batch_name, "fees": float(batch.fees or 0), "course_name": title}
        for batch, title in rows
    ]


@router.get("/batches/promo")
def list_promo_batches(db: Session = Depends(get_db)):
    """Every batch with its seat usage; unlimited batches report seats_left as null."""
    rows = db.query(
        Batch, Course.title, func.count(Enrollment.id)
    ).join(
        Course, Batch.course_id == Course.id
    ).outerjoin(
        Enrollment, Enrollment.batch_id == Batch.id
    ).group_by(Batch.id, Course.title).order_by(Batch.id.desc()).all()

    result = []
    for batch, title, current in rows:
        seats_left = None
        is_full = False
        if batch.max_students is not None:
            seats_left = max(batch.max_students - current, 0)
            is_full = current >= batch.max_students
        result.append({
            "id": batch.id,
            "batch_name": batch.batch_name,
            "course_name": title,
            "max_students": batch.max_students,
            "current_students": int(current),
            "is_full": is_full,
            "seats_left": seats_left
        })
    return result
