"""
Exam result API routes.
"""

from typing import Optional
from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from myanedu.database import get_db, commit_or_rollback
from myanedu.errors import NotFoundError, ValidationError
from myanedu.models.student import Student
from myanedu.models.course import Batch
from myanedu.models.enrollment import Enrollment
from myanedu.models.exam_result import ExamResult
from myanedu.serializers import serialize_exam_result

router = APIRouter()


class ExamResultCreate(BaseModel):
    enrollment_id: int
    exam_title: str
    marks_obtained: int = Field(..., ge=0)
    total_marks: int = Field(100, gt=0)
    grade: Optional[str] = None


@router.post("/exams")
def record_exam_result(request: ExamResultCreate, db: Session = Depends(get_db)):
    if db.get(Enrollment, request.enrollment_id) is None:
        raise NotFoundError("Enrollment not found", enrollment_id=request.enrollment_id)
    if request.marks_obtained > request.total_marks:
        raise ValidationError("Marks obtained exceed total marks", enrollment_id=request.enrollment_id)

    result = ExamResult(
        enrollment_id=request.enrollment_id,
        exam_title=request.exam_title,
        marks_obtained=request.marks_obtained,
        total_marks=request.total_marks,
        grade=request.grade
    )
    db.add(result)
    commit_or_rollback(db, "Exam result could not be saved", enrollment_id=request.enrollment_id)
    db.refresh(result)
    return serialize_exam_result(result)


@router.get("/exams")
def list_exam_results(db: Session = Depends(get_db)):
    rows = db.query(ExamResult, Student.name, Batch.batch_name).join(
        Enrollment, ExamResult.enrollment_id == Enrollment.id
    ).join(
        Student, Enrollment.student_id == Student.id
    ).join(
        Batch, Enrollment.batch_id == Batch.id
    ).order_by(ExamResult.result_date.desc()).all()
    return [
        {**serialize_exam_result(r), "student_name": name, "batch_name": batch_name}
        for r, name, batch_name in rows
    ]
