"""
Lesson and comment API routes.

Provides endpoints for:
- Uploading a lesson video to the media store and recording the lesson
- Listing and deleting lessons
- Lesson comment threads (student questions, admin replies)
- The admin discussion overview grouped by student and lesson
"""

from typing import Optional
from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from pydantic import BaseModel
from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session, aliased

from myanedu.database import get_db, commit_or_rollback
from myanedu.errors import NotFoundError, ValidationError
from myanedu.models.course import Batch
from myanedu.models.lesson import Lesson, Comment, ROLE_STUDENT, ROLE_ADMIN
from myanedu.serializers import serialize_lesson, serialize_comment
from myanedu.services.media import MediaStore, get_media_store
from myanedu.logging_config import get_logger, log_with_context

router = APIRouter()
logger = get_logger("db")

ADMIN_NAME = "Admin"


# ── Pydantic schemas ─────────────────────────────────────────

class StudentCommentRequest(BaseModel):
    lesson_id: int
    user_name: str
    message: str


class AdminReplyRequest(BaseModel):
    lesson_id: int
    message: Optional[str] = None
    comment: Optional[str] = None


def _require_lesson(db: Session, lesson_id: int) -> Lesson:
    lesson = db.get(Lesson, lesson_id)
    if lesson is None:
        raise NotFoundError("Lesson not found", lesson_id=lesson_id)
    return lesson


def _add_comment(db: Session, lesson_id: int, user_name: str, role: str, message: str) -> Comment:
    if not message or not message.strip():
        raise ValidationError("lesson_id and message are required", lesson_id=lesson_id)
    _require_lesson(db, lesson_id)

    comment = Comment(lesson_id=lesson_id, user_name=user_name, user_role=role, message=message.strip())
    db.add(comment)
    commit_or_rollback(db, "Comment could not be saved", lesson_id=lesson_id)
    db.refresh(comment)
    return comment


@router.post("/lessons")
def create_lesson(
    batch_id: str = Form(...),
    title: str = Form(...),
    description: Optional[str] = Form(None),
    video_file: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db),
    media: MediaStore = Depends(get_media_store)
):
    """Record a lesson; an attached video is uploaded to the media store first."""
    if db.get(Batch, batch_id) is None:
        raise NotFoundError("Batch not found", batch_id=batch_id)

    video_url = None
    if video_file is not None:
        video_url = media.upload(
            video_file.file.read(), video_file.filename,
            video_file.content_type or "application/octet-stream"
        )

    lesson = Lesson(batch_id=batch_id, title=title, description=description, video_url=video_url)
    db.add(lesson)
    commit_or_rollback(db, "Lesson could not be saved", batch_id=batch_id)
    db.refresh(lesson)

    log_with_context(logger, "INFO", "Created lesson: {}".format(title),
                     context={"lesson_id": lesson.id, "batch_id": batch_id})
    return serialize_lesson(lesson)


@router.get("/lessons")
def list_lessons(batch_id: Optional[str] = Query(None), db: Session = Depends(get_db)):
    if not batch_id:
        raise ValidationError("Batch ID Required")
    lessons = db.query(Lesson).filter(Lesson.batch_id == batch_id).order_by(Lesson.id.asc()).all()
    return [serialize_lesson(l) for l in lessons]


@router.delete("/lessons/{lesson_id}")
def delete_lesson(lesson_id: int, db: Session = Depends(get_db)):
    lesson = _require_lesson(db, lesson_id)
    db.delete(lesson)
    commit_or_rollback(db, "Lesson could not be deleted", lesson_id=lesson_id)
    return {"message": "Lesson deleted successfully"}


@router.get("/comments")
def list_comments(
    lesson_id: Optional[int] = Query(None),
    student_name: Optional[str] = Query(None, description="Only this student's thread"),
    db: Session = Depends(get_db)
):
    """Comments on a lesson, oldest first. Admin replies are part of every thread."""
    if lesson_id is None:
        raise ValidationError("lesson_id is required")

    query = db.query(Comment).filter(Comment.lesson_id == lesson_id)
    if student_name:
        query = query.filter(or_(Comment.user_name == student_name, Comment.user_role == ROLE_ADMIN))
    comments = query.order_by(Comment.created_at.asc(), Comment.id.asc()).all()
    return [serialize_comment(c) for c in comments]


@router.post("/comments")
def post_student_comment(request: StudentCommentRequest, db: Session = Depends(get_db)):
    comment = _add_comment(db, request.lesson_id, request.user_name, ROLE_STUDENT, request.message)
    return serialize_comment(comment)


@router.post("/admin/comments", status_code=201)
def post_admin_reply(request: AdminReplyRequest, db: Session = Depends(get_db)):
    comment = _add_comment(db, request.lesson_id, ADMIN_NAME, ROLE_ADMIN,
                           request.message or request.comment)
    return serialize_comment(comment)


@router.get("/discussions")
def list_discussions(db: Session = Depends(get_db)):
    """
    One row per (student, lesson) thread, most recently active first.

    The last message considers admin replies on the lesson too.
    """
    reply = aliased(Comment)
    last_message = select(reply.message).where(
        reply.lesson_id == Comment.lesson_id,
        or_(reply.user_name == Comment.user_name, reply.user_role == ROLE_ADMIN)
    ).order_by(reply.created_at.desc(), reply.id.desc()).limit(1).correlate(Comment).scalar_subquery()

    last_time = func.max(Comment.created_at)
    rows = db.query(
        Comment.user_name, Comment.lesson_id, Lesson.title, Batch.batch_name,
        func.count(Comment.id), last_time, last_message
    ).join(
        Lesson, Comment.lesson_id == Lesson.id
    ).outerjoin(
        Batch, Lesson.batch_id == Batch.id
    ).filter(
        Comment.user_role == ROLE_STUDENT
    ).group_by(
        Comment.user_name, Comment.lesson_id, Lesson.title, Batch.batch_name
    ).order_by(last_time.desc()).all()

    return [
        {
            "student_name": user_name,
            "lesson_id": lesson_id,
            "lesson_title": lesson_title,
            "batch_name": batch_name,
            "total_comments": int(total),
            "last_message_time": last_at.isoformat() if last_at else None,
            "last_message": message
        }
        for user_name, lesson_id, lesson_title, batch_name, total, last_at, message in rows
    ]
