"""
Lesson and Comment models.

Lessons are video references hosted on the media store. Each lesson has a
comment thread in which students ask questions and admins reply.
"""

from sqlalchemy import Column, Integer, Text, DateTime, String, ForeignKey, Index
from sqlalchemy.orm import relationship
from myanedu.database import Base, utcnow

ROLE_STUDENT = "student"
ROLE_ADMIN = "admin"


class Lesson(Base):
    """SQLAlchemy model for the lessons table."""
    __tablename__ = "lessons"

    id = Column(Integer, primary_key=True, autoincrement=True)
    batch_id = Column(String(50), ForeignKey("batches.id"), nullable=False)
    title = Column(String(255), nullable=False)
    video_url = Column(Text, nullable=True,
                       doc="Media store URL of the lesson video")
    description = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow)

    batch = relationship("Batch", back_populates="lessons")
    comments = relationship("Comment", back_populates="lesson",
                            cascade="all, delete-orphan", passive_deletes=True)

    __table_args__ = (
        Index("ix_lessons_batch_id", "batch_id"),
    )

    def __repr__(self):
        return f"<Lesson(id={self.id}, batch={self.batch_id}, title='{self.title}')>"


class Comment(Base):
    """
    SQLAlchemy model for the comments table.

    Comments are not linked to a student row; the author is recorded by
    display name and role, as shown in the lesson thread.
    """
    __tablename__ = "comments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    lesson_id = Column(Integer, ForeignKey("lessons.id", ondelete="CASCADE"), nullable=False)
    user_name = Column(String(255), nullable=False)
    user_role = Column(String(20), nullable=False, default=ROLE_STUDENT,
                       doc="student | admin")
    message = Column(Text, nullable=False)
    created_at = Column(DateTime, default=utcnow)

    lesson = relationship("Lesson", back_populates="comments")

    __table_args__ = (
        Index("ix_comments_lesson_id", "lesson_id"),
    )

    def __repr__(self):
        return f"<Comment(id={self.id}, lesson={self.lesson_id}, by='{self.user_name}')>"
