"""
Course and Batch models - the catalog.

A course is a catalog entry; a batch is one scheduled offering of a course
with its own fee and status. Students enroll in batches, not courses.
"""

from sqlalchemy import Column, Integer, Text, DateTime, String, Date, Float, ForeignKey
from sqlalchemy.orm import relationship
from myanedu.database import Base, utcnow


class Course(Base):
    """SQLAlchemy model for the courses table."""
    __tablename__ = "courses"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow)

    batches = relationship("Batch", back_populates="course")

    def __repr__(self):
        return f"<Course(id={self.id}, title='{self.title}')>"


class Batch(Base):
    """
    SQLAlchemy model for the batches table.

    Batch ids are chosen by the admin (e.g. 'C1-B1'). Only batches with
    status 'active' or 'open' are offered to students.
    """
    __tablename__ = "batches"

    id = Column(String(50), primary_key=True,
                doc="Admin-assigned batch code, e.g. 'C1-B1'")
    course_id = Column(Integer, ForeignKey("courses.id"), nullable=False)
    batch_name = Column(String(255), nullable=False)
    start_date = Column(Date, nullable=True)
    fees = Column(Float, nullable=False, default=0,
                  doc="Fee a student is expected to pay for this batch")
    status = Column(String(20), nullable=False, default="active",
                    doc="Offering status: active | open | closed")
    max_students = Column(Integer, nullable=True,
                          doc="Seat capacity (NULL means unlimited)")
    created_at = Column(DateTime, default=utcnow)

    course = relationship("Course", back_populates="batches")
    enrollments = relationship("Enrollment", back_populates="batch")
    lessons = relationship("Lesson", back_populates="batch")

    def __repr__(self):
        return f"<Batch(id={self.id}, name='{self.batch_name}', status='{self.status}')>"
