"""
ExamResult model - a graded exam for one enrollment.
"""

from sqlalchemy import Column, Integer, DateTime, String, ForeignKey
from sqlalchemy.orm import relationship
from myanedu.database import Base, utcnow


class ExamResult(Base):
    """SQLAlchemy model for the exam_results table."""
    __tablename__ = "exam_results"

    id = Column(Integer, primary_key=True, autoincrement=True)
    enrollment_id = Column(Integer, ForeignKey("enrollments.id", ondelete="CASCADE"), nullable=False)
    exam_title = Column(String(255), nullable=False)
    marks_obtained = Column(Integer, nullable=False)
    total_marks = Column(Integer, nullable=False, default=100)
    grade = Column(String(10), nullable=True)
    result_date = Column(DateTime, default=utcnow)

    enrollment = relationship("Enrollment", back_populates="exam_results")

    def __repr__(self):
        return f"<ExamResult(id={self.id}, enrollment={self.enrollment_id}, {self.marks_obtained}/{self.total_marks})>"
