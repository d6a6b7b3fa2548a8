"""
Enrollment model - links one student to one batch.

The enrollment carries the student's access state for the batch:
status (pending | active | rejected) and the timestamp at which access
expires. Status and expiry only change when a payment is adjudicated.
"""

from sqlalchemy import Column, Integer, DateTime, String, Date, ForeignKey, UniqueConstraint, Index
from sqlalchemy.orm import relationship
from myanedu.database import Base, utcnow

ENROLLMENT_PENDING = "pending"
ENROLLMENT_ACTIVE = "active"
ENROLLMENT_REJECTED = "rejected"


class Enrollment(Base):
    """
    SQLAlchemy model for the enrollments table.

    At most one row exists per (student_id, batch_id); the resolver reuses
    that row instead of creating another one.
    """
    __tablename__ = "enrollments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    student_id = Column(String(36), ForeignKey("students.id", ondelete="CASCADE"), nullable=False,
                        doc="Reference to the enrolled student")
    batch_id = Column(String(50), ForeignKey("batches.id"), nullable=False,
                      doc="Reference to the batch")
    status = Column(String(20), nullable=False, default=ENROLLMENT_PENDING,
                    doc="Access status: pending | active | rejected")
    joined_at = Column(Date, nullable=False, default=lambda: utcnow().date(),
                       doc="Date the enrollment was created")
    expire_date = Column(DateTime, nullable=True,
                         doc="When access to the batch's lessons ends")

    student = relationship("Student", back_populates="enrollments")
    batch = relationship("Batch", back_populates="enrollments")
    payments = relationship("Payment", back_populates="enrollment",
                            cascade="all, delete-orphan", passive_deletes=True)
    exam_results = relationship("ExamResult", back_populates="enrollment",
                                cascade="all, delete-orphan", passive_deletes=True)

    __table_args__ = (
        UniqueConstraint("student_id", "batch_id", name="uq_enrollments_student_batch"),
        Index("ix_enrollments_student_id", "student_id"),
    )

    def __repr__(self):
        return f"<Enrollment(id={self.id}, student={self.student_id}, batch={self.batch_id}, status='{self.status}')>"
