"""
Notification model - messages addressed to a student.

Notifications are stored as a structured payload (template key plus JSON
parameters). Turning that into display text happens at presentation time.
"""

import json
from sqlalchemy import Column, Integer, Text, DateTime, String, Boolean, ForeignKey, Index
from sqlalchemy.orm import relationship
from myanedu.database import Base, utcnow

NOTIFICATION_SUCCESS = "success"
NOTIFICATION_ERROR = "error"
NOTIFICATION_INFO = "info"


class Notification(Base):
    """SQLAlchemy model for the notifications table."""
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, autoincrement=True)
    student_id = Column(String(36), ForeignKey("students.id", ondelete="CASCADE"), nullable=False)
    type = Column(String(20), nullable=False, default=NOTIFICATION_INFO,
                  doc="success | error | info")
    template_key = Column(String(50), nullable=False,
                          doc="Identifies the message template, e.g. 'payment_verified'")
    params = Column(Text, nullable=False, default="{}",
                    doc="Template parameters as JSON string")
    is_read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=utcnow)

    student = relationship("Student", back_populates="notifications")

    __table_args__ = (
        Index("ix_notifications_student_id", "student_id"),
    )

    @property
    def params_dict(self):
        """Parse params JSON string to dict."""
        if isinstance(self.params, dict):
            return self.params
        try:
            return json.loads(self.params) if self.params else {}
        except (json.JSONDecodeError, TypeError):
            return {}

    def __repr__(self):
        return f"<Notification(id={self.id}, student={self.student_id}, key='{self.template_key}')>"
