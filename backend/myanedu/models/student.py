"""
Student model - represents a registered learner.

Students are identified by UUID and log in with their primary phone
number. Enrollments and notifications belong to the student and are
deleted together with it.
"""

import uuid
from sqlalchemy import Column, Text, DateTime, String, Date
from sqlalchemy.orm import relationship
from myanedu.database import Base, utcnow


class Student(Base):
    """
    SQLAlchemy model for the students table.

    The primary phone is unique and doubles as the login identifier.
    Only the bcrypt digest of the password is stored.
    """
    __tablename__ = "students"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()),
                doc="Unique student identifier")
    name = Column(String(255), nullable=False,
                  doc="Student's display name")
    phone_primary = Column(String(50), nullable=False, unique=True,
                           doc="Login phone number (unique)")
    phone_secondary = Column(String(50), nullable=True,
                             doc="Optional second contact number")
    password_hash = Column(String(255), nullable=False,
                           doc="bcrypt digest of the student's password")
    address = Column(Text, nullable=True)
    date_of_birth = Column(Date, nullable=True)
    profile_image = Column(Text, nullable=True,
                           doc="Media store URL of the profile picture")
    created_at = Column(DateTime, default=utcnow,
                        doc="Timestamp when the student registered")

    enrollments = relationship("Enrollment", back_populates="student",
                               cascade="all, delete-orphan", passive_deletes=True)
    notifications = relationship("Notification", back_populates="student",
                                 cascade="all, delete-orphan", passive_deletes=True)

    def __repr__(self):
        return f"<Student(id={self.id}, name='{self.name}', phone='{self.phone_primary}')>"
