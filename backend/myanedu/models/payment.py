"""
Payment model - one payment attempt against an enrollment.

Lifecycle:
- pending: submitted by the student with a receipt, awaiting review
- verified: accepted by an admin (terminal)
- rejected: refused by an admin (terminal)
"""

from sqlalchemy import Column, Integer, Float, DateTime, String, Text, ForeignKey, Index
from sqlalchemy.orm import relationship
from myanedu.database import Base, utcnow

PAYMENT_PENDING = "pending"
PAYMENT_VERIFIED = "verified"
PAYMENT_REJECTED = "rejected"

TERMINAL_PAYMENT_STATUSES = {PAYMENT_VERIFIED, PAYMENT_REJECTED}


class Payment(Base):
    """SQLAlchemy model for the payments table."""
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    enrollment_id = Column(Integer, ForeignKey("enrollments.id", ondelete="CASCADE"), nullable=True,
                           doc="Enrollment this payment pays for")
    amount = Column(Float, nullable=False)
    payment_method = Column(String(50), nullable=True,
                            doc="Wallet or bank, e.g. 'KBZPay'")
    transaction_id = Column(String(100), nullable=True,
                            doc="Transaction reference printed on the receipt")
    receipt_image = Column(Text, nullable=True,
                           doc="Media store URL of the uploaded receipt")
    status = Column(String(20), nullable=False, default=PAYMENT_PENDING,
                    doc="pending | verified | rejected")
    payment_date = Column(DateTime, nullable=False, default=utcnow)

    enrollment = relationship("Enrollment", back_populates="payments")

    __table_args__ = (
        Index("ix_payments_status", "status"),
        Index("ix_payments_enrollment_id", "enrollment_id"),
    )

    def __repr__(self):
        return f"<Payment(id={self.id}, enrollment={self.enrollment_id}, amount={self.amount}, status='{self.status}')>"
