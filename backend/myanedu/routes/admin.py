"""
Admin dashboard routes.
"""

from fastapi import APIRouter, Depends
from sqlalchemy import func
from sqlalchemy.orm import Session

from myanedu.database import get_db
from myanedu.models.student import Student
from myanedu.models.payment import Payment, PAYMENT_VERIFIED, PAYMENT_PENDING

router = APIRouter()


@router.get("/stats")
def dashboard_stats(db: Session = Depends(get_db)):
    """Headline numbers: students, verified income, payments awaiting review."""
    total_students = db.query(func.count(Student.id)).scalar() or 0
    total_income = db.query(func.sum(Payment.amount)).filter(Payment.status == PAYMENT_VERIFIED).scalar()
    pending = db.query(func.count(Payment.id)).filter(Payment.status == PAYMENT_PENDING).scalar() or 0
    return {
        "total_students": int(total_students),
        "total_income": float(total_income or 0),
        "pending_payments": int(pending)
    }
