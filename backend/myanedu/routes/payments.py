"""
Payment API routes - submission by students, review by admins.

Provides endpoints for:
- Submitting a payment with a receipt reference (JSON) or receipt file (multipart)
- Verifying / rejecting a payment
- The admin review queue and single payment lookup
"""

import time
from typing import Any, Optional
from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from myanedu.database import get_db
from myanedu.errors import NotFoundError, ValidationError
from myanedu.models.course import Batch
from myanedu.serializers import serialize_payment
from myanedu.services.media import MediaStore, get_media_store
from myanedu.services.enrollment import latest_enrollment
from myanedu.services.students import get_student
from myanedu.services.payments import (
    submit_payment, adjudicate_payment, get_payment, list_payments
)
from myanedu.logging_config import get_logger, log_with_context

router = APIRouter()
logger = get_logger("http")


# ── Pydantic schemas ─────────────────────────────────────────

class PaymentSubmission(BaseModel):
    """Payment submitted by a student. Accepts camelCase or snake_case keys."""
    model_config = ConfigDict(populate_by_name=True)

    student_id: str = Field(..., alias="studentId")
    batch_id: Optional[str] = Field(None, alias="batchId",
                                    description="Batch being paid for; latest enrollment when omitted")
    amount: float
    method: str = Field(..., description="Payment channel, e.g. KBZPay")
    transaction_ref: Optional[str] = Field(None, alias="transactionRef")
    receipt_ref: Optional[str] = Field(None, alias="receiptRef",
                                       description="Media store URL of the receipt image")


class PaymentDecision(BaseModel):
    """
    Admin decision on a payment.

    Any value is accepted here. adjudicate_payment rejects everything but
    "verified" and "rejected" with a 400.
    """
    status: Optional[Any] = Field(None, description="verified | rejected")


@router.post("/payments")
def create_payment(request: PaymentSubmission, db: Session = Depends(get_db)):
    """Submit a pending payment against the student's enrollment."""
    payment = submit_payment(
        db,
        student_id=request.student_id,
        amount=request.amount,
        method=request.method,
        receipt_ref=request.receipt_ref,
        batch_id=request.batch_id,
        transaction_ref=request.transaction_ref
    )
    return serialize_payment(payment)


@router.post("/payments/upload")
def create_payment_with_receipt(
    student_id: str = Form(...),
    amount: float = Form(...),
    method: str = Form(...),
    batch_id: Optional[str] = Form(None),
    transaction_ref: Optional[str] = Form(None),
    receipt: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db),
    media: MediaStore = Depends(get_media_store)
):
    """Upload the receipt image to the media store, then submit the payment."""
    if receipt is None:
        raise ValidationError("Receipt is required", student_id=student_id)
    if amount <= 0:
        raise ValidationError("Amount must be greater than zero", student_id=student_id)
    # nothing reaches the media store for a payment that cannot be recorded
    get_student(db, student_id)
    if batch_id:
        if db.get(Batch, batch_id) is None:
            raise NotFoundError("Batch not found", batch_id=batch_id)
    elif latest_enrollment(db, student_id) is None:
        raise ValidationError("No enrollment found. Please select a course.", student_id=student_id)

    receipt_url = media.upload(
        receipt.file.read(), receipt.filename,
        receipt.content_type or "application/octet-stream"
    )
    payment = submit_payment(
        db,
        student_id=student_id,
        amount=amount,
        method=method,
        receipt_ref=receipt_url,
        batch_id=batch_id,
        transaction_ref=transaction_ref
    )
    return serialize_payment(payment)


@router.put("/payments/{payment_id}")
def decide_payment(payment_id: int, request: Optional[PaymentDecision] = None,
                   db: Session = Depends(get_db)):
    """Verify or reject a pending payment."""
    start_time = time.time()
    decision = request.status if request is not None else None
    if isinstance(decision, str):
        decision = decision.strip().lower()
    payment = adjudicate_payment(db, payment_id, decision)

    duration_ms = (time.time() - start_time) * 1000
    log_with_context(logger, "INFO",
        "Payment {} marked {}".format(payment_id, payment.status),
        context={"payment_id": payment_id},
        extra_data={"duration_ms": round(duration_ms, 2)})
    return serialize_payment(payment)


@router.get("/payments")
def list_all_payments(
    status: Optional[str] = Query(None, description="Filter by status"),
    db: Session = Depends(get_db)
):
    """Admin review queue: pending payments first, then newest first."""
    rows = list_payments(db, status=status)
    return [
        {
            **serialize_payment(payment),
            "student_id": str(student.id) if student else None,
            "student_name": student.name if student else None,
            "phone_primary": student.phone_primary if student else None,
            "batch_id": batch.id if batch else None,
            "batch_name": batch.batch_name if batch else None,
            "course_name": course.title if course else None
        }
        for payment, student, batch, course in rows
    ]


@router.get("/payments/{payment_id}")
def read_payment(payment_id: int, db: Session = Depends(get_db)):
    return serialize_payment(get_payment(db, payment_id))
