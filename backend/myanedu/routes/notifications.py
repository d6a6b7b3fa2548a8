"""
Notification API routes - a student's inbox.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from myanedu.database import get_db
from myanedu.serializers import serialize_notification
from myanedu.services.notifications import list_notifications, mark_notification_read

router = APIRouter()


@router.get("/students/{student_id}/notifications")
def student_notifications(student_id: str, db: Session = Depends(get_db)):
    """Latest 20 notifications for a student, newest first."""
    return [serialize_notification(n) for n in list_notifications(db, student_id)]


@router.put("/notifications/{notification_id}/read")
def read_notification(notification_id: int, db: Session = Depends(get_db)):
    notification = mark_notification_read(db, notification_id)
    return {"message": "Marked as read", "notification": serialize_notification(notification)}
