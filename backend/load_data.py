"""
Demo Data Loader - seeds a running MyanEdu API with a small catalog.

Creates a course and batch, registers a student, submits a payment for
the batch (which creates the enrollment) and verifies it, then prints the
resulting state.

Usage:
    python load_data.py                              # Uses default URL
    python load_data.py http://localhost:8000         # Custom API URL
"""

import os
import sys

import httpx

DEMO_BATCH_ID = "C1-B1"
DEMO_PHONE = "09420000001"


def main():
    api_url = sys.argv[1] if len(sys.argv) > 1 else os.getenv("API_URL", "http://localhost:8000")

    with httpx.Client(base_url=api_url, timeout=30.0) as client:
        course = client.post("/courses", json={
            "title": "Basic Computer", "description": "Office tools for beginners"
        })
        course.raise_for_status()
        course_id = course.json()["id"]

        batch = client.post("/batches", json={
            "id": DEMO_BATCH_ID, "course_id": course_id, "batch_name": "Batch 1", "fees": 30000
        })
        if batch.status_code == 400:
            print(f"Batch {DEMO_BATCH_ID} already exists, reusing it")
        else:
            batch.raise_for_status()

        student = client.post("/students/register", json={
            "name": "Demo Student", "phone": DEMO_PHONE, "password": "demo-pass"
        })
        if student.status_code == 400:
            student = client.get("/students/search", params={"phone": DEMO_PHONE})
        student.raise_for_status()
        student_id = student.json()["id"]

        payment = client.post("/payments", json={
            "studentId": student_id,
            "batchId": DEMO_BATCH_ID,
            "amount": 30000,
            "method": "KBZPay",
            "receiptRef": "https://example.com/receipts/demo.jpg"
        })
        payment.raise_for_status()
        payment_id = payment.json()["id"]

        decided = client.put(f"/payments/{payment_id}", json={"status": "verified"})
        decided.raise_for_status()

        notes = client.get(f"/students/{student_id}/notifications").json()
        history = client.get(f"/students/{student_id}/payments").json()

    print("=" * 60)
    print("DEMO DATA")
    print("=" * 60)
    print(f"  Student:      {student_id}")
    print(f"  Payment:      {payment_id} -> {decided.json()['status']}")
    if history:
        print(f"  Enrollment:   {history[0]['enrollment_status']} until {history[0]['expire_date']}")
    for note in notes:
        print(f"  Notification: [{note['type']}] {note['message']}")
    print("=" * 60)


if __name__ == "__main__":
    main()
