"""
Enrollment Module

Submission workflow from the public form to payment approval.

Flow:
1. Applicant submits name, email, WhatsApp and project (pending_review)
2. Admin approves the project (awaiting_payment) or rejects it
3. Applicant sends a payment proof (pending)
4. Admin approves the payment (approved, member created) or rejects it
   (rejected, applicant may retry)

API Endpoints:
- POST /api/submit
- POST /api/confirm-payment
- POST /api/download-acceptance-pdf
- GET /admin/pending-payments
- POST /admin/approve-project/{id}, /admin/reject-project/{id}
- POST /admin/approve-payment/{id}, /admin/reject-payment/{id}
- POST /admin/reset-all
"""
