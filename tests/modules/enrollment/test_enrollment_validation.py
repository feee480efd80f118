"""
Unit tests for applicant and payment-proof validation and the admin
submission listing schema.
"""

import base64

import pytest

from app.core.exceptions import ValidationError
from app.modules.enrollment.models import ProofMethod, SubmissionStatus
from app.modules.enrollment.schemas import SubmissionResponse, SubmitRequest
from app.modules.enrollment.service import ProofUpload, validate_applicant, validate_payment_proof

LONG_ENOUGH_PROJECT = "Atelier de couture et vente de pagnes en ligne."


def _request(**overrides) -> SubmitRequest:
    fields = {
        "nom": "Kofi Mensah",
        "email": "kofi@example.com",
        "whatsapp": "0102030405",
        "projet": LONG_ENOUGH_PROJECT,
    }
    fields.update(overrides)
    return SubmitRequest(**fields)


class TestValidateApplicant:
    def test_valid_data_is_trimmed(self):
        applicant = validate_applicant(_request(nom="   Kofi Mensah ", projet=f"  {LONG_ENOUGH_PROJECT}  "))

        assert applicant.name == "Kofi Mensah"
        assert applicant.project == LONG_ENOUGH_PROJECT

    @pytest.mark.parametrize(
        ("overrides", "field"),
        [
            ({"nom": "  Ko  "}, "nom"),
            ({"nom": None}, "nom"),
            ({"email": "kofi-at-example"}, "email"),
            ({"email": f"{'k' * 95}@example.com"}, "email"),
            ({"whatsapp": "01020304"}, "whatsapp"),
            ({"whatsapp": "01020304AB"}, "whatsapp"),
            ({"whatsapp": "+225010203"}, "whatsapp"),
            ({"projet": "Trop court"}, "projet"),
            ({"projet": "x" * 1001}, "projet"),
        ],
    )
    def test_invalid_field_is_reported_by_wire_name(self, overrides, field):
        with pytest.raises(ValidationError) as exc_info:
            validate_applicant(_request(**overrides))

        assert exc_info.value.field == field
        assert exc_info.value.status_code == 400
        assert exc_info.value.error_code == "VALIDATION_ERROR"

    @pytest.mark.parametrize(
        ("overrides", "field"),
        [
            ({"nom": 12345}, "nom"),
            ({"email": ["kofi@example.com"]}, "email"),
            ({"whatsapp": 102030405}, "whatsapp"),
            ({"projet": {"texte": LONG_ENOUGH_PROJECT}}, "projet"),
        ],
    )
    def test_non_string_values_are_validation_errors(self, overrides, field):
        with pytest.raises(ValidationError) as exc_info:
            validate_applicant(_request(**overrides))

        assert exc_info.value.field == field

    def test_project_length_bounds_are_inclusive(self):
        assert validate_applicant(_request(projet="p" * 20)).project == "p" * 20
        assert validate_applicant(_request(projet="p" * 1000)).project == "p" * 1000


class TestValidatePaymentProof:
    def test_transaction_id_digits_only(self):
        assert validate_payment_proof("transaction-id", "0042", None) is ProofMethod.TRANSACTION_ID

    @pytest.mark.parametrize("transaction_id", ["12 34", "12a", "-1", "١٢٣"])
    def test_transaction_id_rejects_non_digits(self, transaction_id):
        with pytest.raises(ValidationError):
            validate_payment_proof("transaction-id", transaction_id, None)

    def test_transaction_id_required(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_payment_proof("transaction-id", None, None)

        assert exc_info.value.field == "transactionId"

    def test_transaction_id_at_column_length(self):
        assert validate_payment_proof("transaction-id", "1" * 64, None) is ProofMethod.TRANSACTION_ID

    def test_transaction_id_longer_than_column_is_refused(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_payment_proof("transaction-id", "1" * 65, None)

        assert exc_info.value.field == "transactionId"

    def test_overlong_content_type_is_refused(self):
        upload = ProofUpload(content=b"\x89PNG", content_type="image/" + "x" * 100)

        with pytest.raises(ValidationError) as exc_info:
            validate_payment_proof("screenshot", None, upload)

        assert exc_info.value.field == "proof"

    def test_screenshot_with_image(self):
        upload = ProofUpload(content=b"\xff\xd8\xff", content_type="image/jpeg")
        assert validate_payment_proof("screenshot", None, upload) is ProofMethod.SCREENSHOT

    def test_empty_file_counts_as_missing(self):
        upload = ProofUpload(content=b"", content_type="image/png")

        with pytest.raises(ValidationError) as exc_info:
            validate_payment_proof("screenshot", None, upload)

        assert exc_info.value.field == "proof"

    def test_missing_method(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_payment_proof(None, "123", None)

        assert exc_info.value.field == "method"


class TestSubmissionResponse:
    def test_screenshot_proof_is_base64_encoded(self, make_submission):
        submission = make_submission(
            SubmissionStatus.PENDING,
            proof_method=ProofMethod.SCREENSHOT,
            proof_data=b"\x89PNG\r\n",
            proof_mime="image/png",
            payment_attempts=1,
        )

        response = SubmissionResponse.from_model(submission)
        body = response.model_dump(by_alias=True)

        assert base64.b64decode(body["proof"]) == b"\x89PNG\r\n"
        assert body["proofMime"] == "image/png"
        assert body["nom"] == submission.name
        assert body["projet"] == submission.project
        assert body["method"] == ProofMethod.SCREENSHOT
        assert body["paymentAttempts"] == 1

    def test_submission_without_proof(self, make_submission):
        response = SubmissionResponse.from_model(make_submission())

        assert response.proof is None
        assert response.method is None
