"""
Unit tests for the enrollment workflow service.

These tests cover:
- Submission gating (session and capacity win over field validation)
- Project review
- Payment proof submission and the retry limit
- Payment approval atomicity and capacity refusal
- Payment rejection
- Full reset
"""

from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

import pytest

from app.core.config import settings
from app.core.exceptions import ValidationError
from app.modules.capacity.service import CapacityExceededError, CapacityStatus, SessionClosedError
from app.modules.enrollment import notifications
from app.modules.enrollment import repository as enrollment_repository
from app.modules.enrollment.models import ProofMethod, SubmissionStatus
from app.modules.enrollment.schemas import SubmitRequest
from app.modules.enrollment.service import (
    InvalidSubmissionStateError,
    ProofUpload,
    SubmissionNotFoundError,
    approve_payment,
    approve_project,
    reject_payment,
    reject_project,
    reset_all,
    submit_payment_proof,
    submit_submission,
)

SERVICE = "app.modules.enrollment.service"


def _open_capacity(count: int = 0, max_places: int = 5) -> CapacityStatus:
    return CapacityStatus(count=count, max_places=max_places, session_open=True)


@pytest.fixture
def patched_store(submission_store):
    """Route repository reads and inserts to the in-memory store."""
    with (
        patch.object(enrollment_repository, "create", submission_store.create),
        patch.object(enrollment_repository, "get_by_id", submission_store.get_by_id),
        patch.object(enrollment_repository, "create_group_link", AsyncMock()) as link_mock,
    ):
        submission_store.create_group_link = link_mock
        yield submission_store


class TestSubmitSubmission:
    @pytest.mark.asyncio
    async def test_creates_pending_review_submission(
        self, mock_db, background, valid_submit_request, patched_store
    ):
        with patch(
            f"{SERVICE}.capacity_service.ensure_accepting_submissions",
            AsyncMock(return_value=_open_capacity()),
        ):
            submission = await submit_submission(mock_db, valid_submit_request, background)

        assert submission.status == SubmissionStatus.PENDING_REVIEW
        assert submission.name == "Awa Traoré"  # trimmed
        assert submission.id in patched_store.store
        background.add_task.assert_called_once()
        assert background.add_task.call_args.args[0] is notifications.notify_new_submission

    @pytest.mark.asyncio
    async def test_session_closed_wins_over_invalid_fields(self, mock_db, background, patched_store):
        invalid = SubmitRequest(nom="A", email="not-an-email", whatsapp="12", projet="court")

        with patch(
            f"{SERVICE}.capacity_service.ensure_accepting_submissions",
            AsyncMock(side_effect=SessionClosedError()),
        ):
            with pytest.raises(SessionClosedError) as exc_info:
                await submit_submission(mock_db, invalid, background)

        assert exc_info.value.status_code == 409
        assert exc_info.value.error_code == "SESSION_CLOSED"
        assert patched_store.store == {}
        background.add_task.assert_not_called()

    @pytest.mark.asyncio
    async def test_capacity_exceeded_wins_over_invalid_fields(
        self, mock_db, background, patched_store
    ):
        invalid = SubmitRequest(nom=None, email=None, whatsapp=None, projet=None)

        with patch(
            f"{SERVICE}.capacity_service.ensure_accepting_submissions",
            AsyncMock(side_effect=CapacityExceededError(5, 5)),
        ):
            with pytest.raises(CapacityExceededError) as exc_info:
                await submit_submission(mock_db, invalid, background)

        assert exc_info.value.error_code == "CAPACITY_EXCEEDED"
        assert patched_store.store == {}

    @pytest.mark.asyncio
    async def test_invalid_whatsapp_is_rejected_when_open(
        self, mock_db, background, valid_submit_request, patched_store
    ):
        data = valid_submit_request.model_copy(update={"whatsapp": "07010203"})

        with patch(
            f"{SERVICE}.capacity_service.ensure_accepting_submissions",
            AsyncMock(return_value=_open_capacity()),
        ):
            with pytest.raises(ValidationError) as exc_info:
                await submit_submission(mock_db, data, background)

        assert exc_info.value.field == "whatsapp"
        assert patched_store.store == {}


class TestProjectReview:
    @pytest.mark.asyncio
    async def test_approve_project_sends_payment_link(
        self, mock_db, background, make_submission, patched_store
    ):
        submission = patched_store.add(make_submission(SubmissionStatus.PENDING_REVIEW))

        result = await approve_project(mock_db, submission.id, background)

        assert result.status == SubmissionStatus.AWAITING_PAYMENT
        assert result.reviewed_at is not None
        task, _applicant, payment_url = background.add_task.call_args.args
        assert task is notifications.notify_project_approved
        assert payment_url.endswith(f"/paiement?id={submission.id}")

    @pytest.mark.asyncio
    async def test_approve_project_unknown_id(self, mock_db, background, patched_store):
        with pytest.raises(SubmissionNotFoundError) as exc_info:
            await approve_project(mock_db, uuid4(), background)

        assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    async def test_approve_project_twice_is_invalid_state(
        self, mock_db, background, make_submission, patched_store
    ):
        submission = patched_store.add(make_submission(SubmissionStatus.AWAITING_PAYMENT))

        with pytest.raises(InvalidSubmissionStateError) as exc_info:
            await approve_project(mock_db, submission.id, background)

        assert exc_info.value.status_code == 409
        background.add_task.assert_not_called()

    @pytest.mark.asyncio
    async def test_reject_project_stores_reason(
        self, mock_db, background, make_submission, patched_store
    ):
        submission = patched_store.add(make_submission(SubmissionStatus.PENDING_REVIEW))

        result = await reject_project(mock_db, submission.id, "Projet hors cible", background)

        assert result.status == SubmissionStatus.PROJECT_REJECTED
        assert result.decision_reason == "Projet hors cible"
        assert background.add_task.call_args.args[2] == "Projet hors cible"

    @pytest.mark.asyncio
    async def test_reject_project_without_reason_uses_default(
        self, mock_db, background, make_submission, patched_store
    ):
        submission = patched_store.add(make_submission(SubmissionStatus.PENDING_REVIEW))

        result = await reject_project(mock_db, submission.id, None, background)

        assert result.decision_reason


class TestSubmitPaymentProof:
    @pytest.mark.asyncio
    async def test_transaction_id_moves_to_pending(
        self, mock_db, background, make_submission, patched_store
    ):
        submission = patched_store.add(make_submission(SubmissionStatus.AWAITING_PAYMENT))

        result, attempts_left = await submit_payment_proof(
            mock_db, submission.id, "transaction-id", "20260418", None, background
        )

        assert result.status == SubmissionStatus.PENDING
        assert result.proof_method == ProofMethod.TRANSACTION_ID
        assert result.transaction_id == "20260418"
        assert result.payment_attempts == 1
        assert attempts_left == settings.max_payment_attempts - 1
        assert background.add_task.call_args.args[0] is notifications.notify_new_payment

    @pytest.mark.asyncio
    async def test_non_numeric_transaction_id_changes_nothing(
        self, mock_db, background, make_submission
    ):
        submission = make_submission(SubmissionStatus.AWAITING_PAYMENT)

        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_by_id = AsyncMock(return_value=submission)

            with pytest.raises(ValidationError) as exc_info:
                await submit_payment_proof(
                    mock_db, submission.id, "transaction-id", "TX-12AB", None, background
                )

            mock_repo.get_by_id.assert_not_called()
            mock_repo.update_status.assert_not_called()

        assert exc_info.value.field == "transactionId"
        assert submission.status == SubmissionStatus.AWAITING_PAYMENT
        background.add_task.assert_not_called()

    @pytest.mark.asyncio
    async def test_screenshot_requires_a_file(self, mock_db, background):
        with pytest.raises(ValidationError) as exc_info:
            await submit_payment_proof(mock_db, uuid4(), "screenshot", None, None, background)

        assert exc_info.value.field == "proof"

    @pytest.mark.asyncio
    async def test_screenshot_must_be_an_image(self, mock_db, background):
        upload = ProofUpload(content=b"%PDF-1.4", content_type="application/pdf")

        with pytest.raises(ValidationError):
            await submit_payment_proof(mock_db, uuid4(), "screenshot", None, upload, background)

    @pytest.mark.asyncio
    async def test_both_proof_forms_are_rejected(self, mock_db, background):
        upload = ProofUpload(content=b"\x89PNG", content_type="image/png")

        with pytest.raises(ValidationError):
            await submit_payment_proof(
                mock_db, uuid4(), "transaction-id", "123", upload, background
            )

    @pytest.mark.asyncio
    async def test_unknown_method_is_rejected(self, mock_db, background):
        with pytest.raises(ValidationError) as exc_info:
            await submit_payment_proof(mock_db, uuid4(), "cash", "123", None, background)

        assert exc_info.value.field == "method"

    @pytest.mark.asyncio
    async def test_large_screenshot_is_truncated(
        self, mock_db, background, make_submission, patched_store
    ):
        submission = patched_store.add(make_submission(SubmissionStatus.AWAITING_PAYMENT))
        upload = ProofUpload(content=b"\x89PNG" + b"0" * 60, content_type="image/png")

        with patch.object(settings, "max_proof_bytes", 16):
            result, _ = await submit_payment_proof(
                mock_db, submission.id, "screenshot", None, upload, background
            )

        assert len(result.proof_data) == 16
        assert result.proof_mime == "image/png"
        assert result.transaction_id is None

    @pytest.mark.asyncio
    async def test_proof_not_expected_before_project_approval(
        self, mock_db, background, make_submission, patched_store
    ):
        submission = patched_store.add(make_submission(SubmissionStatus.PENDING_REVIEW))

        with pytest.raises(InvalidSubmissionStateError):
            await submit_payment_proof(
                mock_db, submission.id, "transaction-id", "123", None, background
            )

        assert submission.status == SubmissionStatus.PENDING_REVIEW

    @pytest.mark.asyncio
    async def test_retry_after_rejection(self, mock_db, background, make_submission, patched_store):
        submission = patched_store.add(
            make_submission(SubmissionStatus.REJECTED, payment_attempts=1)
        )

        result, attempts_left = await submit_payment_proof(
            mock_db, submission.id, "transaction-id", "99887766", None, background
        )

        assert result.status == SubmissionStatus.PENDING
        assert result.payment_attempts == 2
        assert attempts_left == settings.max_payment_attempts - 2

    @pytest.mark.asyncio
    async def test_attempts_exhausted(self, mock_db, background, make_submission, patched_store):
        submission = patched_store.add(
            make_submission(
                SubmissionStatus.REJECTED, payment_attempts=settings.max_payment_attempts
            )
        )

        with pytest.raises(InvalidSubmissionStateError) as exc_info:
            await submit_payment_proof(
                mock_db, submission.id, "transaction-id", "123", None, background
            )

        assert exc_info.value.error_code == "PAYMENT_ATTEMPTS_EXHAUSTED"
        assert submission.status == SubmissionStatus.REJECTED
        background.add_task.assert_not_called()


class TestApprovePayment:
    @pytest.mark.asyncio
    async def test_creates_member_and_commits_once(
        self, mock_db, background, make_submission, patched_store
    ):
        submission = patched_store.add(make_submission(SubmissionStatus.PENDING))

        with (
            patch(
                f"{SERVICE}.capacity_service.ensure_place_available",
                AsyncMock(return_value=_open_capacity(count=2)),
            ) as mock_gate,
            patch(f"{SERVICE}.MemberRepository") as mock_members,
        ):
            mock_members.create = AsyncMock()

            result, capacity = await approve_payment(
                mock_db, submission.id, "https://chat.whatsapp.com/abc", background
            )

        mock_gate.assert_awaited_once_with(mock_db, lock=True)
        mock_members.create.assert_awaited_once()
        patched_store.create_group_link.assert_awaited_once()
        mock_db.commit.assert_awaited_once()
        assert result.status == SubmissionStatus.APPROVED
        assert capacity.count == 3
        assert background.add_task.call_args.args[0] is notifications.notify_payment_approved

    @pytest.mark.asyncio
    async def test_without_group_link_writes_no_link(
        self, mock_db, background, make_submission, patched_store
    ):
        submission = patched_store.add(make_submission(SubmissionStatus.PENDING))

        with (
            patch(
                f"{SERVICE}.capacity_service.ensure_place_available",
                AsyncMock(return_value=_open_capacity()),
            ),
            patch(f"{SERVICE}.MemberRepository") as mock_members,
        ):
            mock_members.create = AsyncMock()
            await approve_payment(mock_db, submission.id, None, background)

        patched_store.create_group_link.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_capacity_exceeded_keeps_submission_pending(
        self, mock_db, background, make_submission, patched_store
    ):
        submission = patched_store.add(make_submission(SubmissionStatus.PENDING))

        with (
            patch(
                f"{SERVICE}.capacity_service.ensure_place_available",
                AsyncMock(side_effect=CapacityExceededError(1, 1)),
            ),
            patch(f"{SERVICE}.MemberRepository") as mock_members,
        ):
            mock_members.create = AsyncMock()

            with pytest.raises(CapacityExceededError):
                await approve_payment(mock_db, submission.id, None, background)

            mock_members.create.assert_not_awaited()

        assert submission.status == SubmissionStatus.PENDING
        mock_db.rollback.assert_awaited()
        mock_db.commit.assert_not_awaited()
        background.add_task.assert_not_called()

    @pytest.mark.asyncio
    async def test_only_pending_payments_can_be_approved(
        self, mock_db, background, make_submission, patched_store
    ):
        submission = patched_store.add(make_submission(SubmissionStatus.AWAITING_PAYMENT))

        with patch(f"{SERVICE}.MemberRepository") as mock_members:
            mock_members.create = AsyncMock()

            with pytest.raises(InvalidSubmissionStateError):
                await approve_payment(mock_db, submission.id, None, background)

            mock_members.create.assert_not_awaited()


class TestRejectPayment:
    @pytest.mark.asyncio
    async def test_second_rejection_is_invalid_and_silent(
        self, mock_db, background, make_submission, patched_store
    ):
        submission = patched_store.add(
            make_submission(SubmissionStatus.PENDING, payment_attempts=1)
        )

        result = await reject_payment(mock_db, submission.id, background)
        assert result.status == SubmissionStatus.REJECTED

        with pytest.raises(InvalidSubmissionStateError):
            await reject_payment(mock_db, submission.id, background)

        background.add_task.assert_called_once()
        task, _applicant, attempts_left = background.add_task.call_args.args
        assert task is notifications.notify_payment_rejected
        assert attempts_left == settings.max_payment_attempts - 1


class TestRoundTrip:
    @pytest.mark.asyncio
    async def test_submit_to_approved_member(
        self, mock_db, background, valid_submit_request, patched_store
    ):
        """A full happy path yields one member carrying the submission's fields."""
        with (
            patch(
                f"{SERVICE}.capacity_service.ensure_accepting_submissions",
                AsyncMock(return_value=_open_capacity()),
            ),
            patch(
                f"{SERVICE}.capacity_service.ensure_place_available",
                AsyncMock(return_value=_open_capacity()),
            ),
            patch(f"{SERVICE}.MemberRepository") as mock_members,
        ):
            mock_members.create = AsyncMock()

            submission = await submit_submission(mock_db, valid_submit_request, background)
            await approve_project(mock_db, submission.id, background)
            await submit_payment_proof(
                mock_db, submission.id, "transaction-id", "5566778899", None, background
            )
            result, capacity = await approve_payment(mock_db, submission.id, None, background)

        assert result.status == SubmissionStatus.APPROVED
        assert capacity.count == 1
        mock_members.create.assert_awaited_once_with(
            mock_db,
            submission_id=submission.id,
            name="Awa Traoré",
            email="awa.traore@example.com",
            whatsapp="0701020304",
            project="Une boutique en ligne de produits cosmétiques locaux.",
        )


class TestResetAll:
    @pytest.mark.asyncio
    async def test_clears_everything_and_restores_config(self, mock_db):
        with (
            patch(f"{SERVICE}.MemberRepository") as mock_members,
            patch(f"{SERVICE}.repository") as mock_repo,
            patch(f"{SERVICE}.capacity_service.reset_config", AsyncMock()) as mock_reset,
            patch(f"{SERVICE}.clear_archive", MagicMock(return_value=4)),
        ):
            mock_members.delete_all = AsyncMock(return_value=2)
            mock_repo.delete_all = AsyncMock(return_value=(7, 1))

            summary = await reset_all(mock_db)

        mock_reset.assert_awaited_once_with(mock_db)
        mock_db.commit.assert_awaited_once()
        assert summary.submissions == 7
        assert summary.members == 2
        assert summary.group_links == 1
        assert summary.archives == 4
