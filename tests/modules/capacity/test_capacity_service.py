"""
Unit tests for the capacity gate and the places/session admin operations.
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from app.core.config import settings
from app.core.exceptions import ValidationError
from app.modules.capacity.models import EnrollmentConfig
from app.modules.capacity.service import (
    CapacityExceededError,
    CapacityStatus,
    PlacesAction,
    SessionClosedError,
    check_capacity,
    compute_new_max,
    ensure_accepting_submissions,
    ensure_place_available,
    reset_config,
    toggle_session,
    update_places,
)

SERVICE = "app.modules.capacity.service"


@pytest.fixture
def mock_db():
    db = AsyncMock()
    db.commit = AsyncMock()
    db.rollback = AsyncMock()
    return db


def _config(max_places: int = 5, session_open: bool = True):
    config = MagicMock(spec=EnrollmentConfig)
    config.max_places = max_places
    config.session_open = session_open
    return config


async def _save(db, config, commit=True, **fields):
    for key, value in fields.items():
        setattr(config, key, value)
    return config


@pytest.fixture
def state():
    """Patch the configuration repository and the member count."""
    with (
        patch(f"{SERVICE}.repository") as mock_repo,
        patch(f"{SERVICE}.MemberRepository") as mock_members,
    ):
        mock_repo.get_config = AsyncMock(return_value=_config())
        mock_repo.save_config = AsyncMock(side_effect=_save)
        mock_members.count = AsyncMock(return_value=0)
        yield SimpleNamespace(repo=mock_repo, members=mock_members)


def _given(state, config, member_count: int):
    state.repo.get_config.return_value = config
    state.members.count.return_value = member_count
    return config


class TestCapacityStatus:
    def test_available_and_remaining(self):
        status = CapacityStatus(count=3, max_places=5, session_open=True)
        assert status.available
        assert status.remaining == 2

    def test_full(self):
        status = CapacityStatus(count=5, max_places=5, session_open=True)
        assert not status.available
        assert status.remaining == 0

    def test_over_capacity_after_lowering_max(self):
        status = CapacityStatus(count=6, max_places=4, session_open=True)
        assert not status.available
        assert status.remaining == 0


class TestComputeNewMax:
    def test_increment_defaults_to_one(self):
        assert compute_new_max(5, PlacesAction.INCREMENT) == 6

    def test_increment_by_amount(self):
        assert compute_new_max(5, PlacesAction.INCREMENT, 10) == 15

    def test_decrement_defaults_to_one(self):
        assert compute_new_max(5, PlacesAction.DECREMENT) == 4

    def test_decrement_at_one_is_refused(self):
        with pytest.raises(ValidationError) as exc_info:
            compute_new_max(1, PlacesAction.DECREMENT)

        assert exc_info.value.field == "maxPlaces"

    def test_decrement_below_one_is_refused(self):
        with pytest.raises(ValidationError):
            compute_new_max(3, PlacesAction.DECREMENT, 3)

    def test_reset_returns_default(self):
        assert compute_new_max(42, PlacesAction.RESET, default=5) == 5

    def test_reset_ignores_amount(self):
        assert compute_new_max(42, PlacesAction.RESET, 99, default=5) == 5

    def test_set_requires_amount(self):
        with pytest.raises(ValidationError):
            compute_new_max(5, PlacesAction.SET)

    def test_set_zero_is_refused(self):
        with pytest.raises(ValidationError):
            compute_new_max(5, PlacesAction.SET, 0)

    def test_set_explicit_value(self):
        assert compute_new_max(5, PlacesAction.SET, 12) == 12

    def test_non_positive_step_is_refused(self):
        with pytest.raises(ValidationError):
            compute_new_max(5, PlacesAction.INCREMENT, 0)


class TestGates:
    @pytest.mark.asyncio
    async def test_check_capacity(self, mock_db, state):
        _given(state, _config(max_places=5), member_count=2)

        status = await check_capacity(mock_db, lock=True)

        state.repo.get_config.assert_awaited_once_with(mock_db, lock=True)
        assert status == CapacityStatus(count=2, max_places=5, session_open=True)

    @pytest.mark.asyncio
    async def test_place_available_refuses_when_full(self, mock_db, state):
        _given(state, _config(max_places=1), member_count=1)

        with pytest.raises(CapacityExceededError) as exc_info:
            await ensure_place_available(mock_db, lock=True)

        assert exc_info.value.status_code == 409

    @pytest.mark.asyncio
    async def test_closed_session_is_checked_first(self, mock_db, state):
        _given(state, _config(max_places=1, session_open=False), member_count=1)

        with pytest.raises(SessionClosedError):
            await ensure_accepting_submissions(mock_db)

    @pytest.mark.asyncio
    async def test_open_session_full_capacity(self, mock_db, state):
        _given(state, _config(max_places=2), member_count=2)

        with pytest.raises(CapacityExceededError):
            await ensure_accepting_submissions(mock_db)

    @pytest.mark.asyncio
    async def test_open_session_with_room(self, mock_db, state):
        _given(state, _config(max_places=2), member_count=1)

        status = await ensure_accepting_submissions(mock_db)

        assert status.remaining == 1


class TestAdminOperations:
    @pytest.mark.asyncio
    async def test_decrement_at_one_leaves_value_unchanged(self, mock_db, state):
        config = _given(state, _config(max_places=1), member_count=0)

        with pytest.raises(ValidationError):
            await update_places(mock_db, PlacesAction.DECREMENT)

        state.repo.save_config.assert_not_awaited()
        assert config.max_places == 1
        mock_db.rollback.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_update_places_locks_and_saves(self, mock_db, state):
        _given(state, _config(max_places=5), member_count=3)

        status = await update_places(mock_db, PlacesAction.INCREMENT, 2)

        state.repo.get_config.assert_awaited_once_with(mock_db, lock=True)
        assert status.max_places == 7
        assert status.count == 3

    @pytest.mark.asyncio
    async def test_reset_action_uses_configured_default(self, mock_db, state):
        _given(state, _config(max_places=30), member_count=0)

        status = await update_places(mock_db, PlacesAction.RESET)

        assert status.max_places == settings.default_max_places

    @pytest.mark.asyncio
    async def test_toggle_session_flips_flag(self, mock_db, state):
        _given(state, _config(session_open=True), member_count=0)

        status = await toggle_session(mock_db)

        assert status.session_open is False

    @pytest.mark.asyncio
    async def test_reset_config_restores_defaults_without_commit(self, mock_db, state):
        config = _given(state, _config(max_places=20, session_open=False), member_count=0)

        await reset_config(mock_db)

        _, kwargs = state.repo.save_config.call_args
        assert kwargs["commit"] is False
        assert config.max_places == settings.default_max_places
        assert config.session_open is True
