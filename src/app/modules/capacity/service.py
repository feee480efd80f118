"""
Capacity Service

The capacity gate: compares the member count with `max_places` and owns the
admin operations on the configuration singleton (places and session flag).

Rules:
- New submissions need an open session and at least one free place
- A member may only be created while count < max_places (checked under a
  row lock on the configuration, inside the approving transaction)
- max_places never drops below 1; an update that would is refused and the
  value is left unchanged
"""

import enum
import logging
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import ServiceError, ValidationError
from app.modules.capacity import repository
from app.modules.capacity.models import EnrollmentConfig
from app.modules.members.repository import MemberRepository

logger = logging.getLogger(__name__)

MIN_PLACES = 1


class CapacityExceededError(ServiceError):
    """Raised when every place is taken."""

    def __init__(self, count: int, max_places: int):
        super().__init__(
            message=f"No places left ({count}/{max_places}).",
            error_code="CAPACITY_EXCEEDED",
            status_code=409,
        )


class SessionClosedError(ServiceError):
    """Raised when a submission arrives while enrollment is closed."""

    def __init__(self):
        super().__init__(
            message="Enrollment is currently closed.",
            error_code="SESSION_CLOSED",
            status_code=409,
        )


class PlacesAction(str, enum.Enum):
    """Admin operations on max_places."""

    INCREMENT = "increment"
    DECREMENT = "decrement"
    RESET = "reset"
    SET = "set"


@dataclass(frozen=True)
class CapacityStatus:
    """Snapshot of capacity at one point in a transaction."""

    count: int
    max_places: int
    session_open: bool

    @property
    def available(self) -> bool:
        return self.count < self.max_places

    @property
    def remaining(self) -> int:
        return max(self.max_places - self.count, 0)


def _status(config: EnrollmentConfig, count: int) -> CapacityStatus:
    return CapacityStatus(
        count=count,
        max_places=config.max_places,
        session_open=config.session_open,
    )


async def check_capacity(db: AsyncSession, *, lock: bool = False) -> CapacityStatus:
    """
    Read the current capacity.

    With lock=True the configuration row stays locked until the caller's
    transaction ends, so a check followed by a member insert is atomic
    with respect to other approvals.
    """
    config = await repository.get_config(db, lock=lock)
    count = await MemberRepository.count(db)
    return _status(config, count)


async def ensure_place_available(db: AsyncSession, *, lock: bool = False) -> CapacityStatus:
    """
    Raises:
        CapacityExceededError: If count >= max_places
    """
    status = await check_capacity(db, lock=lock)
    if not status.available:
        logger.warning(f"Capacity exhausted: {status.count}/{status.max_places}")
        raise CapacityExceededError(status.count, status.max_places)
    return status


async def ensure_accepting_submissions(db: AsyncSession) -> CapacityStatus:
    """
    Gate for new public submissions.

    Raises:
        SessionClosedError: If the session is closed
        CapacityExceededError: If no place is left
    """
    status = await check_capacity(db)

    if not status.session_open:
        logger.info("Submission refused: session closed")
        raise SessionClosedError()

    if not status.available:
        logger.info(f"Submission refused: capacity {status.count}/{status.max_places}")
        raise CapacityExceededError(status.count, status.max_places)

    return status


def compute_new_max(
    current: int,
    action: PlacesAction,
    amount: int | None = None,
    default: int | None = None,
) -> int:
    """
    Compute the max_places value an update would produce.

    increment/decrement default to a step of 1; reset returns the
    configured default; set requires an explicit amount.

    Raises:
        ValidationError: If the amount is invalid or the result is below 1
    """
    default = default if default is not None else settings.default_max_places

    if action in (PlacesAction.INCREMENT, PlacesAction.DECREMENT):
        step = 1 if amount is None else amount
        if step < 1:
            raise ValidationError("The number of places must be a positive integer.", "maxPlaces")
        new_max = current + step if action is PlacesAction.INCREMENT else current - step
    elif action is PlacesAction.RESET:
        new_max = default
    else:
        if amount is None:
            raise ValidationError("maxPlaces is required for the 'set' action.", "maxPlaces")
        new_max = amount

    if new_max < MIN_PLACES:
        raise ValidationError(
            f"The number of places cannot go below {MIN_PLACES} (requested {new_max}).",
            "maxPlaces",
        )
    return new_max


async def update_places(
    db: AsyncSession,
    action: PlacesAction,
    amount: int | None = None,
) -> CapacityStatus:
    """Apply an admin places update and return the new capacity."""
    config = await repository.get_config(db, lock=True)
    previous = config.max_places

    try:
        new_max = compute_new_max(previous, action, amount)
    except ValidationError:
        await db.rollback()
        raise

    config = await repository.save_config(db, config, max_places=new_max)
    count = await MemberRepository.count(db)

    logger.info(f"max_places updated via {action.value}: {previous} -> {new_max}")
    return _status(config, count)


async def toggle_session(db: AsyncSession) -> CapacityStatus:
    """Open the session if closed, close it if open."""
    config = await repository.get_config(db, lock=True)
    config = await repository.save_config(db, config, session_open=not config.session_open)
    count = await MemberRepository.count(db)

    logger.info(f"Enrollment session {'opened' if config.session_open else 'closed'}")
    return _status(config, count)


async def reset_config(db: AsyncSession) -> None:
    """Restore default places and reopen the session. Does not commit."""
    config = await repository.get_config(db, lock=True)
    await repository.save_config(
        db,
        config,
        commit=False,
        max_places=settings.default_max_places,
        session_open=True,
    )


async def initialize_config(db: AsyncSession) -> EnrollmentConfig:
    """Create the configuration with defaults on first start."""
    config, created = await repository.ensure_config(db, settings.default_max_places)
    if created:
        logger.info(f"Enrollment configuration initialized with {config.max_places} places")
    return config
