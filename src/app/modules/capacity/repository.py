"""
Enrollment Configuration Repository

Reads and writes the configuration singleton. `get_config(lock=True)`
takes a row lock so concurrent approvals serialize on capacity.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import ENROLLMENT_CONFIG_ID, EnrollmentConfig


class ConfigMissingError(RuntimeError):
    """Raised when the configuration row was never initialized."""

    def __init__(self):
        super().__init__("Enrollment configuration is not initialized; run startup initialization")


async def get_config(db: AsyncSession, *, lock: bool = False) -> EnrollmentConfig:
    """
    Get the configuration singleton.

    Args:
        db: Database session
        lock: Take a FOR UPDATE lock until the transaction ends

    Raises:
        ConfigMissingError: If startup initialization has not run
    """
    query = select(EnrollmentConfig).where(EnrollmentConfig.id == ENROLLMENT_CONFIG_ID)
    if lock:
        query = query.with_for_update()

    result = await db.execute(query)
    config = result.scalar_one_or_none()

    if config is None:
        raise ConfigMissingError()
    return config


async def ensure_config(db: AsyncSession, default_max_places: int) -> tuple[EnrollmentConfig, bool]:
    """
    Create the configuration row with defaults if it does not exist.

    Returns:
        (config, created)
    """
    config = await db.get(EnrollmentConfig, ENROLLMENT_CONFIG_ID)
    if config is not None:
        return config, False

    config = EnrollmentConfig(
        id=ENROLLMENT_CONFIG_ID,
        max_places=default_max_places,
        session_open=True,
    )
    db.add(config)
    await db.commit()
    await db.refresh(config)

    return config, True


async def save_config(
    db: AsyncSession,
    config: EnrollmentConfig,
    *,
    commit: bool = True,
    **fields,
) -> EnrollmentConfig:
    """Apply field changes to the configuration."""
    for key, value in fields.items():
        if hasattr(config, key):
            setattr(config, key, value)

    if commit:
        await db.commit()
        await db.refresh(config)
    else:
        await db.flush()

    return config
