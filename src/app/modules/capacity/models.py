"""
Enrollment Configuration Model

Singleton row (id = 1) holding the number of places and whether the
enrollment session accepts new submissions.
"""

from datetime import datetime

from sqlalchemy import Boolean, CheckConstraint, DateTime, Integer, func
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base

ENROLLMENT_CONFIG_ID = 1


class EnrollmentConfig(Base):
    """Process-wide capacity and gating state."""

    __tablename__ = "enrollment_config"
    __table_args__ = (CheckConstraint("max_places >= 1", name="ck_enrollment_config_max_places"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, default=ENROLLMENT_CONFIG_ID)
    max_places: Mapped[int] = mapped_column(Integer, nullable=False)
    session_open: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )
