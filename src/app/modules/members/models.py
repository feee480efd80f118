"""
Confirmed Member Models

A member is created when an admin approves a payment. The contact and
project fields are copied from the submission so the member record stays
valid on its own.
"""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base


class Member(Base):
    """A paid, approved participant counted against capacity."""

    __tablename__ = "members"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    submission_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("submissions.id", ondelete="SET NULL"),
        nullable=True,
        unique=True,
    )

    name: Mapped[str] = mapped_column(String(500), nullable=False)
    email: Mapped[str] = mapped_column(String(100), nullable=False)
    whatsapp: Mapped[str] = mapped_column(String(10), nullable=False)
    project: Mapped[str] = mapped_column(Text, nullable=False)

    confirmed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False, index=True
    )
