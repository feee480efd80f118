"""Member schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class MemberResponse(BaseModel):
    """A confirmed member as shown in the admin dashboard."""

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: UUID
    submission_id: UUID | None = Field(default=None, serialization_alias="submissionId")
    name: str = Field(..., serialization_alias="nom")
    email: str
    whatsapp: str
    project: str = Field(..., serialization_alias="projet")
    confirmed_at: datetime = Field(..., serialization_alias="date")


class InscriptionsResponse(BaseModel):
    """Body of GET /admin/inscriptions."""

    model_config = ConfigDict(populate_by_name=True)

    total: int
    max: int
    available: bool
    session_open: bool = Field(..., serialization_alias="sessionOpen")
    inscriptions: list[MemberResponse]
