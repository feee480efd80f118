"""Capacity schemas."""

from pydantic import BaseModel, ConfigDict, Field

from app.modules.capacity.service import CapacityStatus, PlacesAction


class CapacityResponse(BaseModel):
    """Public seat counter."""

    model_config = ConfigDict(populate_by_name=True)

    count: int
    max: int
    available: bool
    remaining: int
    session_open: bool = Field(..., serialization_alias="sessionOpen")

    @classmethod
    def from_status(cls, status: CapacityStatus) -> "CapacityResponse":
        return cls(
            count=status.count,
            max=status.max_places,
            available=status.available,
            remaining=status.remaining,
            session_open=status.session_open,
        )


class UpdatePlacesRequest(BaseModel):
    """Body of POST /admin/update-places."""

    model_config = ConfigDict(populate_by_name=True)

    action: PlacesAction
    max_places: int | None = Field(default=None, alias="maxPlaces")


class UpdatePlacesResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    message: str
    new_max: int = Field(..., serialization_alias="newMax")
    total_count: int = Field(..., serialization_alias="totalCount")


class ToggleSessionResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    session_open: bool = Field(..., serialization_alias="sessionOpen")
    message: str
