from datetime import datetime

from pydantic import BaseModel, Field

from eventplanner.db.models.waitlist_entry import WaitlistStatus


class WaitlistJoinRequest(BaseModel):
    event_id: str = Field(min_length=1, max_length=64)
    notes: str | None = Field(default=None, max_length=1000)


class WaitlistJoinResponse(BaseModel):
    id: str
    position: int


class OfferSpotRequest(BaseModel):
    expires_in: float | None = Field(default=None, gt=0, le=720, description="Offer lifetime in hours")


class OfferSpotResponse(BaseModel):
    id: str
    user_id: int


class SuccessResponse(BaseModel):
    success: bool = True


class WaitlistEntryResponse(BaseModel):
    id: str
    event_id: str
    user_id: int
    position: int
    status: WaitlistStatus
    notes: str | None
    joined_at: datetime
    offered_at: datetime | None
    expires_at: datetime | None
    responded_at: datetime | None

    model_config = {"from_attributes": True}
