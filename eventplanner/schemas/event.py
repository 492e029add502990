from datetime import datetime

from pydantic import BaseModel, Field, model_validator


class EventCreateRequest(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=5000)
    location: str | None = Field(default=None, max_length=500)
    start_at: datetime | None = None
    end_at: datetime | None = None
    max_attendees: int | None = Field(default=None, ge=1)
    is_public: bool = False

    @model_validator(mode="after")
    def validate_interval(self) -> "EventCreateRequest":
        if self.start_at and self.end_at and self.end_at <= self.start_at:
            raise ValueError("end_at must be greater than start_at")
        return self


class EventResponse(BaseModel):
    id: str
    user_id: int
    title: str
    description: str | None
    location: str | None
    start_at: datetime | None
    end_at: datetime | None
    max_attendees: int | None
    is_public: bool
    created_at: datetime

    model_config = {"from_attributes": True}
