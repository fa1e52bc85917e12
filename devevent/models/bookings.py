from datetime import datetime

from bson import ObjectId
from pydantic import BaseModel, ConfigDict, Field, field_validator

from devevent.booking_validator import EMAIL_RE


class BookingCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    event_id: str = Field(alias="eventId")
    email: str

    @field_validator("event_id")
    @classmethod
    def validate_event_id(cls, v: str) -> str:
        v = v.strip()
        if not ObjectId.is_valid(v):
            raise ValueError("must be a valid event id")
        return v

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        v = v.strip().lower()
        if not EMAIL_RE.fullmatch(v):
            raise ValueError("Please provide a valid email address")
        return v


class Booking(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(alias="_id")
    event_id: str = Field(alias="eventId")
    email: str
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")


class BookingCreatedResponse(BaseModel):
    message: str
    booking: Booking


class BookingListResponse(BaseModel):
    bookings: list[Booking]
