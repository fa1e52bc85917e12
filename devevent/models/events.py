from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator


class EventCreate(BaseModel):
    """Fields accepted when creating an event.

    ``date`` and ``time`` are only required to be present here; their
    format is checked and canonicalized by ``devevent.normalize``.
    """

    title: str
    description: str
    overview: str
    image: str
    venue: str
    location: str
    date: str
    time: str
    mode: str
    audience: str
    agenda: list[str]
    organizer: str
    tags: list[str]

    @field_validator(
        "title",
        "description",
        "overview",
        "image",
        "venue",
        "location",
        "mode",
        "audience",
        "organizer",
    )
    @classmethod
    def validate_required_text(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be empty")
        return v

    @field_validator("date", "time")
    @classmethod
    def strip_text(cls, v: str) -> str:
        return v.strip()

    @field_validator("agenda", "tags")
    @classmethod
    def validate_non_empty_list(cls, v: list[str]) -> list[str]:
        items = [item.strip() for item in v if item.strip()]
        if not items:
            raise ValueError("must contain at least one item")
        return items


class Event(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(alias="_id")
    title: str
    slug: str
    description: str
    overview: str
    image: str
    venue: str
    location: str
    date: str
    time: str
    mode: str
    audience: str
    agenda: list[str]
    organizer: str
    tags: list[str]
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")


class EventCreatedResponse(BaseModel):
    message: str
    event: Event


class EventResponse(BaseModel):
    event: Event


class EventListResponse(BaseModel):
    events: list[Event]
