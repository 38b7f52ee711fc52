"""Pydantic schemas for the makerspace onboarding and directory API."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel


WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class OnboardRequest(BaseModel):
    email: EmailStr


class OnboardResponse(BaseModel):
    token: str


class ClaimVerificationResponse(_CamelModel):
    is_valid: bool
    email: Optional[str] = None


class WeeklyTimings(_CamelModel):
    monday: str = Field(min_length=1)
    tuesday: str = Field(min_length=1)
    wednesday: str = Field(min_length=1)
    thursday: str = Field(min_length=1)
    friday: str = Field(min_length=1)
    saturday: str = Field(min_length=1)
    sunday: str = Field(min_length=1)


class Mentor(_CamelModel):
    name: str = Field(min_length=1)
    designation: str = Field(min_length=1)
    linkedin: str = Field(min_length=1)
    image: str = Field(min_length=1)


class MakerspaceProfile(_CamelModel):
    """Full profile of an active makerspace, keyed in camelCase on the wire."""

    type: str = Field(min_length=1)
    usage: List[str]
    name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    email: str = Field(min_length=1)
    number: str = Field(min_length=1)
    in_charge_name: str = Field(min_length=1)
    website_link: Optional[str] = None
    timings: WeeklyTimings
    city: str = Field(min_length=1, max_length=120)
    state: str = Field(min_length=1)
    address: str = Field(min_length=1)
    zipcode: str = Field(min_length=1)
    country: str = Field(min_length=1)
    organization_name: Optional[str] = None
    organization_email: Optional[str] = None
    image_links: List[str] = Field(default_factory=list)
    logo_image_links: List[str] = Field(default_factory=list)
    google_map_link: Optional[str] = None
    how_to_reach: List[str] = Field(default_factory=list)
    amenities: List[str] = Field(default_factory=list)
    mentors: List[Mentor] = Field(default_factory=list)
    instructions: Optional[str] = None
    additional_information: Optional[str] = None
    rating: Optional[float] = Field(default=None, ge=0, le=5)
    listing_status: str = "inactive"

    def to_document(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class MakerspaceResponse(_CamelModel):
    id: str
    email: str
    status: str
    profile: MakerspaceProfile
    created_at: Optional[str] = None
    activated_at: Optional[str] = None
    updated_at: Optional[str] = None
