import re
from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from foodlink.validation.common import clean_text, fail, validate_form

PHONE_RE = re.compile(r"^[0-9 \-+()]+$")


class ProfileForm(BaseModel):
    model_config = ConfigDict(extra="ignore")

    full_name: str = Field(None, validate_default=True)
    phone: Optional[str] = None
    location: Optional[str] = None

    @field_validator("full_name", mode="before")
    @classmethod
    def _full_name(cls, v):
        return clean_text(v, max_len=100, required="Name is required",
                          too_long="Name must be less than 100 characters",
                          empty_after="Name cannot be empty after sanitization")

    @field_validator("phone", mode="before")
    @classmethod
    def _phone(cls, v):
        phone = clean_text(v, max_len=20, too_long="Phone must be less than 20 characters")
        if phone is not None and not PHONE_RE.match(phone):
            raise fail("phone_chars", "Phone can only contain digits, spaces, and +()-")
        return phone

    @field_validator("location", mode="before")
    @classmethod
    def _location(cls, v):
        return clean_text(v, max_len=200, too_long="Location must be less than 200 characters")


def validate_profile_form(data: Mapping[str, Any]) -> ProfileForm:
    return validate_form(ProfileForm, data, {})
