from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from foodlink.core.states import is_urgent
from foodlink.validation.common import clean_text, fail, parse_int, validate_form

MAX_SERVINGS = 1000
MIN_EXPIRY_HOURS = 1
MAX_EXPIRY_HOURS = 48

# python field name -> name used by the donation form
FORM_NAMES = {
    "food_type": "foodType",
    "quantity": "quantity",
    "servings": "servings",
    "location": "location",
    "expiry_hours": "expiryHours",
    "description": "description",
    "latitude": "latitude",
    "longitude": "longitude",
}


class DonationForm(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    food_type: str = Field(None, alias="foodType", validate_default=True)
    quantity: str = Field(None, validate_default=True)
    servings: Optional[int] = None
    location: str = Field(None, validate_default=True)
    expiry_hours: int = Field(None, alias="expiryHours", validate_default=True)
    description: Optional[str] = None
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)

    @field_validator("food_type", mode="before")
    @classmethod
    def _food_type(cls, v):
        return clean_text(v, max_len=100, required="Food type is required",
                          too_long="Food type must be less than 100 characters")

    @field_validator("quantity", mode="before")
    @classmethod
    def _quantity(cls, v):
        return clean_text(v, max_len=50, required="Quantity is required",
                          too_long="Quantity must be less than 50 characters")

    @field_validator("location", mode="before")
    @classmethod
    def _location(cls, v):
        return clean_text(v, max_len=200, required="Location is required",
                          too_long="Location must be less than 200 characters")

    @field_validator("description", mode="before")
    @classmethod
    def _description(cls, v):
        return clean_text(v, max_len=1000, too_long="Description must be less than 1000 characters")

    @field_validator("servings", mode="before")
    @classmethod
    def _servings(cls, v):
        if v is None or (isinstance(v, str) and not v.strip()):
            return None
        n = parse_int(v)
        if n is None or not 1 <= n <= MAX_SERVINGS:
            raise fail("servings_range", f"Servings must be between 1 and {MAX_SERVINGS}")
        return n

    @field_validator("expiry_hours", mode="before")
    @classmethod
    def _expiry_hours(cls, v):
        if v is None or (isinstance(v, str) and not v.strip()):
            raise fail("required", "Expiry time is required")
        n = parse_int(v)
        if n is None or not MIN_EXPIRY_HOURS <= n <= MAX_EXPIRY_HOURS:
            raise fail(
                "expiry_range",
                f"Expiry hours must be between {MIN_EXPIRY_HOURS} and {MAX_EXPIRY_HOURS}",
            )
        return n

    @field_validator("latitude", "longitude", mode="before")
    @classmethod
    def _blank_coord(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @property
    def urgent(self) -> bool:
        return is_urgent(self.expiry_hours)

    def to_record(self) -> dict:
        return {
            "food_type": self.food_type,
            "quantity": self.quantity,
            "servings": self.servings,
            "location": self.location,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "expiry_hours": self.expiry_hours,
            "description": self.description,
            "urgent": self.urgent,
        }


def validate_donation_form(data: Mapping[str, Any]) -> DonationForm:
    """Validate and sanitize raw donation form fields.

    Raises FormValidationError carrying {field: first message}.
    """
    return validate_form(DonationForm, data, FORM_NAMES)
