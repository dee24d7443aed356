from typing import Optional, List
from datetime import datetime
from pydantic import BaseModel, EmailStr, Field

from foodlink.core.policy import Role
from foodlink.core.states import DonationStatus

# --------------------------
# Auth
# --------------------------
class SignupIn(BaseModel):
    email: EmailStr
    password: str = Field(min_length=6, max_length=128)
    full_name: str
    role: Role = Role.DONOR
    phone: Optional[str] = None
    location: Optional[str] = None

class TokenOut(BaseModel):
    access_token: str
    token_type: str = "bearer"
    role: Role
    profile_id: str

# --------------------------
# Profiles
# --------------------------
class ProfileOut(BaseModel):
    id: str
    user_id: str
    full_name: str
    phone: Optional[str] = None
    location: Optional[str] = None
    role: Role
    avatar_url: Optional[str] = None
    created_at: datetime
    updated_at: datetime

# --------------------------
# Donations
# --------------------------
class DonationOut(BaseModel):
    id: str
    donor_id: str
    food_type: str
    quantity: str
    servings: Optional[int] = None
    location: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    expiry_hours: int
    description: Optional[str] = None
    photo_url: Optional[str] = None
    status: DonationStatus
    accepted_by: Optional[str] = None
    urgent: bool
    created_at: datetime
    updated_at: datetime
    expires_at: datetime
    donor: Optional[ProfileOut] = None
    # display helpers
    posted_ago: Optional[str] = None
    map_url: Optional[str] = None

class DonationList(BaseModel):
    donations: List[DonationOut]
    count: int
