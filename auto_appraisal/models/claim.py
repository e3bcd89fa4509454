from datetime import datetime
from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator


class Role(str, Enum):
    ADMIN = "admin"
    APPRAISER = "appraiser"


class ClaimStatus(str, Enum):
    SCHEDULED = "SCHEDULED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"


class Profile(BaseModel):
    """Row of the profiles table; one per authenticated user"""
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    user_id: str
    role: Role
    full_name: Optional[str] = None


class Claim(BaseModel):
    """Row of the claims table. List views load a column projection, so most fields are optional."""
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    id: str
    claim_number: str
    customer_name: str
    phone: Optional[str] = None
    email: Optional[str] = None
    vin: Optional[str] = None
    vehicle_year: Optional[int] = None
    vehicle_make: Optional[str] = None
    vehicle_model: Optional[str] = None
    address_line1: Optional[str] = None
    address_line2: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    postal_code: Optional[str] = None
    lat: Optional[float] = None
    lng: Optional[float] = None
    notes: Optional[str] = None
    assigned_to: Optional[str] = None
    appointment_start: Optional[datetime] = None
    appointment_end: Optional[datetime] = None
    status: Optional[ClaimStatus] = None
    created_at: Optional[datetime] = None


class ClaimPhoto(BaseModel):
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    id: str
    claim_id: str
    storage_path: str
    created_at: Optional[datetime] = None


class ClaimForm(BaseModel):
    """
    New-claim form payload. Required fields are checked by the save
    operation so that each gets its own message instead of a 422.
    """
    claim_number: str = ""
    customer_name: str = ""
    phone: Optional[str] = None
    email: Optional[str] = None
    vin: Optional[str] = None
    vehicle_year: Optional[int] = None
    vehicle_make: Optional[str] = None
    vehicle_model: Optional[str] = None
    notes: Optional[str] = None
    address_line1: str = ""
    address_line2: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    postal_code: Optional[str] = None
    assigned_to: Optional[str] = None
    appointment_start: Optional[datetime] = None
    appointment_end: Optional[datetime] = None

    @field_validator("assigned_to", "vehicle_year", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        # "" is the Unassigned option and an empty year input
        if isinstance(v, str) and not v.strip():
            return None
        return v

    def full_address(self) -> str:
        return join_address(self.address_line1, self.address_line2, self.city, self.state, self.postal_code)

    def to_row(self) -> dict:
        """Only the fields the user actually filled go to the store"""
        return self.model_dump(mode="json", exclude_unset=True, exclude={"override"})


class SaveClaimRequest(ClaimForm):
    override: bool = Field(default=False, description="Overwrite the existing claim with this claim_number")


class AppointmentPatch(BaseModel):
    appointment_start: Optional[datetime] = None
    appointment_end: Optional[datetime] = None


class StatusChange(BaseModel):
    status: ClaimStatus


class ClaimDeletion(BaseModel):
    confirmed: bool = False
    confirm_text: Optional[str] = None


def join_address(*parts: Optional[str]) -> str:
    return " ".join(p.strip() for p in parts if p and p.strip())
