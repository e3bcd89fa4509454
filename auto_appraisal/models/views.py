from typing import List, Optional
from pydantic import BaseModel

from auto_appraisal.models.claim import Claim, ClaimStatus


class NavLink(BaseModel):
    title: str
    href: str
    description: str


class HomeView(BaseModel):
    greeting: str
    role: str
    links: List[NavLink]


class ClaimCard(BaseModel):
    id: str
    href: str
    claim_number: str
    customer_name: str
    status: Optional[ClaimStatus] = None
    status_color: str
    appointment: str
    has_appointment: bool
    vin_preview: Optional[str] = None
    vehicle: str
    has_vehicle: bool
    assigned: Optional[str] = None


class ClaimListView(BaseModel):
    title: str
    archived: bool
    cards: List[ClaimCard]
    empty_message: Optional[str] = None


class MapPin(BaseModel):
    lat: float
    lng: float
    zoom: int
    tile_url: str
    attribution: str
    popup: str = "Claim Location"


class AssigneeOption(BaseModel):
    value: str
    label: str


class NewClaimFormView(BaseModel):
    form: dict
    assignees: List[AssigneeOption]


class PhotoView(BaseModel):
    id: str
    index: int
    storage_path: str
    url: str
    download_name: str


class ClaimDetailView(BaseModel):
    claim: Claim
    status_color: str
    phone_link: Optional[str] = None
    email_link: Optional[str] = None
    map: Optional[MapPin] = None
    map_placeholder: Optional[str] = None
    google_maps_url: str
    photos: List[PhotoView]
    photo_count: int


class LightboxFrame(BaseModel):
    index: int
    total: int
    position: str
    photo: PhotoView
    next_index: int
    prev_index: int


class LoginPage(BaseModel):
    title: str = "Auto Appraisal Login"
    fields: List[str] = ["email", "password"]
    submit: str = "/login"
